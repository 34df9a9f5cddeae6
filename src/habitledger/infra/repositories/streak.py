"""SQLModel streak counter store bound to a caller-owned session."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session, col, func, select

from ...models.habit import Habit, HabitStreak


class SQLModelStreakStore:
    """Read and write the one-row-per-habit streak counters."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, habit_id: int) -> Optional[HabitStreak]:
        return self.session.get(HabitStreak, habit_id)

    def save(self, state: HabitStreak) -> HabitStreak:
        self.session.add(state)
        self.session.flush()
        return state

    def aggregates(self) -> tuple[float, int]:
        """Return (average current streak, best longest streak) across habits."""
        average, best = self.session.exec(
            select(
                func.coalesce(func.avg(HabitStreak.current_streak), 0),
                func.coalesce(func.max(HabitStreak.longest_streak), 0),
            )
        ).one()
        return float(average), int(best)

    def current_by_habit(self) -> list[tuple[str, int]]:
        """Habit names with their current streak, highest first."""
        rows = self.session.exec(
            select(Habit.name, func.coalesce(HabitStreak.current_streak, 0))
            .join(HabitStreak, col(HabitStreak.habit_id) == col(Habit.id), isouter=True)
            .order_by(func.coalesce(HabitStreak.current_streak, 0).desc(), col(Habit.name))
        ).all()
        return [(name, int(streak)) for name, streak in rows]
