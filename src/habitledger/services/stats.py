"""Dashboard aggregates and chart series."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta

from sqlmodel import func, select

from ..infra.database import SessionFactory, storage_errors
from ..infra.repositories.completion import SQLModelCompletionLedger
from ..infra.repositories.streak import SQLModelStreakStore
from ..models.habit import Habit

COMPLETION_RATE_WINDOW_DAYS = 7
CHART_DAYS = 30


@dataclass
class Stats:
    total_habits: int = 0
    completed_today: int = 0
    total_completions: int = 0
    average_streak: float = 0.0
    best_streak: int = 0
    completion_rate: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass
class ChartData:
    labels: list[str] = field(default_factory=list)
    data: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def chart_label(day: date) -> str:
    """Short axis label such as ``Jan 2``."""

    return f"{day:%b} {day.day}"


def calculate_stats(session_factory: SessionFactory, *, today: date) -> Stats:
    """Aggregate counts and streak figures across every habit.

    The completion rate assumes daily habits: completions over the last
    seven days (today included) divided by ``total_habits * 7``.
    """

    window_start = today - timedelta(days=COMPLETION_RATE_WINDOW_DAYS - 1)
    with storage_errors("calculate stats"), session_factory() as session:
        ledger = SQLModelCompletionLedger(session)
        total_habits = session.exec(select(func.count()).select_from(Habit)).one()
        average, best = SQLModelStreakStore(session).aggregates()
        stats = Stats(
            total_habits=total_habits,
            completed_today=ledger.count_between(today, today),
            total_completions=ledger.total(),
            average_streak=round(average, 2),
            best_streak=best,
        )
        if total_habits:
            completed_in_window = ledger.count_between(window_start, today)
            max_possible = total_habits * COMPLETION_RATE_WINDOW_DAYS
            stats.completion_rate = round(completed_in_window / max_possible * 100, 2)
    return stats


def completion_rate_chart(
    session_factory: SessionFactory, *, today: date, days: int = CHART_DAYS
) -> ChartData:
    """Completions per day for the last ``days`` days, oldest first."""

    if days < 1:
        raise ValueError("days must be at least 1")
    start = today - timedelta(days=days - 1)
    with storage_errors("completion chart"), session_factory() as session:
        counts = SQLModelCompletionLedger(session).counts_by_day(start, today)

    chart = ChartData()
    for offset in range(days):
        day = start + timedelta(days=offset)
        chart.labels.append(chart_label(day))
        chart.data.append(float(counts.get(day, 0)))
    return chart


def streak_chart(session_factory: SessionFactory) -> ChartData:
    """Current streak for each habit, highest first."""

    with storage_errors("streak chart"), session_factory() as session:
        rows = SQLModelStreakStore(session).current_by_habit()
    return ChartData(
        labels=[name for name, _ in rows],
        data=[float(streak) for _, streak in rows],
    )


__all__ = [
    "CHART_DAYS",
    "ChartData",
    "Stats",
    "calculate_stats",
    "chart_label",
    "completion_rate_chart",
    "streak_chart",
]
