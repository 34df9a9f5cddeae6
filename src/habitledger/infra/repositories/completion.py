"""SQLModel completion ledger bound to a caller-owned session."""

from __future__ import annotations

from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from ...domain.errors import AlreadyCompleted
from ...models.habit import HabitCompletion


def _is_duplicate(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class SQLModelCompletionLedger:
    """Ledger of (habit, day) completion events.

    The ledger never commits; the owner of ``session`` decides the
    transaction boundary so ledger writes and counter writes succeed or fail
    together.
    """

    def __init__(self, session: Session):
        self.session = session

    def _find(self, habit_id: int, day: date) -> HabitCompletion | None:
        return self.session.exec(
            select(HabitCompletion)
            .where(HabitCompletion.habit_id == habit_id)
            .where(HabitCompletion.completed_on == day)
        ).first()

    def has_completion(self, habit_id: int, day: date) -> bool:
        """Return True iff an event exists for exactly this habit and day."""
        return self._find(habit_id, day) is not None

    def record_completion(self, habit_id: int, day: date) -> HabitCompletion:
        """Insert an event, raising AlreadyCompleted on a duplicate pair."""
        if self._find(habit_id, day) is not None:
            raise AlreadyCompleted(habit_id, day)

        entry = HabitCompletion(habit_id=habit_id, completed_on=day)
        self.session.add(entry)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # A writer outside this process won the race; the session is now
            # unusable and the caller's transaction rolls back.
            if _is_duplicate(exc):
                raise AlreadyCompleted(habit_id, day) from exc
            raise
        return entry

    def retract_completion(self, habit_id: int, day: date) -> bool:
        """Delete the event if present. Absent events are not an error."""
        entry = self._find(habit_id, day)
        if entry is None:
            return False
        self.session.delete(entry)
        self.session.flush()
        return True

    def history(self, habit_id: int) -> list[date]:
        """Return every completion day for the habit, ascending."""
        return list(
            self.session.exec(
                select(HabitCompletion.completed_on)
                .where(HabitCompletion.habit_id == habit_id)
                .order_by(col(HabitCompletion.completed_on))
            ).all()
        )

    def latest_before(self, habit_id: int, day: date) -> date | None:
        """Most recent completion day strictly earlier than ``day``."""
        return self.session.exec(
            select(HabitCompletion.completed_on)
            .where(HabitCompletion.habit_id == habit_id)
            .where(HabitCompletion.completed_on < day)
            .order_by(col(HabitCompletion.completed_on).desc())
            .limit(1)
        ).first()

    def completions_between(self, habit_id: int, start: date, end: date) -> list[date]:
        """Return completion days within ``start``..``end`` inclusive, ascending."""
        return list(
            self.session.exec(
                select(HabitCompletion.completed_on)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.completed_on >= start)
                .where(HabitCompletion.completed_on <= end)
                .order_by(col(HabitCompletion.completed_on))
            ).all()
        )

    def count_between(self, start: date, end: date) -> int:
        """Count completions across all habits within an inclusive day range."""
        return self.session.exec(
            select(func.count())
            .select_from(HabitCompletion)
            .where(HabitCompletion.completed_on >= start)
            .where(HabitCompletion.completed_on <= end)
        ).one()

    def counts_by_day(self, start: date, end: date) -> dict[date, int]:
        """Completions per day across all habits within an inclusive range."""
        rows = self.session.exec(
            select(HabitCompletion.completed_on, func.count())
            .where(HabitCompletion.completed_on >= start)
            .where(HabitCompletion.completed_on <= end)
            .group_by(HabitCompletion.completed_on)
        ).all()
        return {day: count for day, count in rows}

    def total(self) -> int:
        """Count every completion event in the ledger."""
        return self.session.exec(select(func.count()).select_from(HabitCompletion)).one()

    def purge(self, habit_id: int) -> int:
        """Delete every event for a habit; returns how many were removed."""
        entries = self.session.exec(
            select(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
        ).all()
        for entry in entries:
            self.session.delete(entry)
        self.session.flush()
        return len(entries)
