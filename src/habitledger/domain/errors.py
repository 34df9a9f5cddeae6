"""Exception hierarchy for the completion ledger and streak engine."""

from __future__ import annotations

from datetime import date


class HabitLedgerError(Exception):
    """Base class for every error raised by habitledger."""


class UnknownHabit(HabitLedgerError, LookupError):
    """The referenced habit does not exist."""

    def __init__(self, habit_id: int):
        super().__init__(f"Habit {habit_id} does not exist")
        self.habit_id = habit_id


class AlreadyCompleted(HabitLedgerError):
    """A completion already exists for this habit and day."""

    def __init__(self, habit_id: int, day: date):
        super().__init__(f"Habit {habit_id} is already completed on {day.isoformat()}")
        self.habit_id = habit_id
        self.day = day


class NotCompleted(HabitLedgerError):
    """No completion exists for this habit and day."""

    def __init__(self, habit_id: int, day: date):
        super().__init__(f"Habit {habit_id} has no completion on {day.isoformat()}")
        self.habit_id = habit_id
        self.day = day


class StorageError(HabitLedgerError):
    """Transient infrastructure failure; safe for the caller to retry."""

    retryable = True


class StateInconsistent(HabitLedgerError):
    """Ledger and streak counters disagree and need out-of-band repair."""

    def __init__(self, habit_id: int, detail: str):
        super().__init__(f"Habit {habit_id} streak state is inconsistent: {detail}")
        self.habit_id = habit_id
        self.detail = detail


__all__ = [
    "AlreadyCompleted",
    "HabitLedgerError",
    "NotCompleted",
    "StateInconsistent",
    "StorageError",
    "UnknownHabit",
]
