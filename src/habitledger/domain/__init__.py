"""Domain errors and repository protocols."""

from .errors import (
    AlreadyCompleted,
    HabitLedgerError,
    NotCompleted,
    StateInconsistent,
    StorageError,
    UnknownHabit,
)

__all__ = [
    "AlreadyCompleted",
    "HabitLedgerError",
    "NotCompleted",
    "StateInconsistent",
    "StorageError",
    "UnknownHabit",
]
