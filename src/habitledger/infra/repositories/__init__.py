"""Concrete repository implementations using SQLModel."""

from .completion import SQLModelCompletionLedger
from .habit import SQLModelHabitRepository
from .streak import SQLModelStreakStore

__all__ = [
    "SQLModelCompletionLedger",
    "SQLModelHabitRepository",
    "SQLModelStreakStore",
]
