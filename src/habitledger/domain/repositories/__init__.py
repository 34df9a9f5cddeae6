"""Repository protocol definitions for domain layer."""

from .habit import CompletionLedger, HabitRepository, StreakStore

__all__ = [
    "CompletionLedger",
    "HabitRepository",
    "StreakStore",
]
