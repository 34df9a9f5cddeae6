"""SQLModel table exports."""

from .habit import Habit, HabitCompletion, HabitStreak

__all__ = [
    "Habit",
    "HabitCompletion",
    "HabitStreak",
]
