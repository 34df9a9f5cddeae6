"""Repository protocols for habits, completions and streak counters."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitStreak


class HabitRepository(Protocol):
    """Habit directory: owns habit identity and metadata."""

    def exists(self, habit_id: int) -> bool:
        """Return True when the habit id resolves."""
        ...

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self) -> list[Habit]:
        """List all habits, newest first."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a habit together with its zeroed streak state."""
        ...

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: int) -> bool:
        """Delete a habit, its completions and its streak state."""
        ...


class CompletionLedger(Protocol):
    """Record of (habit, day) completion events."""

    def has_completion(self, habit_id: int, day: date) -> bool:
        ...

    def record_completion(self, habit_id: int, day: date) -> None:
        """Insert an event; raises AlreadyCompleted on a duplicate."""
        ...

    def retract_completion(self, habit_id: int, day: date) -> bool:
        """Delete an event if present; returns whether one was removed."""
        ...

    def history(self, habit_id: int) -> list[date]:
        """All completion days for the habit in ascending order."""
        ...

    def latest_before(self, habit_id: int, day: date) -> Optional[date]:
        """Most recent completion day strictly before ``day``."""
        ...


class StreakStore(Protocol):
    """Per-habit streak counter rows."""

    def get(self, habit_id: int) -> Optional[HabitStreak]:
        ...

    def save(self, state: HabitStreak) -> HabitStreak:
        ...
