"""SQLModel implementation of the habit directory."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import col, select

from ...domain.errors import UnknownHabit
from ...logging_config import get_logger
from ...models.habit import Habit, HabitStreak
from ..database import SessionFactory, storage_errors
from .completion import SQLModelCompletionLedger

logger = get_logger(__name__)


class SQLModelHabitRepository:
    """SQLModel-based habit directory implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def exists(self, habit_id: int) -> bool:
        """Return True when a habit with this id exists."""
        with storage_errors("habit lookup"), self.session_factory() as session:
            return session.get(Habit, habit_id) is not None

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with storage_errors("habit lookup"), self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[Habit]:
        """List all habits, newest first."""
        with storage_errors("habit listing"), self.session_factory() as session:
            statement = select(Habit).order_by(col(Habit.created_at).desc(), col(Habit.id).desc())
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit) -> Habit:
        """Create a habit and allocate its zeroed streak row in one transaction."""
        with storage_errors("habit creation"), self.session_factory() as session:
            session.add(habit)
            session.flush()
            session.add(HabitStreak(habit_id=habit.id, current_streak=0, longest_streak=0))
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        logger.info("Habit created", extra={"habit_id": habit.id, "habit_name": habit.name})
        return habit

    def update(self, habit: Habit) -> Habit:
        """Copy editable fields onto the stored habit."""
        if habit.id is None:
            raise ValueError("Cannot update a habit without an id")
        with storage_errors("habit update"), self.session_factory() as session:
            existing = session.get(Habit, habit.id)
            if existing is None:
                raise UnknownHabit(habit.id)
            existing.name = habit.name
            existing.description = habit.description
            existing.frequency = habit.frequency
            existing.target_count = habit.target_count
            existing.updated_at = datetime.now(timezone.utc)
            session.add(existing)
            session.commit()
            session.refresh(existing)
            session.expunge(existing)
            return existing

    def delete(self, habit_id: int) -> bool:
        """Delete a habit with its completions and streak row atomically."""
        with storage_errors("habit deletion"), self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return False
            # Children first; the FK cascade covers stores without the pragma.
            removed = SQLModelCompletionLedger(session).purge(habit_id)
            streak = session.get(HabitStreak, habit_id)
            if streak is not None:
                session.delete(streak)
            session.flush()
            session.delete(habit)
            session.commit()
        logger.info("Habit deleted", extra={"habit_id": habit_id, "completions_removed": removed})
        return True
