"""Habit tracking tables: definitions, completion ledger and streak counters."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Habit(SQLModel, table=True):
    """A user-defined habit the app tracks daily."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    description: str = Field(default="", max_length=400)
    # Stored for display only; streaks always assume one completion per day.
    frequency: str = Field(default="daily", max_length=32)
    target_count: int = Field(default=1, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


class HabitCompletion(SQLModel, table=True):
    """One completion event for a habit on a calendar day."""

    __tablename__: ClassVar[str] = "habit_completion"
    __table_args__ = (
        UniqueConstraint("habit_id", "completed_on", name="uq_habit_completion_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", ondelete="CASCADE", nullable=False, index=True)
    completed_on: date = Field(nullable=False, index=True)
    recorded_at: datetime = Field(default_factory=_utcnow, nullable=False)


class HabitStreak(SQLModel, table=True):
    """Derived streak counters, one row per habit."""

    __tablename__: ClassVar[str] = "habit_streak"

    habit_id: int = Field(foreign_key="habit.id", ondelete="CASCADE", primary_key=True)
    current_streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)
    last_completion_day: Optional[date] = Field(default=None)
