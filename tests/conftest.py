"""Pytest configuration and shared fixtures for habitledger tests.

This module provides database fixtures, a controllable clock, test data
factories and a Flask test client, all isolated from the real app database.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

import pytest
from sqlmodel import select

from habitledger import create_app
from habitledger.config import TestConfig
from habitledger.infra.database import create_db_engine, create_session_factory, init_database
from habitledger.infra.repositories.habit import SQLModelHabitRepository
from habitledger.models import Habit, HabitCompletion, HabitStreak
from habitledger.services.streak_engine import StreakEngine

START_DAY = date(2024, 3, 1)


class FakeClock:
    """Callable clock whose current day tests can move."""

    def __init__(self, today: date = START_DAY):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> date:
        self.today += timedelta(days=days)
        return self.today

    def set(self, day: date) -> date:
        self.today = day
        return day


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def test_config(tmp_path) -> TestConfig:
    """Configuration pointing at a throwaway data directory."""
    return TestConfig(data_dir=tmp_path)


@pytest.fixture(scope="function")
def db_engine(test_config):
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with every table created
    """
    engine = create_db_engine(test_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Factory returning transactional session context managers."""
    return create_session_factory(db_engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(session_factory, clock) -> StreakEngine:
    """Streak engine using the default gap-carrying policy."""
    return StreakEngine(session_factory, clock=clock, lock_timeout=2.0)


@pytest.fixture
def reset_engine(session_factory, clock) -> StreakEngine:
    """Streak engine that resets the streak after a missed day."""
    return StreakEngine(session_factory, clock=clock, gap_policy="reset", lock_timeout=2.0)


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(habit_repo):
    """Factory for creating habits through the directory (with streak rows)."""

    def _create_habit(
        name: str = "Test Habit",
        description: str = "Test habit description",
        frequency: str = "daily",
        target_count: int = 1,
    ) -> Habit:
        return habit_repo.create(
            Habit(
                name=name,
                description=description,
                frequency=frequency,
                target_count=target_count,
            )
        )

    return _create_habit


@pytest.fixture
def seed_history(session_factory):
    """Write ledger rows and streak counters directly, bypassing the engine."""

    def _seed(
        habit_id: int,
        days: Iterable[date],
        *,
        current: int | None = None,
        longest: int | None = None,
        last_day: date | None = None,
    ) -> None:
        days = list(days)
        with session_factory() as session:
            for day in days:
                session.add(HabitCompletion(habit_id=habit_id, completed_on=day))
            state = session.get(HabitStreak, habit_id)
            if current is not None:
                state.current_streak = current
            if longest is not None:
                state.longest_streak = longest
            state.last_completion_day = last_day or (max(days) if days else None)
            session.add(state)

    return _seed


@pytest.fixture
def ledger_days(session_factory):
    """Read back the raw ledger for a habit."""

    def _days(habit_id: int) -> list[date]:
        with session_factory() as session:
            return list(
                session.exec(
                    select(HabitCompletion.completed_on)
                    .where(HabitCompletion.habit_id == habit_id)
                    .order_by(HabitCompletion.completed_on)
                ).all()
            )

    return _days


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(test_config, clock):
    app = create_app(test_config, clock=clock)
    yield app
    app.extensions["habitledger"].engine.dispose()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
