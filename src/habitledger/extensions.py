"""Database and service wiring for the Flask app."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from flask import Flask, current_app
from sqlalchemy.engine import Engine

from .config import BaseConfig
from .domain.repositories import HabitRepository
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories.habit import SQLModelHabitRepository
from .services.streak_engine import Clock, StreakEngine

EXTENSION_KEY = "habitledger"


@dataclass
class LedgerServices:
    """Per-app bundle of the database engine, the repositories and the streak engine."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    habits: HabitRepository
    streaks: StreakEngine

    def today(self) -> date:
        return self.streaks.clock()


def init_db(app: Flask, config: BaseConfig, *, clock: Clock | None = None) -> LedgerServices:
    """Create the engine and schema, then attach services to ``app``."""

    engine, session_factory = bootstrap_database(config)
    services = LedgerServices(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habits=SQLModelHabitRepository(session_factory),
        streaks=StreakEngine.from_config(config, session_factory, clock=clock or date.today),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> LedgerServices:
    """Return the services bound to the active Flask app."""

    services = current_app.extensions.get(EXTENSION_KEY)
    if services is None:  # pragma: no cover - exercised only on misconfigured apps
        raise RuntimeError("Database engine not initialized")
    return services


__all__ = ["EXTENSION_KEY", "LedgerServices", "get_services", "init_db"]
