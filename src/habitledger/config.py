"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

GAP_POLICIES = ("carry", "reset")


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    """Read a positive number of seconds from the environment."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "habitledger"
    DB_FILENAME = "habitledger.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("HABITLEDGER_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("HABITLEDGER_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("HABITLEDGER_DATABASE_URL", self._build_sqlite_url())
        self.GAP_POLICY = os.getenv("HABITLEDGER_GAP_POLICY", "carry").strip().lower()
        self.LOCK_TIMEOUT = _env_float("HABITLEDGER_LOCK_TIMEOUT", 10.0)
        self.DB_TIMEOUT = _env_float("HABITLEDGER_DB_TIMEOUT", 15.0)

        if self.GAP_POLICY not in GAP_POLICIES:
            raise ValueError(
                f"HABITLEDGER_GAP_POLICY must be one of {', '.join(GAP_POLICIES)}; "
                f"got {self.GAP_POLICY!r}"
            )
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("HABITLEDGER_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITLEDGER_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if not self.DATABASE_URL.startswith("sqlite"):
            return {"pool_pre_ping": True}
        connect_args: dict[str, Any] = {
            "check_same_thread": False,
            "timeout": self.DB_TIMEOUT,
        }
        return {"connect_args": connect_args}

    def flask_settings(self) -> dict[str, Any]:
        """Return the subset of settings copied onto ``app.config``."""

        return {
            "SECRET_KEY": self.SECRET_KEY,
            "TESTING": self.TESTING,
        }


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; database lives in a temp dir."""

    TESTING = True

    def __init__(self, data_dir: Path | str | None = None) -> None:
        super().__init__()
        if data_dir is not None:
            self.DATA_DIR = Path(data_dir).expanduser().resolve()
            self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.DATABASE_URL = self._build_sqlite_url()
        self.DEV_MODE = True


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "GAP_POLICIES"]
