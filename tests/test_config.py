"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from habitledger.config import BaseConfig, TestConfig


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in (
        "HABITLEDGER_DATABASE_URL",
        "HABITLEDGER_GAP_POLICY",
        "HABITLEDGER_LOCK_TIMEOUT",
        "HABITLEDGER_DB_TIMEOUT",
        "HABITLEDGER_SECRET_KEY",
        "HABITLEDGER_DEV_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HABITLEDGER_DATA_DIR", str(tmp_path))


def test_defaults(tmp_path):
    config = BaseConfig()

    assert config.DATA_DIR == tmp_path.resolve()
    assert config.DATABASE_URL == f"sqlite:///{tmp_path.resolve() / 'habitledger.db'}"
    assert config.GAP_POLICY == "carry"
    assert config.LOCK_TIMEOUT == 10.0
    assert config.sqlalchemy_engine_options()["connect_args"]["timeout"] == 15.0


def test_gap_policy_from_environment(monkeypatch):
    monkeypatch.setenv("HABITLEDGER_GAP_POLICY", "Reset")

    assert BaseConfig().GAP_POLICY == "reset"


def test_invalid_gap_policy(monkeypatch):
    monkeypatch.setenv("HABITLEDGER_GAP_POLICY", "weekly")

    with pytest.raises(ValueError, match="GAP_POLICY"):
        BaseConfig()


@pytest.mark.parametrize("raw", ["soon", "0", "-3"])
def test_invalid_lock_timeout(monkeypatch, raw):
    monkeypatch.setenv("HABITLEDGER_LOCK_TIMEOUT", raw)

    with pytest.raises(ValueError, match="HABITLEDGER_LOCK_TIMEOUT"):
        BaseConfig()


def test_secret_required_outside_dev_mode(monkeypatch):
    monkeypatch.setenv("HABITLEDGER_DEV_MODE", "false")

    with pytest.raises(ValueError, match="SECRET_KEY"):
        BaseConfig()

    monkeypatch.setenv("HABITLEDGER_SECRET_KEY", "s3cret")
    assert BaseConfig().DEV_MODE is False


def test_non_sqlite_url_skips_sqlite_options(monkeypatch):
    monkeypatch.setenv("HABITLEDGER_DATABASE_URL", "postgresql://localhost/habits")

    assert BaseConfig().sqlalchemy_engine_options() == {"pool_pre_ping": True}


def test_test_config_uses_given_directory(tmp_path):
    target = tmp_path / "nested"
    config = TestConfig(data_dir=target)

    assert config.TESTING is True
    assert config.DATA_DIR == target.resolve()
    assert target.is_dir()
    assert config.DATABASE_URL.endswith("nested/habitledger.db")
