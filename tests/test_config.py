"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from habitstreak.config import BaseConfig, TestConfig


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HABITSTREAK_DATA_DIR", str(tmp_path))
    for name in (
        "HABITSTREAK_DATABASE_URL",
        "HABITSTREAK_MAX_LOOKBACK_DAYS",
        "HABITSTREAK_MARKING_WINDOW_DAYS",
        "HABITSTREAK_AUTO_COMPLETE_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    config = BaseConfig()
    assert Path(config.DATA_DIR) == tmp_path.resolve()
    assert config.DATABASE_URL == f"sqlite:///{tmp_path.resolve() / 'habitstreak.db'}"
    assert config.MAX_LOOKBACK_DAYS == 31
    assert config.NOTES_MAX_LENGTH == 500
    assert config.MARKING_WINDOW_DAYS == 7
    assert config.HISTORY_DEFAULT_DAYS == 30
    assert config.AUTO_COMPLETE_ENABLED is True
    assert (config.AUTO_COMPLETE_HOUR, config.AUTO_COMPLETE_MINUTE) == (0, 1)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HABITSTREAK_DATABASE_URL", "sqlite:///other.db")
    monkeypatch.setenv("HABITSTREAK_MAX_LOOKBACK_DAYS", "45")
    monkeypatch.setenv("HABITSTREAK_AUTO_COMPLETE_ENABLED", "off")

    config = BaseConfig()

    assert config.DATABASE_URL == "sqlite:///other.db"
    assert config.MAX_LOOKBACK_DAYS == 45
    assert config.AUTO_COMPLETE_ENABLED is False


@pytest.mark.parametrize("raw", ["0", "-3"])
def test_lookback_must_be_positive(monkeypatch, raw):
    monkeypatch.setenv("HABITSTREAK_MAX_LOOKBACK_DAYS", raw)
    with pytest.raises(ValueError, match="positive integer"):
        BaseConfig()


def test_non_numeric_value_rejected(monkeypatch):
    monkeypatch.setenv("HABITSTREAK_MARKING_WINDOW_DAYS", "a week")
    with pytest.raises(ValueError, match="must be an integer"):
        BaseConfig()


def test_sqlite_allows_cross_thread_sessions():
    options = BaseConfig().sqlalchemy_engine_options()
    assert options["connect_args"] == {"check_same_thread": False}


def test_test_config_disables_scheduler(tmp_path):
    config = TestConfig(database_url=f"sqlite:///{tmp_path / 't.db'}")
    assert config.AUTO_COMPLETE_ENABLED is False
    assert config.DATABASE_URL.endswith("t.db")
