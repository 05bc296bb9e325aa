"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .domain.recurrence import STREAK_LOOKBACK_DAYS

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int | None) -> int | None:
    """Read an integer environment variable, keeping the default when unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitStreak"
    DB_FILENAME = "habitstreak.db"
    ENV_PREFIX = "HABITSTREAK_"

    def __init__(self) -> None:
        self.DEV_MODE = _env_bool("HABITSTREAK_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("HABITSTREAK_DATABASE_URL", self._build_sqlite_url())

        # Streak engine tuning
        self.MAX_LOOKBACK_DAYS = _env_int("HABITSTREAK_MAX_LOOKBACK_DAYS", STREAK_LOOKBACK_DAYS)
        self.NOTES_MAX_LENGTH = _env_int("HABITSTREAK_NOTES_MAX_LENGTH", 500)
        self.MARKING_WINDOW_DAYS = _env_int("HABITSTREAK_MARKING_WINDOW_DAYS", 7)
        self.HISTORY_DEFAULT_DAYS = _env_int("HABITSTREAK_HISTORY_DEFAULT_DAYS", 30)

        # Nightly auto-complete job
        self.AUTO_COMPLETE_ENABLED = _env_bool("HABITSTREAK_AUTO_COMPLETE_ENABLED", default=True)
        self.AUTO_COMPLETE_HOUR = _env_int("HABITSTREAK_AUTO_COMPLETE_HOUR", 0)
        self.AUTO_COMPLETE_MINUTE = _env_int("HABITSTREAK_AUTO_COMPLETE_MINUTE", 1)

        if self.MAX_LOOKBACK_DAYS is None or self.MAX_LOOKBACK_DAYS < 1:
            raise ValueError("HABITSTREAK_MAX_LOOKBACK_DAYS must be a positive integer.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITSTREAK_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = Path(self.DATA_DIR) / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            # Sessions may be opened from scheduler threads.
            engine_options["connect_args"] = {"check_same_thread": False}
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for isolated test runs against a throwaway database."""

    __test__ = False

    DEBUG = False
    TESTING = True

    def __init__(self, database_url: str | None = None) -> None:
        super().__init__()
        self.DEV_MODE = True
        self.AUTO_COMPLETE_ENABLED = False
        if database_url:
            self.DATABASE_URL = database_url
