"""Pytest configuration and shared fixtures for HabitStreak tests.

Provides an isolated SQLite database per test, the unit of work and record
service wired against it, a controllable clock, and a habit factory.
"""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitstreak.models import Habit, HabitRecord  # noqa: F401
from habitstreak.infra.database import create_session_factory
from habitstreak.infra.repositories import SQLModelHabitRepository
from habitstreak.infra.unit_of_work import SQLModelUnitOfWork
from habitstreak.services.habits import create_habit
from habitstreak.services.records import HabitRecordService

# 2024-01-01 is a Monday.
START = date(2024, 1, 1)
# Default "today": late enough that marks in the first weeks are never in the future.
TODAY = date(2024, 6, 1)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory whose sessions commit on clean exit."""
    return create_session_factory(db_engine)


@pytest.fixture(scope="function")
def unit_of_work(db_engine) -> SQLModelUnitOfWork:
    return SQLModelUnitOfWork(db_engine)


# =============================================================================
# Clock and services
# =============================================================================


class FakeClock:
    """Mutable "today" usable as a ``today_provider``."""

    def __init__(self, today: date = TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def record_service(unit_of_work, clock) -> HabitRecordService:
    """Record service with no marking window so tests can mark any day."""
    return HabitRecordService(unit_of_work, today_provider=clock)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(unit_of_work):
    """Factory for creating persisted habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Exercise",
        *,
        user_id: int = 1,
        habit_type: str = "CHECK",
        periodicity: str = "DAILY",
        week_days: list[int] | None = None,
        target_value: float | None = None,
        unit: str | None = None,
        created_at: date = START,
    ) -> Habit:
        return create_habit(
            unit_of_work,
            user_id=user_id,
            name=name,
            habit_type=habit_type,
            periodicity=periodicity,
            week_days=week_days,
            target_value=target_value,
            unit=unit,
            created_at=created_at,
        )

    return _create_habit


@pytest.fixture
def load_habit(session_factory):
    """Reload a habit row as currently stored."""
    repo = SQLModelHabitRepository(session_factory)

    def _load(habit_id: int, user_id: int = 1) -> Habit:
        habit = repo.find_active_by_id(habit_id, user_id=user_id)
        assert habit is not None
        return habit

    return _load
