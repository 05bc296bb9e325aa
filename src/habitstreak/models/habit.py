"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from ..domain.recurrence import Recurrence, recurrence_from_fields


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HabitType(str, Enum):
    """How a day's completion is captured."""

    CHECK = "CHECK"
    NUMERIC = "NUMERIC"


class Periodicity(str, Enum):
    """Stored recurrence kind; see :mod:`habitstreak.domain.recurrence`."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class Habit(SQLModel, table=True):
    """A user-defined habit with its cached streak state."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    habit_type: str = Field(default=HabitType.CHECK.value, max_length=16)
    target_value: Optional[float] = Field(default=None)
    unit: Optional[str] = Field(default=None, max_length=32)
    periodicity: str = Field(default=Periodicity.DAILY.value, max_length=16)
    week_days: list[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_active: bool = Field(default=True, nullable=False)
    created_at: date = Field(default_factory=date.today, nullable=False)

    # Cache of a pure function over the ledger; rebuilt by the full recalculator.
    current_streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)
    last_completed_date: Optional[date] = Field(default=None)

    version: int = Field(default=1, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    @property
    def recurrence(self) -> Recurrence:
        """Tagged recurrence variant built from the stored columns."""
        return recurrence_from_fields(self.periodicity, self.week_days)

    @property
    def is_numeric(self) -> bool:
        return self.habit_type == HabitType.NUMERIC.value


class HabitRecord(SQLModel, table=True):
    """Completion record for a habit on one calendar day."""

    __tablename__: ClassVar[str] = "habit_record"
    __table_args__ = (
        UniqueConstraint("habit_id", "user_id", "occurred_on", name="uq_habit_record_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(nullable=False, index=True)
    occurred_on: date = Field(nullable=False, index=True)
    completed: bool = Field(default=False, nullable=False)
    value: Optional[float] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)
