"""Habit repository and completion ledger protocols."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitRecord


class HabitRepository(Protocol):
    """Repository for habits and their cached streak state."""

    def find_active_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve an active habit owned by the user."""
        ...

    def list_active(self, *, user_id: int) -> list[Habit]:
        """List the user's active habits."""
        ...

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Persist a new habit."""
        ...

    def save(self, habit: Habit) -> Habit:
        """Write streak fields, failing if the stored version moved."""
        ...


class CompletionLedger(Protocol):
    """Durable store of one completion record per habit, user, and day."""

    def upsert(
        self,
        habit_id: int,
        occurred_on: date,
        *,
        user_id: int,
        completed: bool,
        value: Optional[float],
        notes: Optional[str],
    ) -> HabitRecord:
        """Insert the day's record or update it in place."""
        ...

    def find_by_key(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitRecord]:
        """Get the record for one day, if any."""
        ...

    def find_completed_dates_in_range(
        self, habit_id: int, start: date, end: date, *, user_id: int
    ) -> set[date]:
        """Days marked completed between start and end inclusive."""
        ...

    def find_all_completed_dates(self, habit_id: int, *, user_id: int) -> set[date]:
        """Every day ever marked completed."""
        ...

    def list_in_range(
        self,
        habit_id: int,
        start: date,
        end: date,
        *,
        user_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[HabitRecord]:
        """Records between start and end inclusive, newest first."""
        ...

    def list_all(self, habit_id: int, *, user_id: int) -> list[HabitRecord]:
        """Every record of the habit, oldest first."""
        ...

    def count_in_range(self, habit_id: int, start: date, end: date, *, user_id: int) -> int:
        """Number of records between start and end inclusive."""
        ...

    def find_auto_complete_candidates(self, occurred_on: date) -> list[tuple[HabitRecord, Habit]]:
        """Incomplete records of active NUMERIC habits that have a target."""
        ...
