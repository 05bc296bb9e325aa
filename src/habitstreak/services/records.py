"""Habit record orchestration: validation, ledger upserts and streak upkeep.

Every write runs as a single unit of work: the day's record and the habit's
streak fields are committed together or not at all, and all validation runs
before anything is written.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from ..dates import normalize_day
from ..domain.recurrence import STREAK_LOOKBACK_DAYS, is_due, not_scheduled_message
from ..errors import BadRequestError, NotFoundError
from ..infra.unit_of_work import SQLModelUnitOfWork, TransactionScope
from ..logging_config import get_logger
from ..models.habit import Habit, HabitRecord
from .stats import HabitStats, compute_habit_stats, percentage
from .streaks import apply_incremental, recalculate_full

logger = get_logger("records")

DayInput = Union[date, datetime, str]

NOTES_MAX_LENGTH = 500
HISTORY_MAX_LIMIT = 100
HISTORY_MAX_RANGE_DAYS = 365


@dataclass
class RecordResult:
    """A day's record together with the habit's streak fields after the write."""

    record: HabitRecord
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date]


@dataclass
class RetroactiveResult:
    """Outcome of a retroactive correction."""

    success: bool
    current_streak: int
    longest_streak: int
    record_id: int


@dataclass
class Pagination:
    """Pagination metadata for historical listings."""

    total: int
    limit: int
    offset: int
    has_more: bool


@dataclass
class HistoryPage:
    """One page of historical records, newest first."""

    records: list[HabitRecord]
    pagination: Pagination


@dataclass
class ProgressResult:
    """Outcome of an incremental progress update on a NUMERIC habit."""

    record: HabitRecord
    current_streak: int
    longest_streak: int
    progress_percentage: Optional[int]
    auto_completed: bool


class HabitRecordService:
    """Entry points for marking habits and reading their completion history."""

    def __init__(
        self,
        unit_of_work: SQLModelUnitOfWork,
        *,
        today_provider: Callable[[], date] = date.today,
        max_lookback_days: int = STREAK_LOOKBACK_DAYS,
        notes_max_length: int = NOTES_MAX_LENGTH,
        marking_window_days: Optional[int] = None,
        history_default_days: int = 30,
    ):
        self.uow = unit_of_work
        self.today_provider = today_provider
        self.max_lookback_days = max_lookback_days
        self.notes_max_length = notes_max_length
        self.marking_window_days = marking_window_days
        self.history_default_days = history_default_days

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _today(self) -> date:
        return normalize_day(self.today_provider())

    def _check_marking_window(self, day: date) -> None:
        today = self._today()
        if day > today:
            raise BadRequestError("Cannot register completions for future dates")
        if self.marking_window_days is None:
            return
        if day < today - timedelta(days=self.marking_window_days):
            raise BadRequestError(
                "Cannot register completions for dates more than "
                f"{self.marking_window_days} days in the past"
            )

    @staticmethod
    def _load_habit(tx: TransactionScope, habit_id: int, user_id: int) -> Habit:
        habit = tx.habits.find_active_by_id(habit_id, user_id=user_id)
        if habit is None:
            raise NotFoundError("Habit not found")
        return habit

    @staticmethod
    def _check_scheduled(habit: Habit, day: date) -> None:
        recurrence = habit.recurrence
        if not is_due(recurrence, habit.created_at, day):
            message = not_scheduled_message(recurrence, habit.created_at, day)
            logger.warning("Rejected mark for habit %s on %s: %s", habit.id, day, message)
            raise BadRequestError(message)

    @staticmethod
    def _check_value(habit: Habit, completed: bool, value: Optional[float]) -> None:
        if habit.is_numeric:
            if completed and value is None:
                raise BadRequestError(
                    "Value is required for NUMERIC habits when marking as completed"
                )
            if value is not None:
                if not math.isfinite(value):
                    raise BadRequestError("Value must be a finite number")
                if value < 0:
                    raise BadRequestError("Value must be a positive number")
                # Going past target_value is allowed; it is informational only.
        elif value is not None:
            raise BadRequestError("CHECK habits should not have a value")

    def _clean_notes(self, notes: Optional[str]) -> Optional[str]:
        if notes is None:
            return None
        cleaned = notes.strip()
        if len(cleaned) > self.notes_max_length:
            raise BadRequestError(
                f"Notes must be {self.notes_max_length} characters or less"
            )
        return cleaned or None

    def _validated_mark(
        self,
        tx: TransactionScope,
        habit_id: int,
        user_id: int,
        day: date,
        completed: bool,
        value: Optional[float],
        notes: Optional[str],
    ) -> tuple[Habit, Optional[str]]:
        habit = self._load_habit(tx, habit_id, user_id)
        self._check_scheduled(habit, day)
        self._check_value(habit, completed, value)
        return habit, self._clean_notes(notes)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def upsert_record(
        self,
        habit_id: int,
        user_id: int,
        day: DayInput,
        completed: bool,
        value: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> RecordResult:
        """Mark a day and update the streak incrementally."""

        target_day = normalize_day(day)
        self._check_marking_window(target_day)
        today = self._today()

        def work(tx: TransactionScope) -> RecordResult:
            habit, clean_notes = self._validated_mark(
                tx, habit_id, user_id, target_day, completed, value, notes
            )
            record = tx.ledger.upsert(
                habit_id,
                target_day,
                user_id=user_id,
                completed=completed,
                value=value,
                notes=clean_notes,
            )
            apply_incremental(
                habit,
                target_day,
                completed,
                today=today,
                max_lookback_days=self.max_lookback_days,
            )
            tx.habits.save(habit)
            return RecordResult(
                record=record,
                current_streak=habit.current_streak,
                longest_streak=habit.longest_streak,
                last_completed_date=habit.last_completed_date,
            )

        return self.uow.run_in_transaction(work, habit_id=habit_id)

    def mark_retroactively(
        self,
        habit_id: int,
        user_id: int,
        day: DayInput,
        completed: bool,
        value: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> RetroactiveResult:
        """Mark a (usually past) day and rebuild the streak from the ledger."""

        target_day = normalize_day(day)
        self._check_marking_window(target_day)
        today = self._today()

        def work(tx: TransactionScope) -> RetroactiveResult:
            habit, clean_notes = self._validated_mark(
                tx, habit_id, user_id, target_day, completed, value, notes
            )
            record = tx.ledger.upsert(
                habit_id,
                target_day,
                user_id=user_id,
                completed=completed,
                value=value,
                notes=clean_notes,
            )
            recalculate_full(habit, target_day, ledger=tx.ledger, today=today)
            tx.habits.save(habit)
            return RetroactiveResult(
                success=True,
                current_streak=habit.current_streak,
                longest_streak=habit.longest_streak,
                record_id=record.id,
            )

        return self.uow.run_in_transaction(work, habit_id=habit_id)

    def update_progress(
        self, habit_id: int, user_id: int, day: DayInput, increment: float
    ) -> ProgressResult:
        """Add ``increment`` to a NUMERIC habit's value for the day.

        The record is completed automatically once the habit's target is
        reached; it is never un-completed here.
        """

        target_day = normalize_day(day)
        if increment == 0 or not math.isfinite(increment):
            raise BadRequestError("Increment must be a non-zero number")
        self._check_marking_window(target_day)
        today = self._today()

        def work(tx: TransactionScope) -> ProgressResult:
            habit = self._load_habit(tx, habit_id, user_id)
            if not habit.is_numeric:
                raise BadRequestError("Progress updates are only available for NUMERIC habits")
            self._check_scheduled(habit, target_day)

            existing = tx.ledger.find_by_key(habit_id, target_day, user_id=user_id)
            current_value = existing.value if existing and existing.value is not None else 0
            new_value = current_value + increment
            if new_value < 0:
                raise BadRequestError(
                    f"Cannot decrease value below 0. Current value: {current_value}, "
                    f"increment: {increment}"
                )

            was_completed = existing.completed if existing else False
            reached_target = bool(habit.target_value) and new_value >= habit.target_value
            record = tx.ledger.upsert(
                habit_id,
                target_day,
                user_id=user_id,
                completed=was_completed or reached_target,
                value=new_value,
                notes=existing.notes if existing else None,
            )

            auto_completed = not was_completed and record.completed
            if auto_completed:
                apply_incremental(
                    habit,
                    target_day,
                    True,
                    today=today,
                    max_lookback_days=self.max_lookback_days,
                )
                tx.habits.save(habit)

            progress = None
            if habit.target_value:
                progress = min(100, percentage(new_value, habit.target_value))

            return ProgressResult(
                record=record,
                current_streak=habit.current_streak,
                longest_streak=habit.longest_streak,
                progress_percentage=progress,
                auto_completed=auto_completed,
            )

        return self.uow.run_in_transaction(work, habit_id=habit_id)

    def recalculate_streaks(
        self, habit_id: int, user_id: int, from_day: Optional[DayInput] = None
    ) -> Habit:
        """Rebuild a habit's streak cache from its ledger (operator entry point)."""

        today = self._today()

        def work(tx: TransactionScope) -> Habit:
            habit = self._load_habit(tx, habit_id, user_id)
            start = normalize_day(from_day) if from_day is not None else habit.created_at
            recalculate_full(habit, start, ledger=tx.ledger, today=today)
            return tx.habits.save(habit)

        return self.uow.run_in_transaction(work, habit_id=habit_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_record_by_date(
        self, habit_id: int, user_id: int, day: DayInput
    ) -> Optional[HabitRecord]:
        """The record for one day, or None when the day was never marked."""

        target_day = normalize_day(day)

        def work(tx: TransactionScope) -> Optional[HabitRecord]:
            self._load_habit(tx, habit_id, user_id)
            return tx.ledger.find_by_key(habit_id, target_day, user_id=user_id)

        return self.uow.run_in_transaction(work)

    def get_records_by_date_range(
        self, habit_id: int, user_id: int, start: DayInput, end: DayInput
    ) -> list[HabitRecord]:
        """All records between start and end inclusive, newest first."""

        start_day, end_day = normalize_day(start), normalize_day(end)

        def work(tx: TransactionScope) -> list[HabitRecord]:
            self._load_habit(tx, habit_id, user_id)
            return tx.ledger.list_in_range(habit_id, start_day, end_day, user_id=user_id)

        return self.uow.run_in_transaction(work)

    def get_historical_records(
        self,
        habit_id: int,
        user_id: int,
        start: Optional[DayInput] = None,
        end: Optional[DayInput] = None,
        limit: int = HISTORY_MAX_LIMIT,
        offset: int = 0,
    ) -> HistoryPage:
        """Paginated history, defaulting to the last ``history_default_days`` days."""

        today = self._today()
        end_day = normalize_day(end) if end is not None else today
        start_day = (
            normalize_day(start)
            if start is not None
            else today - timedelta(days=self.history_default_days)
        )
        if start_day > end_day:
            raise BadRequestError("from date must be less than or equal to to date")
        if (end_day - start_day).days > HISTORY_MAX_RANGE_DAYS:
            raise BadRequestError(f"Date range cannot exceed {HISTORY_MAX_RANGE_DAYS} days")
        if not 1 <= limit <= HISTORY_MAX_LIMIT:
            raise BadRequestError(f"limit must be between 1 and {HISTORY_MAX_LIMIT}")
        if offset < 0:
            raise BadRequestError("offset must be zero or greater")

        def work(tx: TransactionScope) -> HistoryPage:
            self._load_habit(tx, habit_id, user_id)
            total = tx.ledger.count_in_range(habit_id, start_day, end_day, user_id=user_id)
            records = tx.ledger.list_in_range(
                habit_id, start_day, end_day, user_id=user_id, limit=limit, offset=offset
            )
            return HistoryPage(
                records=records,
                pagination=Pagination(
                    total=total,
                    limit=limit,
                    offset=offset,
                    has_more=offset + limit < total,
                ),
            )

        return self.uow.run_in_transaction(work)

    def get_habit_stats(self, habit_id: int, user_id: int) -> HabitStats:
        """Completion totals, rates and the recent 30-day activity for a habit."""

        today = self._today()

        def work(tx: TransactionScope) -> HabitStats:
            habit = self._load_habit(tx, habit_id, user_id)
            records = tx.ledger.list_all(habit_id, user_id=user_id)
            return compute_habit_stats(habit, records, today=today)

        return self.uow.run_in_transaction(work)


__all__ = [
    "HabitRecordService",
    "HistoryPage",
    "Pagination",
    "ProgressResult",
    "RecordResult",
    "RetroactiveResult",
]
