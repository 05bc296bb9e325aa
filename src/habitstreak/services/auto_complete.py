"""Nightly consistency job completing NUMERIC records that reached their target.

A record can reach its target without being flagged completed (a client
dropped the follow-up call, or the value was set through a plain upsert).
Once the day is over, this job flips such records to completed and runs the
incremental streak update for them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..domain.recurrence import STREAK_LOOKBACK_DAYS
from ..errors import HabitStreakError
from ..infra.unit_of_work import SQLModelUnitOfWork, TransactionScope
from ..logging_config import get_logger
from .streaks import apply_incremental

logger = get_logger("jobs.auto_complete")


@dataclass
class AutoCompleteResult:
    """One record completed by the job."""

    record_id: int
    habit_id: int
    habit_name: str
    user_id: int
    day: date
    value: float
    target_value: float


def auto_complete_numeric_habits(
    uow: SQLModelUnitOfWork,
    *,
    today: Optional[date] = None,
    max_lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> list[AutoCompleteResult]:
    """Complete yesterday's NUMERIC records whose value reached the target."""

    started = time.monotonic()
    today = today or date.today()
    yesterday = today - timedelta(days=1)

    candidates = uow.run_in_transaction(
        lambda tx: tx.ledger.find_auto_complete_candidates(yesterday)
    )
    logger.info("Auto-complete found %d records to check for %s", len(candidates), yesterday)

    completed: list[AutoCompleteResult] = []
    for record, habit in candidates:
        if record.value is None or habit.target_value is None:
            continue
        if record.value < habit.target_value:
            continue

        def work(tx: TransactionScope, habit_id: int = habit.id, user_id: int = habit.user_id):
            fresh_habit = tx.habits.find_active_by_id(habit_id, user_id=user_id)
            fresh_record = tx.ledger.find_by_key(habit_id, yesterday, user_id=user_id)
            if fresh_habit is None or fresh_record is None or fresh_record.completed:
                return None
            tx.ledger.upsert(
                habit_id,
                yesterday,
                user_id=user_id,
                completed=True,
                value=fresh_record.value,
                notes=fresh_record.notes,
            )
            apply_incremental(
                fresh_habit, yesterday, True, today=today, max_lookback_days=max_lookback_days
            )
            tx.habits.save(fresh_habit)
            return fresh_habit

        try:
            updated = uow.run_in_transaction(work, habit_id=habit.id)
        except HabitStreakError:
            logger.error("Auto-complete failed for record %s", record.id, exc_info=True)
            continue
        if updated is None:
            continue

        completed.append(
            AutoCompleteResult(
                record_id=record.id,
                habit_id=habit.id,
                habit_name=habit.name,
                user_id=habit.user_id,
                day=yesterday,
                value=record.value,
                target_value=habit.target_value,
            )
        )
        logger.info(
            "Auto-completed %r (%s/%s)", habit.name, record.value, habit.target_value
        )

    elapsed_ms = (time.monotonic() - started) * 1000
    logger.info(
        "Auto-complete finished in %.0fms; completed %d records", elapsed_ms, len(completed)
    )
    return completed


__all__ = ["AutoCompleteResult", "auto_complete_numeric_habits"]
