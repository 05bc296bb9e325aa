"""Streak algorithms: a cheap incremental path and a full recalculation.

The cached ``current_streak``/``longest_streak`` on a habit are a function of
its ledger history. ``apply_incremental`` keeps that cache up to date for the
common append-at-the-end case using only the cached state;
``recalculate_full`` rebuilds it from the ledger and is the source of truth
whenever a past day is edited.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import AbstractSet, Optional

from ..dates import normalize_day
from ..domain.recurrence import (
    STREAK_LOOKBACK_DAYS,
    Recurrence,
    find_previous_due,
    is_due,
)
from ..domain.repositories import CompletionLedger
from ..logging_config import get_logger
from ..models.habit import Habit

logger = get_logger("streaks")


def apply_incremental(
    habit: Habit,
    day: date,
    completed: bool,
    *,
    today: Optional[date] = None,
    max_lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> Habit:
    """Update the habit's cached streak after one mark, using only cached state.

    Must run inside the transaction that upserted the day's record, on the
    habit as loaded at the start of that transaction. Past-dated marks are
    approximated here; use :func:`recalculate_full` for retroactive edits.
    """

    day = normalize_day(day)
    today = today or date.today()
    previous_current = habit.current_streak
    last = habit.last_completed_date

    if completed:
        if last is None:
            current = 1
        elif day == last:
            current = habit.current_streak
        elif day > last:
            prev_due = find_previous_due(
                habit.recurrence, habit.created_at, day, max_lookback_days
            )
            current = habit.current_streak + 1 if prev_due == last else 1
        else:
            # Older than the cached completion: the run is not inspected.
            current = 1
        habit.current_streak = current
        habit.last_completed_date = day
        habit.longest_streak = max(habit.longest_streak, current)
    else:
        # last_completed_date keeps pointing at the last day that was completed.
        if day != today:
            logger.debug("Un-completing past day %s for habit %s resets streak", day, habit.id)
        habit.current_streak = 0

    logger.info(
        "Streak updated incrementally",
        extra={
            "habit_id": habit.id,
            "day": day.isoformat(),
            "completed": completed,
            "previous_streak": previous_current,
            "current_streak": habit.current_streak,
            "longest_streak": habit.longest_streak,
        },
    )
    return habit


def count_current_streak(
    recurrence: Recurrence,
    created_at: date,
    completed_days: AbstractSet[date],
    *,
    today: date,
    stop_before: Optional[date] = None,
) -> int:
    """Count due-and-completed days walking back from today until the first miss.

    Days that are not due are skipped. The walk ends once it passes
    ``created_at`` or ``stop_before``.
    """

    floor = max(created_at, stop_before) if stop_before else created_at
    current = 0
    cursor = today
    while cursor >= floor:
        if is_due(recurrence, created_at, cursor):
            if cursor not in completed_days:
                break
            current += 1
        cursor -= timedelta(days=1)
    return current


def count_longest_streak(
    recurrence: Recurrence,
    created_at: date,
    completed_days: AbstractSet[date],
    *,
    today: date,
) -> int:
    """Longest run of consecutive completed due days between created_at and today."""

    longest = 0
    run = 0
    cursor = today
    while cursor >= created_at:
        if is_due(recurrence, created_at, cursor):
            if cursor in completed_days:
                run += 1
                longest = max(longest, run)
            else:
                run = 0
        cursor -= timedelta(days=1)
    return longest


def recalculate_full(
    habit: Habit,
    from_day: date,
    *,
    ledger: CompletionLedger,
    today: Optional[date] = None,
) -> Habit:
    """Rebuild the habit's streak cache from ledger history.

    The current streak only looks at completions from ``from_day`` to today;
    the longest streak scans the habit's whole history and never drops below
    the cached value, since a longest run that already happened stays achieved.
    """

    from_day = normalize_day(from_day)
    today = today or date.today()
    recurrence = habit.recurrence

    completed_recent = ledger.find_completed_dates_in_range(
        habit.id, from_day, today, user_id=habit.user_id
    )
    current = count_current_streak(
        recurrence,
        habit.created_at,
        completed_recent,
        today=today,
        stop_before=from_day,
    )

    completed_all = ledger.find_all_completed_dates(habit.id, user_id=habit.user_id)
    longest_candidate = count_longest_streak(
        recurrence, habit.created_at, completed_all, today=today
    )

    habit.current_streak = current
    habit.longest_streak = max(longest_candidate, habit.longest_streak)
    habit.last_completed_date = max(completed_recent) if completed_recent else None

    logger.info(
        "Streak recalculated",
        extra={
            "habit_id": habit.id,
            "from_day": from_day.isoformat(),
            "current_streak": habit.current_streak,
            "longest_streak": habit.longest_streak,
            "longest_candidate": longest_candidate,
        },
    )
    return habit


__all__ = [
    "apply_incremental",
    "count_current_streak",
    "count_longest_streak",
    "recalculate_full",
]
