"""Per-habit statistics derived from the ledger and the scheduling predicate."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from ..domain.recurrence import is_due
from ..models.habit import Habit, HabitRecord

STATS_WINDOW_DAYS = 30


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for non-negative values (12.5 -> 13)."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def percentage(part: float, whole: float) -> int:
    """Whole-number percentage of ``part`` over ``whole``; 0 when nothing is due."""
    if not whole:
        return 0
    return int(round_half_up(part / whole * 100))


@dataclass
class DayStat:
    """One calendar day in the recent-activity window."""

    day: date
    completed: bool
    value: Optional[float]
    should_complete: bool


@dataclass
class HabitStats:
    """Completion statistics for one habit as of ``today``."""

    current_streak: int
    longest_streak: int
    total_completions: int
    overall_completion_rate: int
    last_30_days_rate: int
    last_30_days: list[DayStat] = field(default_factory=list)
    # NUMERIC habits only
    average_value: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None


def compute_habit_stats(habit: Habit, records: Iterable[HabitRecord], *, today: date) -> HabitStats:
    """Build statistics from a habit's full record history.

    Rates count only days the habit was due, from its creation day onwards;
    completions on days that were not due add to the total but not the rates.
    """

    records = list(records)
    recurrence = habit.recurrence
    by_day = {record.occurred_on: record for record in records}
    completed_days = {record.occurred_on for record in records if record.completed}

    due = done = 0
    cursor = habit.created_at
    while cursor <= today:
        if is_due(recurrence, habit.created_at, cursor):
            due += 1
            done += cursor in completed_days
        cursor += timedelta(days=1)

    window: list[DayStat] = []
    window_due = window_done = 0
    for offset in range(STATS_WINDOW_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        record = by_day.get(day)
        completed = bool(record and record.completed)
        should_complete = day >= habit.created_at and is_due(recurrence, habit.created_at, day)
        if should_complete:
            window_due += 1
            window_done += completed
        window.append(
            DayStat(
                day=day,
                completed=completed,
                value=record.value if record else None,
                should_complete=should_complete,
            )
        )

    stats = HabitStats(
        current_streak=habit.current_streak,
        longest_streak=habit.longest_streak,
        total_completions=len(completed_days),
        overall_completion_rate=percentage(done, due),
        last_30_days_rate=percentage(window_done, window_due),
        last_30_days=window,
    )

    if habit.is_numeric:
        values = [record.value for record in records if record.value is not None]
        if values:
            stats.average_value = round_half_up(sum(values) / len(values), 2)
            stats.min_value = min(values)
            stats.max_value = max(values)

    return stats


__all__ = ["DayStat", "HabitStats", "compute_habit_stats", "percentage", "round_half_up"]
