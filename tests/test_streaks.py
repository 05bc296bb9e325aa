"""Tests for the incremental and full streak algorithms.

These run against in-memory habits and a dictionary-backed ledger so the
streak rules are checked without a database:
- Consecutive completions extend the streak
- Gaps restart it
- Un-completing resets the current streak but never the longest
- Weekday schedules skip non-due days
- A full recalculation agrees with replaying marks in order
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitstreak.domain.recurrence import Daily, Weekly
from habitstreak.models.habit import Habit
from habitstreak.services.streaks import (
    apply_incremental,
    count_current_streak,
    count_longest_streak,
    recalculate_full,
)

MONDAY = date(2024, 1, 1)


def day(n: int) -> date:
    return MONDAY + timedelta(days=n)


def make_habit(
    periodicity: str = "DAILY",
    week_days: list[int] | None = None,
    created_at: date = MONDAY,
) -> Habit:
    return Habit(
        id=1,
        user_id=1,
        name="Exercise",
        periodicity=periodicity,
        week_days=week_days or [],
        created_at=created_at,
    )


class InMemoryLedger:
    """Completed-day lookups over a plain dict of day -> completed."""

    def __init__(self, marks: dict[date, bool] | None = None):
        self.marks = dict(marks or {})

    def find_completed_dates_in_range(self, habit_id, start, end, *, user_id):
        return {d for d, done in self.marks.items() if done and start <= d <= end}

    def find_all_completed_dates(self, habit_id, *, user_id):
        return {d for d, done in self.marks.items() if done}


class TestApplyIncremental:
    def test_first_completion_starts_streak(self):
        habit = apply_incremental(make_habit(), day(0), True, today=day(0))
        assert habit.current_streak == 1
        assert habit.longest_streak == 1
        assert habit.last_completed_date == day(0)

    def test_consecutive_days_extend_streak(self):
        habit = make_habit()
        for n in range(4):
            apply_incremental(habit, day(n), True, today=day(n))
        assert habit.current_streak == 4
        assert habit.longest_streak == 4

    def test_remarking_same_day_is_idempotent(self):
        habit = make_habit()
        apply_incremental(habit, day(0), True, today=day(0))
        apply_incremental(habit, day(1), True, today=day(1))
        apply_incremental(habit, day(1), True, today=day(1))
        assert habit.current_streak == 2
        assert habit.longest_streak == 2

    def test_gap_restarts_streak(self):
        habit = make_habit()
        apply_incremental(habit, day(0), True, today=day(0))
        apply_incremental(habit, day(1), True, today=day(1))
        apply_incremental(habit, day(3), True, today=day(3))
        assert habit.current_streak == 1
        assert habit.longest_streak == 2

    def test_uncomplete_resets_current_and_keeps_last_completed(self):
        habit = make_habit()
        apply_incremental(habit, day(0), True, today=day(0))
        apply_incremental(habit, day(1), True, today=day(1))
        apply_incremental(habit, day(1), False, today=day(1))
        assert habit.current_streak == 0
        assert habit.longest_streak == 2
        assert habit.last_completed_date == day(1)

    def test_older_completion_restarts_at_one(self):
        habit = make_habit()
        apply_incremental(habit, day(5), True, today=day(5))
        apply_incremental(habit, day(2), True, today=day(5))
        assert habit.current_streak == 1
        assert habit.last_completed_date == day(2)

    def test_weekly_schedule_skips_unscheduled_days(self):
        habit = make_habit("WEEKLY", [1, 3, 5])
        for n in (0, 2, 4):  # Monday, Wednesday, Friday
            apply_incremental(habit, day(n), True, today=day(n))
        assert habit.current_streak == 3

    def test_weekly_missed_due_day_breaks_streak(self):
        habit = make_habit("WEEKLY", [1, 3, 5])
        apply_incremental(habit, day(0), True, today=day(0))
        apply_incremental(habit, day(4), True, today=day(4))
        assert habit.current_streak == 1

    def test_longest_never_decreases(self):
        habit = make_habit()
        pattern = [True, True, True, False, True, False, True, True]
        longest_seen = 0
        for n, completed in enumerate(pattern):
            apply_incremental(habit, day(n), completed, today=day(n))
            assert habit.longest_streak >= longest_seen
            assert habit.longest_streak >= habit.current_streak
            longest_seen = habit.longest_streak


class TestCounting:
    def test_current_walk_stops_at_first_miss(self):
        completed = {day(0), day(2), day(3)}
        assert count_current_streak(Daily(), MONDAY, completed, today=day(3)) == 2

    def test_current_is_zero_when_today_not_completed(self):
        completed = {day(0), day(1)}
        assert count_current_streak(Daily(), MONDAY, completed, today=day(2)) == 0

    def test_current_respects_stop_before(self):
        completed = {day(n) for n in range(6)}
        assert count_current_streak(Daily(), MONDAY, completed, today=day(5), stop_before=day(3)) == 3

    def test_current_skips_non_due_days(self):
        weekly = Weekly(frozenset({1, 3, 5}))
        completed = {day(0), day(2), day(4)}
        assert count_current_streak(weekly, MONDAY, completed, today=day(6)) == 3

    def test_longest_finds_best_run(self):
        completed = {day(0), day(1), day(3), day(4), day(5), day(7)}
        assert count_longest_streak(Daily(), MONDAY, completed, today=day(8)) == 3

    def test_longest_empty(self):
        assert count_longest_streak(Daily(), MONDAY, set(), today=day(3)) == 0


class TestRecalculateFull:
    def test_retroactive_uncomplete_splits_streak(self):
        habit = make_habit()
        marks = {day(n): True for n in range(5)}
        for n in range(5):
            apply_incremental(habit, day(n), True, today=day(n))
        assert habit.current_streak == 5

        marks[day(2)] = False
        recalculate_full(habit, day(2), ledger=InMemoryLedger(marks), today=day(4))

        assert habit.current_streak == 2
        assert habit.longest_streak == 5
        assert habit.last_completed_date == day(4)

    def test_retroactive_fill_joins_runs(self):
        habit = make_habit()
        marks = {day(0): True, day(1): True, day(3): True, day(4): True}
        for d in sorted(marks):
            apply_incremental(habit, d, True, today=d)
        assert habit.current_streak == 2

        marks[day(2)] = True
        recalculate_full(habit, day(2), ledger=InMemoryLedger(marks), today=day(4))

        # The current walk stops at the edited day.
        assert habit.current_streak == 3
        assert habit.longest_streak == 5

    def test_empty_window_clears_last_completed(self):
        habit = make_habit()
        apply_incremental(habit, day(0), True, today=day(0))
        recalculate_full(habit, day(0), ledger=InMemoryLedger({day(0): False}), today=day(0))
        assert habit.current_streak == 0
        assert habit.last_completed_date is None
        assert habit.longest_streak == 1

    @pytest.mark.parametrize(
        "pattern",
        [
            [True, True, True, True],
            [True, False, True, True],
            [True, True, False, False, True],
            [False, True, True, True, False, True],
        ],
    )
    def test_full_recalculation_matches_incremental_replay(self, pattern):
        incremental = make_habit()
        marks: dict[date, bool] = {}
        for n, completed in enumerate(pattern):
            marks[day(n)] = completed
            apply_incremental(incremental, day(n), completed, today=day(n))

        last_day = day(len(pattern) - 1)
        rebuilt = make_habit()
        recalculate_full(rebuilt, MONDAY, ledger=InMemoryLedger(marks), today=last_day)

        assert rebuilt.current_streak == incremental.current_streak
        assert rebuilt.longest_streak == incremental.longest_streak

    def test_monthly_replay_across_a_31_day_gap_matches_full(self):
        created = date(2024, 1, 15)
        marked = [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]

        incremental = make_habit("MONTHLY", created_at=created)
        for d in marked:
            apply_incremental(incremental, d, True, today=d)

        rebuilt = make_habit("MONTHLY", created_at=created)
        recalculate_full(
            rebuilt,
            created,
            ledger=InMemoryLedger({d: True for d in marked}),
            today=marked[-1],
        )

        assert (incremental.current_streak, incremental.longest_streak) == (3, 3)
        assert (rebuilt.current_streak, rebuilt.longest_streak) == (3, 3)
