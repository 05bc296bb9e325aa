"""Tests for incremental progress updates on NUMERIC habits."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitstreak.errors import BadRequestError

MONDAY = date(2024, 1, 1)


@pytest.fixture
def pages_habit(habit_factory):
    return habit_factory(name="Read", habit_type="NUMERIC", target_value=30, unit="pages")


def test_progress_accumulates_until_target(record_service, pages_habit):
    first = record_service.update_progress(pages_habit.id, 1, MONDAY, 10)
    assert first.record.value == 10
    assert first.record.completed is False
    assert first.progress_percentage == 33
    assert first.auto_completed is False
    assert first.current_streak == 0

    second = record_service.update_progress(pages_habit.id, 1, MONDAY, 20)
    assert second.record.value == 30
    assert second.record.completed is True
    assert second.progress_percentage == 100
    assert second.auto_completed is True
    assert second.current_streak == 1


def test_progress_percentage_rounds_half_up(record_service, habit_factory):
    habit = habit_factory(name="Water", habit_type="NUMERIC", target_value=8)
    result = record_service.update_progress(habit.id, 1, MONDAY, 1)
    # 12.5% rounds to 13
    assert result.progress_percentage == 13


def test_progress_caps_at_100(record_service, pages_habit):
    result = record_service.update_progress(pages_habit.id, 1, MONDAY, 45)
    assert result.progress_percentage == 100
    assert result.record.value == 45


def test_decrement_never_uncompletes(record_service, pages_habit, load_habit):
    record_service.update_progress(pages_habit.id, 1, MONDAY, 30)
    result = record_service.update_progress(pages_habit.id, 1, MONDAY, -10)

    assert result.record.value == 20
    assert result.record.completed is True
    assert result.auto_completed is False
    assert load_habit(pages_habit.id).current_streak == 1


def test_cannot_go_below_zero(record_service, pages_habit):
    record_service.update_progress(pages_habit.id, 1, MONDAY, 5)
    with pytest.raises(BadRequestError, match="below 0"):
        record_service.update_progress(pages_habit.id, 1, MONDAY, -6)
    record = record_service.get_record_by_date(pages_habit.id, 1, MONDAY)
    assert record.value == 5


def test_zero_increment_rejected(record_service, pages_habit):
    with pytest.raises(BadRequestError, match="non-zero"):
        record_service.update_progress(pages_habit.id, 1, MONDAY, 0)


def test_check_habit_rejected(record_service, habit_factory):
    habit = habit_factory()
    with pytest.raises(BadRequestError, match="only available for NUMERIC"):
        record_service.update_progress(habit.id, 1, MONDAY, 1)


def test_progress_respects_schedule(record_service, habit_factory):
    habit = habit_factory(
        name="Run", habit_type="NUMERIC", target_value=5, periodicity="WEEKLY", week_days=[1]
    )
    with pytest.raises(BadRequestError, match="not scheduled for Tuesday"):
        record_service.update_progress(habit.id, 1, MONDAY + timedelta(days=1), 1)


def test_progress_keeps_notes(record_service, pages_habit):
    record_service.upsert_record(pages_habit.id, 1, MONDAY, False, value=2, notes="on the train")
    result = record_service.update_progress(pages_habit.id, 1, MONDAY, 3)
    assert result.record.value == 5
    assert result.record.notes == "on the train"


def test_auto_completion_extends_streak(record_service, pages_habit, clock):
    record_service.upsert_record(pages_habit.id, 1, MONDAY, True, value=30)
    clock.today = MONDAY + timedelta(days=1)
    result = record_service.update_progress(pages_habit.id, 1, clock.today, 30)
    assert result.auto_completed is True
    assert result.current_streak == 2
    assert result.longest_streak == 2
