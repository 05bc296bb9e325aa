"""Recurrence rules and the scheduling predicate.

A habit's recurrence is one of four closed variants. ``is_due`` is pure: both
the incremental and the full-recalculation streak paths evaluate it
repeatedly and rely on identical answers for identical inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional, Union

from ..dates import day_name, day_of_week
from ..errors import BadRequestError

DEFAULT_MAX_LOOKBACK_DAYS = 30
# Covers the longest month, so a monthly habit due on day 1-28 always reaches
# the previous month's due day.
STREAK_LOOKBACK_DAYS = 31


def _weekday_set(week_days: Iterable[int]) -> frozenset[int]:
    days = frozenset(int(d) for d in week_days)
    invalid = sorted(d for d in days if not 0 <= d <= 6)
    if invalid:
        raise BadRequestError(f"Week days must be between 0 (Sunday) and 6 (Saturday), got {invalid}")
    return days


@dataclass(frozen=True)
class Daily:
    """Every day, or only the listed weekdays when any are given."""

    week_days: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "week_days", _weekday_set(self.week_days))


@dataclass(frozen=True)
class Weekly:
    """Only the listed weekdays; at least one is required."""

    week_days: frozenset[int]

    def __post_init__(self) -> None:
        days = _weekday_set(self.week_days)
        if not days:
            raise BadRequestError("Weekly habits need at least one scheduled weekday")
        object.__setattr__(self, "week_days", days)


@dataclass(frozen=True)
class Monthly:
    """Once a month, on the day-of-month the habit was created."""


@dataclass(frozen=True)
class Custom:
    """Listed weekdays; an empty set behaves like Daily."""

    week_days: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "week_days", _weekday_set(self.week_days))


Recurrence = Union[Daily, Weekly, Monthly, Custom]

_KINDS = {
    "DAILY": Daily,
    "WEEKLY": Weekly,
    "MONTHLY": Monthly,
    "CUSTOM": Custom,
}


def recurrence_from_fields(periodicity: str, week_days: Optional[Iterable[int]] = None) -> Recurrence:
    """Build the recurrence variant from a stored periodicity and weekday list."""

    raw = getattr(periodicity, "value", periodicity)
    kind = _KINDS.get(str(raw).upper())
    if kind is None:
        raise BadRequestError(f"Invalid periodicity: {periodicity!r}")
    if kind is Monthly:
        return Monthly()
    return kind(frozenset(week_days or ()))


def periodicity_of(recurrence: Recurrence) -> str:
    """Inverse of :func:`recurrence_from_fields` for the periodicity column."""

    for name, kind in _KINDS.items():
        if isinstance(recurrence, kind):
            return name
    raise BadRequestError(f"Unrecognized recurrence kind: {type(recurrence).__name__}")


def is_due(recurrence: Recurrence, created_at: date, day: date) -> bool:
    """Return True when the habit is scheduled on ``day``."""

    if isinstance(recurrence, (Daily, Custom)):
        return not recurrence.week_days or day_of_week(day) in recurrence.week_days
    if isinstance(recurrence, Weekly):
        return day_of_week(day) in recurrence.week_days
    if isinstance(recurrence, Monthly):
        return day.day == created_at.day
    raise BadRequestError(f"Unrecognized recurrence kind: {type(recurrence).__name__}")


def find_previous_due(
    recurrence: Recurrence,
    created_at: date,
    from_day: date,
    max_lookback_days: int = DEFAULT_MAX_LOOKBACK_DAYS,
) -> date | None:
    """Closest due day strictly before ``from_day``, searching a bounded window.

    Returns None when the walk reaches a day before the habit existed or no due
    day falls within ``max_lookback_days``.
    """

    for offset in range(1, max_lookback_days + 1):
        candidate = from_day - timedelta(days=offset)
        if candidate < created_at:
            return None
        if is_due(recurrence, created_at, candidate):
            return candidate
    return None


def describe_schedule(recurrence: Recurrence, created_at: date) -> str:
    """Readable summary of when the habit is due."""

    if isinstance(recurrence, Monthly):
        return f"day {created_at.day} of each month"
    if isinstance(recurrence, (Daily, Weekly, Custom)) and recurrence.week_days:
        return ", ".join(day_name(d) for d in sorted(recurrence.week_days))
    return "every day"


def not_scheduled_message(recurrence: Recurrence, created_at: date, day: date) -> str:
    """Rejection text naming the valid schedule, for clients to show as-is."""

    if isinstance(recurrence, Monthly):
        return (
            f"This habit is not scheduled for {day.isoformat()}. "
            f"Scheduled: {describe_schedule(recurrence, created_at)}"
        )
    return (
        f"This habit is not scheduled for {day_name(day_of_week(day))}. "
        f"Scheduled days: {describe_schedule(recurrence, created_at)}"
    )


__all__ = [
    "Custom",
    "DEFAULT_MAX_LOOKBACK_DAYS",
    "Daily",
    "Monthly",
    "Recurrence",
    "STREAK_LOOKBACK_DAYS",
    "Weekly",
    "describe_schedule",
    "find_previous_due",
    "is_due",
    "not_scheduled_message",
    "periodicity_of",
    "recurrence_from_fields",
]
