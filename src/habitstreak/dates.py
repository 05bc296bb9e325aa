"""Calendar-day helpers.

Every day the engine stores or compares is a plain ``datetime.date``; that is
the one canonical value per calendar day, so equality never drifts across
timezone conversions.
"""

from __future__ import annotations

from datetime import date, datetime

from .errors import BadRequestError

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def normalize_day(value: date | datetime | str) -> date:
    """Return the calendar day for a date, datetime, or ISO-8601 string."""

    # datetime is a date subclass; check it first.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            if "T" in raw or " " in raw:
                return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
            return date.fromisoformat(raw)
        except ValueError as exc:
            raise BadRequestError(f"Invalid date format: {value!r}") from exc

    raise BadRequestError(f"Invalid date value: {value!r}")


def day_of_week(day: date) -> int:
    """Day-of-week number with 0=Sunday … 6=Saturday."""

    return day.isoweekday() % 7


def day_name(dow: int) -> str:
    """Human-readable weekday name for a 0=Sunday day number."""

    if 0 <= dow < len(DAY_NAMES):
        return DAY_NAMES[dow]
    return "Unknown"


__all__ = ["DAY_NAMES", "day_name", "day_of_week", "normalize_day"]
