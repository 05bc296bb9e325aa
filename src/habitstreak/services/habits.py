"""Habit creation with recurrence and value-type validation."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..dates import normalize_day
from ..domain.recurrence import Custom, Daily, Monthly, Weekly, periodicity_of, recurrence_from_fields
from ..errors import BadRequestError
from ..infra.unit_of_work import SQLModelUnitOfWork
from ..models.habit import Habit, HabitType


def create_habit(
    uow: SQLModelUnitOfWork,
    *,
    user_id: int,
    name: str,
    habit_type: str = HabitType.CHECK.value,
    periodicity: str = "DAILY",
    week_days: Optional[Iterable[int]] = None,
    target_value: Optional[float] = None,
    unit: Optional[str] = None,
    description: str = "",
    created_at: Optional[date] = None,
) -> Habit:
    """Validate and persist a new habit with an empty streak."""

    name = (name or "").strip()
    if not name:
        raise BadRequestError("Habit name is required")
    try:
        kind = HabitType(str(getattr(habit_type, "value", habit_type)).upper())
    except ValueError as exc:
        raise BadRequestError(f"Invalid habit type: {habit_type!r}") from exc
    if kind is HabitType.CHECK and target_value is not None:
        raise BadRequestError("CHECK habits cannot have a target value")
    if target_value is not None and target_value <= 0:
        raise BadRequestError("Target value must be a positive number")

    # Building the variant validates weekdays and the periodicity name.
    recurrence = recurrence_from_fields(periodicity, week_days)
    stored_days = (
        sorted(recurrence.week_days) if isinstance(recurrence, (Daily, Weekly, Custom)) else []
    )
    if isinstance(recurrence, Monthly) and week_days:
        raise BadRequestError("Monthly habits do not take week days")

    habit = Habit(
        name=name,
        description=description,
        habit_type=kind.value,
        target_value=target_value,
        unit=unit,
        periodicity=periodicity_of(recurrence),
        week_days=stored_days,
        created_at=normalize_day(created_at) if created_at else date.today(),
    )
    return uow.run_in_transaction(lambda tx: tx.habits.create(habit, user_id=user_id))


__all__ = ["create_habit"]
