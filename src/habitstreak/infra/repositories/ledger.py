"""SQLModel implementation of the completion ledger."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.habit import Habit, HabitRecord, HabitType


class SQLModelCompletionLedger:
    """SQLModel-based ledger of per-day habit completion records."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def _key_statement(self, habit_id: int, occurred_on: date, user_id: int):
        return (
            select(HabitRecord)
            .where(HabitRecord.user_id == user_id)
            .where(HabitRecord.habit_id == habit_id)
            .where(HabitRecord.occurred_on == occurred_on)
        )

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
        with self.session_factory() as session:
            record = session.exec(self._key_statement(habit_id, occurred_on, user_id)).first()
            if record is None:
                record = HabitRecord(habit_id=habit_id, user_id=user_id, occurred_on=occurred_on)
            else:
                record.updated_at = datetime.now(timezone.utc)
            record.completed = completed
            record.value = value
            record.notes = notes
            session.add(record)
            session.flush()
            session.refresh(record)
            session.expunge(record)
            return record

    def find_by_key(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitRecord]:
        """Get the record for one day, if any."""
        with self.session_factory() as session:
            obj = session.exec(self._key_statement(habit_id, occurred_on, user_id)).first()
            if obj:
                session.expunge(obj)
            return obj

    def find_completed_dates_in_range(
        self, habit_id: int, start: date, end: date, *, user_id: int
    ) -> set[date]:
        """Days marked completed between start and end inclusive."""
        with self.session_factory() as session:
            statement = (
                select(HabitRecord.occurred_on)
                .where(HabitRecord.user_id == user_id)
                .where(HabitRecord.habit_id == habit_id)
                .where(HabitRecord.completed == True)  # noqa: E712
                .where(HabitRecord.occurred_on >= start)
                .where(HabitRecord.occurred_on <= end)
            )
            return set(session.exec(statement).all())

    def find_all_completed_dates(self, habit_id: int, *, user_id: int) -> set[date]:
        """Every day ever marked completed."""
        with self.session_factory() as session:
            statement = (
                select(HabitRecord.occurred_on)
                .where(HabitRecord.user_id == user_id)
                .where(HabitRecord.habit_id == habit_id)
                .where(HabitRecord.completed == True)  # noqa: E712
            )
            return set(session.exec(statement).all())

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
        with self.session_factory() as session:
            statement = (
                select(HabitRecord)
                .where(HabitRecord.user_id == user_id)
                .where(HabitRecord.habit_id == habit_id)
                .where(HabitRecord.occurred_on >= start)
                .where(HabitRecord.occurred_on <= end)
                .order_by(HabitRecord.occurred_on.desc())  # type: ignore[attr-defined]
                .offset(offset)
            )
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            for row in rows:
                session.expunge(row)
            return rows

    def list_all(self, habit_id: int, *, user_id: int) -> list[HabitRecord]:
        """Every record of the habit, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(HabitRecord)
                .where(HabitRecord.user_id == user_id)
                .where(HabitRecord.habit_id == habit_id)
                .order_by(HabitRecord.occurred_on)
            )
            rows = list(session.exec(statement).all())
            for row in rows:
                session.expunge(row)
            return rows

    def count_in_range(self, habit_id: int, start: date, end: date, *, user_id: int) -> int:
        """Number of records between start and end inclusive."""
        with self.session_factory() as session:
            statement = (
                select(func.count())
                .select_from(HabitRecord)
                .where(HabitRecord.user_id == user_id)
                .where(HabitRecord.habit_id == habit_id)
                .where(HabitRecord.occurred_on >= start)
                .where(HabitRecord.occurred_on <= end)
            )
            return int(session.exec(statement).one())

    def find_auto_complete_candidates(self, occurred_on: date) -> list[tuple[HabitRecord, Habit]]:
        """Incomplete records of active NUMERIC habits that have a target."""
        with self.session_factory() as session:
            statement = (
                select(HabitRecord, Habit)
                .join(Habit, Habit.id == HabitRecord.habit_id)  # type: ignore[arg-type]
                .where(HabitRecord.occurred_on == occurred_on)
                .where(HabitRecord.completed == False)  # noqa: E712
                .where(Habit.is_active == True)  # noqa: E712
                .where(Habit.habit_type == HabitType.NUMERIC.value)
                .where(Habit.target_value != None)  # noqa: E711
            )
            rows = [(record, habit) for record, habit in session.exec(statement).all()]
            session.expunge_all()
            return rows
