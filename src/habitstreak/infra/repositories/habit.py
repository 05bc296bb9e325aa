"""SQLModel implementation of the Habit repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ...errors import ConflictError
from ...logging_config import get_logger
from ...models.habit import Habit

logger = get_logger("repositories.habit")


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def find_active_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve an active habit owned by the user."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(
                    Habit.id == habit_id,
                    Habit.user_id == user_id,
                    Habit.is_active == True,  # noqa: E712
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_active(self, *, user_id: int) -> list[Habit]:
        """List the user's active habits."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .where(Habit.is_active == True)  # noqa: E712
                .order_by(Habit.name)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            for row in rows:
                session.expunge(row)
            return rows

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Persist a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.flush()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def save(self, habit: Habit) -> Habit:
        """Write the streak fields as a compare-and-swap on ``version``.

        Raises ConflictError when the stored version no longer matches the one
        this habit was loaded with.
        """
        expected = habit.version
        now = datetime.now(timezone.utc)
        with self.session_factory() as session:
            result = session.exec(  # type: ignore[call-overload]
                update(Habit)
                .where(Habit.id == habit.id)  # type: ignore[arg-type]
                .where(Habit.version == expected)  # type: ignore[arg-type]
                .values(
                    current_streak=habit.current_streak,
                    longest_streak=habit.longest_streak,
                    last_completed_date=habit.last_completed_date,
                    version=expected + 1,
                    updated_at=now,
                )
            )
            if result.rowcount != 1:
                logger.warning(
                    "Habit %s changed concurrently (expected version %s)", habit.id, expected
                )
                raise ConflictError("Habit was modified by another request; please retry")
        habit.version = expected + 1
        habit.updated_at = now
        return habit
