"""Transaction boundary shared by the record orchestrator and background jobs."""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..domain.repositories import CompletionLedger, HabitRepository
from ..errors import TransactionError
from ..logging_config import get_logger
from .repositories import SQLModelCompletionLedger, SQLModelHabitRepository

logger = get_logger("unit_of_work")

T = TypeVar("T")


@dataclass
class TransactionScope:
    """Repositories bound to the single session of one unit of work."""

    session: Session
    habits: HabitRepository
    ledger: CompletionLedger


class SQLModelUnitOfWork:
    """Run callables atomically: everything commits together or nothing does.

    Calls that name a ``habit_id`` are serialized per habit, so the
    read-modify-write of the cached streak fields never interleaves within
    this process. Writers elsewhere are caught by the version check in
    :meth:`SQLModelHabitRepository.save`.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        # Entries vanish once no transaction holds the lock.
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def _lock_for(self, habit_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(habit_id)
            if lock is None:
                lock = self._locks[habit_id] = threading.Lock()
            return lock

    @contextmanager
    def _scope(self) -> Iterator[TransactionScope]:
        session = Session(self.engine, expire_on_commit=False)
        bound = lambda: nullcontext(session)  # noqa: E731
        try:
            yield TransactionScope(
                session=session,
                habits=SQLModelHabitRepository(bound),
                ledger=SQLModelCompletionLedger(bound),
            )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Transaction rolled back after storage failure", exc_info=True)
            raise TransactionError("Could not save changes; nothing was committed") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def run_in_transaction(
        self, fn: Callable[[TransactionScope], T], *, habit_id: Optional[int] = None
    ) -> T:
        """Call ``fn`` with a transaction scope and commit its writes atomically."""
        guard = self._lock_for(habit_id) if habit_id is not None else nullcontext()
        with guard:
            with self._scope() as scope:
                return fn(scope)
