"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.unit_of_work import SQLModelUnitOfWork
from .services.records import HabitRecordService


@dataclass
class AppContext:
    """Wired engine, unit of work and services for one process."""

    config: BaseConfig
    engine: Engine
    session_factory: Callable[[], Session]
    unit_of_work: SQLModelUnitOfWork
    records: HabitRecordService


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    unit_of_work = SQLModelUnitOfWork(engine)
    records = HabitRecordService(
        unit_of_work,
        max_lookback_days=config.MAX_LOOKBACK_DAYS,
        notes_max_length=config.NOTES_MAX_LENGTH,
        marking_window_days=config.MARKING_WINDOW_DAYS,
        history_default_days=config.HISTORY_DEFAULT_DAYS,
    )

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        unit_of_work=unit_of_work,
        records=records,
    )
