"""Background task scheduler for the nightly auto-complete job."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .errors import HabitStreakError
from .logging_config import get_logger
from .services.auto_complete import auto_complete_numeric_habits

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("scheduler")

AUTO_COMPLETE_JOB_ID = "auto_complete_numeric_habits"


class HabitScheduler:
    """Manages the background jobs that keep streak data consistent."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with the unit of work and config
        """
        self.ctx = ctx
        self.scheduler: APScheduler | None = None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler()
        config = self.ctx.config

        if config.AUTO_COMPLETE_ENABLED:
            self.scheduler.add_job(
                func=self._run_auto_complete,
                trigger=CronTrigger(
                    hour=config.AUTO_COMPLETE_HOUR, minute=config.AUTO_COMPLETE_MINUTE
                ),
                id=AUTO_COMPLETE_JOB_ID,
                name="Auto-complete NUMERIC habits",
                replace_existing=True,
            )
            logger.info(
                "Scheduled auto-complete at %02d:%02d",
                config.AUTO_COMPLETE_HOUR,
                config.AUTO_COMPLETE_MINUTE,
            )

        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def job_ids(self) -> list[str]:
        """Identifiers of the registered jobs."""
        if self.scheduler is None:
            return []
        return [job.id for job in self.scheduler.get_jobs()]

    def _run_auto_complete(self) -> None:
        """Execute the auto-complete task."""
        try:
            results = auto_complete_numeric_habits(
                self.ctx.unit_of_work,
                max_lookback_days=self.ctx.config.MAX_LOOKBACK_DAYS,
            )
        except HabitStreakError as exc:
            logger.error(f"Scheduled auto-complete failed: {exc}", exc_info=True)
            return

        if results:
            for result in results:
                logger.info(
                    f"  - {result.habit_name}: {result.value}/{result.target_value} "
                    f"on {result.day.isoformat()}"
                )
        else:
            logger.info("No habits needed auto-completion")


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> HabitScheduler:
    """Create and optionally start a background scheduler.

    Args:
        ctx: Application context
        auto_start: Whether to start the scheduler immediately

    Returns:
        HabitScheduler instance
    """
    scheduler = HabitScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
