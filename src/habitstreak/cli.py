"""Operator CLI for HabitStreak."""

from __future__ import annotations

import time
from typing import Optional

import click

from .context import create_app_context
from .errors import HabitStreakError
from .infra.repositories import SQLModelHabitRepository
from .logging_config import get_logger, setup_logging
from .scheduler import create_scheduler
from .services.auto_complete import auto_complete_numeric_habits
from .services.habits import create_habit

logger = get_logger("cli")


def _context():
    ctx = create_app_context()
    setup_logging(ctx.config)
    return ctx


def _parse_week_days(raw: Optional[str]) -> list[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise click.BadParameter("week days must be comma-separated numbers 0-6") from exc


@click.group()
def main() -> None:
    """Habit streak maintenance commands."""


@main.command("init-db")
def init_db() -> None:
    """Create the database schema."""

    ctx = _context()
    click.echo(f"Database ready: {ctx.config.DATABASE_URL}")


@main.command("add-habit")
@click.option("--user-id", type=int, required=True)
@click.option("--name", required=True)
@click.option("--type", "habit_type", type=click.Choice(["CHECK", "NUMERIC"], case_sensitive=False), default="CHECK")
@click.option(
    "--periodicity",
    type=click.Choice(["DAILY", "WEEKLY", "MONTHLY", "CUSTOM"], case_sensitive=False),
    default="DAILY",
)
@click.option("--week-days", default="", help="Comma-separated weekdays, 0=Sunday")
@click.option("--target", type=float, default=None, help="Target value for NUMERIC habits")
@click.option("--unit", default=None)
def add_habit(
    user_id: int,
    name: str,
    habit_type: str,
    periodicity: str,
    week_days: str,
    target: Optional[float],
    unit: Optional[str],
) -> None:
    """Create a habit."""

    ctx = _context()
    try:
        habit = create_habit(
            ctx.unit_of_work,
            user_id=user_id,
            name=name,
            habit_type=habit_type,
            periodicity=periodicity,
            week_days=_parse_week_days(week_days),
            target_value=target,
            unit=unit,
        )
    except HabitStreakError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Created habit {habit.id}: {habit.name}")


@main.command("list-habits")
@click.option("--user-id", type=int, required=True)
def list_habits(user_id: int) -> None:
    """Show a user's active habits with their streaks."""

    ctx = _context()
    habits = SQLModelHabitRepository(ctx.session_factory).list_active(user_id=user_id)
    if not habits:
        click.echo("No active habits.")
        return
    for habit in habits:
        last = habit.last_completed_date.isoformat() if habit.last_completed_date else "-"
        click.echo(
            f"{habit.id}\t{habit.name}\t{habit.periodicity}\t"
            f"current={habit.current_streak}\tlongest={habit.longest_streak}\tlast={last}"
        )


@main.command("mark")
@click.argument("habit_id", type=int)
@click.option("--user-id", type=int, required=True)
@click.option("--date", "day", required=True, help="Day to mark (YYYY-MM-DD)")
@click.option("--completed/--not-completed", default=True)
@click.option("--value", type=float, default=None)
@click.option("--notes", default=None)
@click.option("--retroactive", is_flag=True, help="Recalculate the streak from the ledger")
def mark(
    habit_id: int,
    user_id: int,
    day: str,
    completed: bool,
    value: Optional[float],
    notes: Optional[str],
    retroactive: bool,
) -> None:
    """Mark a habit for one day."""

    ctx = _context()
    try:
        if retroactive:
            result = ctx.records.mark_retroactively(habit_id, user_id, day, completed, value, notes)
        else:
            result = ctx.records.upsert_record(habit_id, user_id, day, completed, value, notes)
    except HabitStreakError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"current={result.current_streak} longest={result.longest_streak}")


@main.command("recalculate")
@click.argument("habit_id", type=int)
@click.option("--user-id", type=int, required=True)
@click.option("--from-date", default=None, help="Start of the window (default: habit creation)")
def recalculate(habit_id: int, user_id: int, from_date: Optional[str]) -> None:
    """Rebuild a habit's streak from its completion history."""

    ctx = _context()
    try:
        habit = ctx.records.recalculate_streaks(habit_id, user_id, from_date)
    except HabitStreakError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"current={habit.current_streak} longest={habit.longest_streak}")


@main.command("auto-complete")
def auto_complete() -> None:
    """Run the NUMERIC auto-complete job for yesterday now."""

    ctx = _context()
    results = auto_complete_numeric_habits(
        ctx.unit_of_work, max_lookback_days=ctx.config.MAX_LOOKBACK_DAYS
    )
    click.echo(f"Auto-completed {len(results)} records.")


@main.command("stats")
@click.argument("habit_id", type=int)
@click.option("--user-id", type=int, required=True)
def stats(habit_id: int, user_id: int) -> None:
    """Show completion statistics for a habit."""

    ctx = _context()
    try:
        result = ctx.records.get_habit_stats(habit_id, user_id)
    except HabitStreakError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"current={result.current_streak} longest={result.longest_streak}")
    click.echo(f"total={result.total_completions}")
    click.echo(
        f"completion={result.overall_completion_rate}% last30={result.last_30_days_rate}%"
    )
    if result.average_value is not None:
        click.echo(f"avg={result.average_value} min={result.min_value} max={result.max_value}")


@main.command("run-scheduler")
def run_scheduler() -> None:
    """Run the background jobs in the foreground until interrupted."""

    ctx = _context()
    scheduler = create_scheduler(ctx, auto_start=True)
    jobs = scheduler.job_ids()
    click.echo(f"Scheduler running with jobs: {', '.join(jobs) or 'none'}")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted")
    finally:
        scheduler.stop()
    click.echo("Scheduler stopped.")


if __name__ == "__main__":  # pragma: no cover
    main()
