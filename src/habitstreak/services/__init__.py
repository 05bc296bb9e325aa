"""Service module exports."""

from . import auto_complete, habits, records, stats, streaks

__all__ = [
    "auto_complete",
    "habits",
    "records",
    "stats",
    "streaks",
]
