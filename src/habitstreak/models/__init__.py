"""SQLModel table exports."""

from .habit import Habit, HabitRecord, HabitType, Periodicity

__all__ = [
    "Habit",
    "HabitRecord",
    "HabitType",
    "Periodicity",
]
