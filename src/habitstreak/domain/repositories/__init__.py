"""Repository protocol definitions for domain layer."""

from .habit import CompletionLedger, HabitRepository

__all__ = [
    "CompletionLedger",
    "HabitRepository",
]
