"""Concrete repository implementations using SQLModel."""

from .habit import SQLModelHabitRepository
from .ledger import SQLModelCompletionLedger

__all__ = [
    "SQLModelCompletionLedger",
    "SQLModelHabitRepository",
]
