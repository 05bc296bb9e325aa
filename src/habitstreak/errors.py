"""Error taxonomy shared by the streak engine and its callers.

Each error carries the HTTP-style ``status_code`` an outer API layer should
answer with; messages are written for end users.
"""

from __future__ import annotations


class HabitStreakError(Exception):
    """Base class for failures raised by the streak engine."""

    status_code = 500

    def __init__(self, message: str = "Something went wrong") -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(HabitStreakError, ValueError):
    """Caller-fixable validation failure; nothing was written."""

    status_code = 400

    def __init__(self, message: str = "Bad Request") -> None:
        super().__init__(message)


class NotFoundError(HabitStreakError, LookupError):
    """Habit missing, inactive, or owned by another user."""

    status_code = 404

    def __init__(self, message: str = "Not Found") -> None:
        super().__init__(message)


class ConflictError(HabitStreakError):
    """Another writer updated the habit between our read and our write."""

    status_code = 409

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message)


class TransactionError(HabitStreakError):
    """The storage layer failed mid-transaction; the whole unit was rolled back."""

    status_code = 500


__all__ = [
    "BadRequestError",
    "ConflictError",
    "HabitStreakError",
    "NotFoundError",
    "TransactionError",
]
