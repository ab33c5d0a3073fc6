"""Domain errors raised by the pacing engine and its stores."""

from typing import Any


class PacerError(Exception):
    """Base class for study-pacer errors."""


class ConfigurationError(PacerError):
    """Required profile fields are missing; the learner must finish setup."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class ContentUnavailableError(PacerError):
    """The content bank has no usable questions."""


class PersistenceError(PacerError):
    """A store read or write failed.

    Args:
        message: Description of the failure.
        retryable: Whether repeating the call may succeed.
        submission: The learner's submitted completion, kept so it can be resubmitted.
    """

    def __init__(self, message: str, retryable: bool = True, submission: Any = None):
        super().__init__(message)
        self.retryable = retryable
        self.submission = submission


class ConcurrencyConflict(PacerError):
    """A concurrent write for the same user won the race."""


class GoalAlreadyCompletedError(ConcurrencyConflict):
    """The goal was already completed."""

    def __init__(self, goal_id: str):
        super().__init__(f"Goal {goal_id} is already completed")
        self.goal_id = goal_id


class GoalNotFoundError(PacerError):
    """No goal record matches the request."""
