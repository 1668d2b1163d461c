"""
Error taxonomy for mastery tracking.

- ValidationError: input outside its contractual range, raised before any mutation
- NotFoundError: a record that must already exist is missing
- ConcurrencyConflict: an update lost a race on the same mastery record
"""

from __future__ import annotations


class MasteryError(Exception):
    """Base class for all mastery tracking errors."""


class ValidationError(MasteryError, ValueError):
    """Raised when a quality, difficulty or probability is out of range."""


class NotFoundError(MasteryError, LookupError):
    """Raised when an explicit lookup addresses a record that does not exist."""


class ConcurrencyConflict(MasteryError):
    """
    Raised when a mastery record was modified by a concurrent attempt.

    The coordinator retries these transparently; callers only see one
    after the retry budget is exhausted.
    """

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts
