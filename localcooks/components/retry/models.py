"""
Retry component models.

Policy and error categories for the storage retrier.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of a failed storage call.

    Only TRANSIENT failures are worth another attempt.
    """

    AUTH = "auth"  # Bad credentials, expired JWT
    CONSTRAINT = "constraint"  # Input rejected by the store
    NOT_FOUND = "not_found"  # Absence is an answer, not a fault
    TRANSIENT = "transient"  # Network blips, timeouts, 5xx, locked database

    @property
    def retryable(self) -> bool:
        return self is ErrorCategory.TRANSIENT


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded linear backoff.

    The delay before attempt ``n + 1`` is ``base_delay_seconds * n``.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.base_delay_seconds * attempt
