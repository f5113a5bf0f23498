"""
Retry component.

Bounded linear-backoff retries with production error classification.
"""

from localcooks.components.retry.component import (
    AUTH_MARKERS,
    CONSTRAINT_MARKERS,
    NOT_FOUND_CODE,
    NOT_FOUND_MARKERS,
    Retrier,
    classify_error,
    is_retryable,
    retry,
)
from localcooks.components.retry.models import ErrorCategory, RetryPolicy

__all__ = [
    "retry",
    "Retrier",
    "classify_error",
    "is_retryable",
    "ErrorCategory",
    "RetryPolicy",
    "AUTH_MARKERS",
    "CONSTRAINT_MARKERS",
    "NOT_FOUND_CODE",
    "NOT_FOUND_MARKERS",
]
