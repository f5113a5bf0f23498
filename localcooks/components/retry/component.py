"""
Retrier with error classification.

Every storage-touching call in the service goes through here. The
classification rules come from production incidents and are matched as
plain case-sensitive substrings of the error message:

- "JWT" / "auth": credentials are wrong, retrying cannot fix them
- "violates" / "constraint": the input is the problem
- "PGRST116" / "not found": absence is a legitimate outcome
- everything else is transient
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from localcooks.components.retry.models import ErrorCategory, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_MARKERS = ("JWT", "auth")
CONSTRAINT_MARKERS = ("violates", "constraint")
NOT_FOUND_CODE = "PGRST116"
NOT_FOUND_MARKERS = (NOT_FOUND_CODE, "not found")


def classify_error(error: BaseException) -> ErrorCategory:
    """
    Classify a failed operation's error.

    Args:
        error: The exception raised by the operation

    Returns:
        ErrorCategory; only TRANSIENT is retryable
    """
    message = str(error)

    if any(marker in message for marker in AUTH_MARKERS):
        return ErrorCategory.AUTH

    if any(marker in message for marker in CONSTRAINT_MARKERS):
        return ErrorCategory.CONSTRAINT

    if getattr(error, "code", None) == NOT_FOUND_CODE:
        return ErrorCategory.NOT_FOUND
    if any(marker in message for marker in NOT_FOUND_MARKERS):
        return ErrorCategory.NOT_FOUND

    return ErrorCategory.TRANSIENT


def is_retryable(error: BaseException) -> bool:
    """Whether another attempt could succeed."""
    return classify_error(error).retryable


def retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
    classifier: Callable[[BaseException], ErrorCategory] = classify_error,
    label: str = "operation",
) -> T:
    """
    Run ``operation`` with bounded retries.

    A non-retryable error propagates after a single attempt. A retryable
    error is retried after a linear backoff until ``policy.max_attempts``
    is used up, then the last error propagates unchanged.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            category = classifier(e)
            if not category.retryable:
                logger.info(
                    "%s failed with non-retryable %s error: %s",
                    label,
                    category.value,
                    e,
                )
                raise

            if attempt >= policy.max_attempts:
                logger.error(
                    "%s failed after %d attempts: %s",
                    label,
                    policy.max_attempts,
                    e,
                )
                raise

            delay = policy.delay_after(attempt)
            logger.warning(
                "%s attempt %d/%d failed (%s), retrying in %.2fs",
                label,
                attempt,
                policy.max_attempts,
                e,
                delay,
            )
            sleep(delay)

    # max_attempts >= 1 is enforced by RetryPolicy
    raise AssertionError("unreachable")


class Retrier:
    """
    Retry executor bound to a policy.

    Constructed once per process and injected wherever storage is touched.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        classifier: Callable[[BaseException], ErrorCategory] = classify_error,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._classifier = classifier

    def call(self, operation: Callable[[], T], *, label: str = "operation") -> T:
        return retry(
            operation,
            self.policy,
            sleep=self._sleep,
            classifier=self._classifier,
            label=label,
        )
