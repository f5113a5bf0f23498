"""
Newsletter component ports.

Protocol interfaces for the lifecycle controller's collaborators.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

from localcooks.components.newsletter.models import (
    RecordKey,
    SubscriptionRecord,
    SubscriptionState,
)


class SubscriptionStorePort(Protocol):
    """
    Subscription store interface.

    The only component that reads or writes subscription records. Relies on
    the backing store for two guarantees:
    - a unique constraint on ``email`` that fails atomically under
      concurrent inserts
    - a single-row conditional update that reports its affected-row count
    """

    def find_by_email(self, email: str) -> SubscriptionRecord | None:
        """Get subscription by normalised email."""
        ...

    def find_by_token(self, token: str) -> SubscriptionRecord | None:
        """Get subscription by verification token."""
        ...

    def insert_pending(self, record: SubscriptionRecord) -> SubscriptionRecord:
        """
        Insert a new unverified record.

        Raises:
            DuplicateEmailError: a record with this email already exists
        """
        ...

    def update_if_unverified(self, key: RecordKey, fields: Mapping[str, Any]) -> int:
        """
        Atomically apply ``fields`` where ``key`` matches and verified is false.

        Returns:
            Number of rows changed (0 means the predicate no longer held)
        """
        ...

    def count_by_state(self, now: datetime) -> dict[SubscriptionState, int]:
        """Count subscriptions per lifecycle state."""
        ...


class NotificationPort(Protocol):
    """
    Best-effort notification interface.

    Implementations must never raise; they report whether the message went out.
    """

    def send_verification_best_effort(self, email: str, token: str) -> bool:
        ...

    def send_welcome_best_effort(self, email: str) -> bool:
        ...
