"""
Contact component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from localcooks.components.contact.models import ContactSubmission


class ContactSubmissionStorePort(Protocol):
    """Contact submission store interface."""

    def insert(self, submission: ContactSubmission) -> ContactSubmission:
        ...

    def find_by_token(self, token: str) -> ContactSubmission | None:
        ...

    def mark_verified_if_unverified(self, token: str, verified_at: datetime) -> int:
        """
        Atomically set verified where the token matches and verified is false.

        Returns:
            Number of rows changed
        """
        ...


class ContactNotificationPort(Protocol):
    """Best-effort contact notifications. Never raises."""

    def send_contact_verification_best_effort(self, email: str, token: str) -> bool:
        ...

    def send_contact_received_best_effort(self, email: str, name: str) -> bool:
        ...
