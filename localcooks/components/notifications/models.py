"""
Notifications component models.
"""

from __future__ import annotations

from dataclasses import dataclass

from localcooks.core.ports.email import EmailAddress


@dataclass(frozen=True)
class MailerConfig:
    """Where links in outgoing mail point and who they come from."""

    base_url: str = "https://localcook.shop"
    site_name: str = "LocalCooks"
    sender: EmailAddress | None = None
    newsletter_verify_path: str = "/api/verify-email"
    contact_verify_path: str = "/api/verify-contact"


class NotificationFailure(Exception):
    """A notification could not be delivered."""

    def __init__(self, kind: str, recipient: str, reason: str) -> None:
        self.kind = kind
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"{kind} email to {recipient} failed: {reason}")
