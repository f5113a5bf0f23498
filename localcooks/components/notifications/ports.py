"""
Notifications component ports.
"""

from __future__ import annotations

from typing import Protocol


class MailerPort(Protocol):
    """
    Mail capability consumed by the dispatcher.

    Each method may raise; the dispatcher treats any exception as a failed,
    best-effort delivery.
    """

    def send_verification_email(self, email: str, token: str) -> None:
        ...

    def send_welcome_email(self, email: str) -> None:
        ...

    def send_contact_verification_email(self, email: str, token: str) -> None:
        ...

    def send_contact_received_email(self, email: str, name: str) -> None:
        ...
