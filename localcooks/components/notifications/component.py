"""
Notification dispatch.

Two pieces:
- VerificationMailer composes the site's transactional emails and hands
  them to an EmailPort transport. It raises NotificationFailure when the
  transport reports a failed send.
- NotificationDispatcher wraps any MailerPort in a best-effort boundary:
  failures are logged and swallowed so they can never unwind the durable
  write that triggered them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from urllib.parse import quote

from localcooks.components.notifications.models import MailerConfig, NotificationFailure
from localcooks.components.notifications.ports import MailerPort
from localcooks.core.ports.email import EmailAddress, EmailMessage, EmailPort

logger = logging.getLogger(__name__)


def build_verification_url(base_url: str, token: str, path: str) -> str:
    """
    Build a verification link.

    Args:
        base_url: Site base URL
        token: Verification token (URL-encoded here)
        path: Endpoint path

    Returns:
        Full verification URL
    """
    base = base_url.rstrip("/")
    return f"{base}{path}?token={quote(token, safe='')}"


class VerificationMailer:
    """MailerPort implementation over an EmailPort transport."""

    def __init__(self, transport: EmailPort, config: MailerConfig | None = None) -> None:
        self.transport = transport
        self.config = config or MailerConfig()

    def _deliver(self, kind: str, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage(
            recipient=EmailAddress(recipient),
            subject=subject,
            body_text=body,
            sender=self.config.sender,
        )
        result = self.transport.send(message)
        if not result.ok:
            raise NotificationFailure(kind, recipient, result.error or "unknown error")

    def send_verification_email(self, email: str, token: str) -> None:
        site = self.config.site_name
        url = build_verification_url(
            self.config.base_url, token, self.config.newsletter_verify_path
        )
        self._deliver(
            "verification",
            email,
            f"{site} Newsletter - One step to complete your signup",
            (
                f"Thanks for signing up for the {site} newsletter.\n\n"
                f"Please confirm your email address by visiting:\n{url}\n\n"
                "This link expires in 7 days. If you did not sign up, ignore this email."
            ),
        )

    def send_welcome_email(self, email: str) -> None:
        site = self.config.site_name
        self._deliver(
            "welcome",
            email,
            f"Welcome to {site}",
            (
                f"Your subscription is confirmed. Welcome to {site}!\n\n"
                f"Visit us any time at {self.config.base_url}"
            ),
        )

    def send_contact_verification_email(self, email: str, token: str) -> None:
        url = build_verification_url(
            self.config.base_url, token, self.config.contact_verify_path
        )
        self._deliver(
            "contact_verification",
            email,
            "Please verify your contact form submission",
            (
                "We received a message sent from this address.\n\n"
                f"Please confirm it was you by visiting:\n{url}\n\n"
                "This link expires in 7 days."
            ),
        )

    def send_contact_received_email(self, email: str, name: str) -> None:
        self._deliver(
            "contact_received",
            email,
            "We received your message",
            (
                f"Hi {name},\n\n"
                f"Thanks for reaching out to {self.config.site_name}. "
                "Our team will get back to you soon."
            ),
        )


class NotificationDispatcher:
    """
    Fire-and-forget boundary around a mailer.

    Every method returns True when the mailer completed and False when it
    raised. Nothing ever propagates.
    """

    def __init__(self, mailer: MailerPort) -> None:
        self.mailer = mailer

    def _best_effort(self, kind: str, recipient: str, send: Callable[[], None]) -> bool:
        try:
            send()
        except Exception:
            logger.warning(
                "Best-effort %s email to %s failed; the stored record is unaffected",
                kind,
                recipient,
                exc_info=True,
            )
            return False
        return True

    def send_verification_best_effort(self, email: str, token: str) -> bool:
        return self._best_effort(
            "verification", email, lambda: self.mailer.send_verification_email(email, token)
        )

    def send_welcome_best_effort(self, email: str) -> bool:
        return self._best_effort("welcome", email, lambda: self.mailer.send_welcome_email(email))

    def send_contact_verification_best_effort(self, email: str, token: str) -> bool:
        return self._best_effort(
            "contact_verification",
            email,
            lambda: self.mailer.send_contact_verification_email(email, token),
        )

    def send_contact_received_best_effort(self, email: str, name: str) -> bool:
        return self._best_effort(
            "contact_received",
            email,
            lambda: self.mailer.send_contact_received_email(email, name),
        )
