"""
Dev Email Adapter.

Logs emails to console instead of sending.
Used for local development and testing.

Key behaviors:
- Logs email details
- Returns SKIPPED status (not SENT)
- Stores emails in memory for test assertions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from localcooks.core.ports.email import EmailMessage, EmailResult, EmailStatus

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    recipient: str
    subject: str
    body_text: str
    body_html: str
    sender: str | None
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    """
    Dev email adapter that logs instead of sending.

    Implements EmailPort.
    """

    sent_emails: list[SentEmail] = field(default_factory=list)

    log_level: int = logging.INFO
    log_body: bool = True
    body_preview_length: int = 100

    def send(self, message: EmailMessage) -> EmailResult:
        """
        Log a structured email message.

        Args:
            message: Complete email message

        Returns:
            EmailResult with SKIPPED status
        """
        message_id = f"dev-{uuid4().hex[:12]}"
        sender_str = str(message.sender) if message.sender else None

        self.sent_emails.append(
            SentEmail(
                id=message_id,
                recipient=message.recipient.email,
                subject=message.subject,
                body_text=message.body_text,
                body_html=message.body_html,
                sender=sender_str,
                logged_at=datetime.now(UTC),
            )
        )

        self._log_email(message, message_id, sender_str)

        return EmailResult(
            status=EmailStatus.SKIPPED,
            message_id=message_id,
            recipient=message.recipient.email,
            error="Dev mode - email logged, not sent",
        )

    def _log_email(self, message: EmailMessage, message_id: str, sender: str | None) -> None:
        parts = [
            f"EMAIL (dev): To={message.recipient.email}",
            f"Subject={message.subject}",
        ]
        if sender:
            parts.append(f"From={sender}")

        body = message.body_text or message.body_html
        if self.log_body and body:
            preview = body[: self.body_preview_length]
            if len(body) > self.body_preview_length:
                preview += "..."
            parts.append(f"Body={preview}")

        parts.append(f"MessageID={message_id}")
        logger.log(self.log_level, ", ".join(parts))

    # --- Test Helper Methods ---

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def get_emails_with_subject(self, subject_contains: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if subject_contains in e.subject]

    def clear(self) -> None:
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)
