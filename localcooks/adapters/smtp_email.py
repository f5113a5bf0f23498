"""
SMTP Email Adapter.

Sends transactional email through an SMTP relay. Port 465 uses implicit
TLS; any other port upgrades with STARTTLS. Every connection is bounded by
a timeout so a stalled relay cannot hold a request open.

Never raises on delivery problems: failures come back as
``EmailResult.failed`` and the caller decides what to do with them.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage as MIMEEmailMessage
from email.utils import make_msgid

from localcooks.core.ports.email import EmailAddress, EmailMessage, EmailResult

logger = logging.getLogger(__name__)

DEFAULT_SMTP_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    username: str
    password: str
    sender: EmailAddress
    use_ssl: bool = False
    timeout_seconds: float = DEFAULT_SMTP_TIMEOUT_SECONDS


class SMTPEmailAdapter:
    """EmailPort implementation over smtplib."""

    def __init__(self, config: SMTPConfig) -> None:
        self.config = config

    def _build_mime(self, message: EmailMessage) -> MIMEEmailMessage:
        mime = MIMEEmailMessage()
        mime["From"] = str(message.sender or self.config.sender)
        mime["To"] = str(message.recipient)
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(domain=self.config.sender.email.split("@")[-1])
        for name, value in message.headers.items():
            mime[name] = value

        mime.set_content(message.body_text or "")
        if message.body_html:
            mime.add_alternative(message.body_html, subtype="html")
        return mime

    def _connect(self) -> smtplib.SMTP:
        cfg = self.config
        context = ssl.create_default_context()
        if cfg.use_ssl or cfg.port == 465:
            return smtplib.SMTP_SSL(
                cfg.host, cfg.port, timeout=cfg.timeout_seconds, context=context
            )
        client = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds)
        client.starttls(context=context)
        return client

    def send(self, message: EmailMessage) -> EmailResult:
        recipient = message.recipient.email
        mime = self._build_mime(message)
        try:
            with self._connect() as client:
                client.login(self.config.username, self.config.password)
                client.send_message(mime)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(
                "SMTP send to %s via %s:%d failed: %s",
                recipient,
                self.config.host,
                self.config.port,
                e,
            )
            return EmailResult.failed(recipient, str(e))

        return EmailResult.success(recipient, message_id=mime["Message-ID"])
