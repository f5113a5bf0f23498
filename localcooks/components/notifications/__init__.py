"""
Notifications component.

Best-effort transactional email for the opt-in flows.
"""

from localcooks.components.notifications.component import (
    NotificationDispatcher,
    VerificationMailer,
    build_verification_url,
)
from localcooks.components.notifications.models import MailerConfig, NotificationFailure
from localcooks.components.notifications.ports import MailerPort

__all__ = [
    "NotificationDispatcher",
    "VerificationMailer",
    "build_verification_url",
    "MailerConfig",
    "NotificationFailure",
    "MailerPort",
]
