"""
Contact component models.

Contact form submissions follow the same double opt-in pattern as the
newsletter: stored unverified, confirmed from an emailed link. Unlike
subscriptions, one address may submit any number of times.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from localcooks.components.tokens import DEFAULT_TOKEN_BYTES, DEFAULT_TOKEN_TTL


class InquiryType(Enum):
    GENERAL = "general"
    CHEF = "chef"


@dataclass(frozen=True)
class ContactRequest:
    """Raw contact form input, as posted."""

    name: str | None
    email: str | None
    inquiry_type: str | None
    phone: str | None = None
    message: str | None = None
    topic: str | None = None
    cooking_description: str | None = None
    experience: str | None = None
    heard_from: str | None = None


@dataclass(frozen=True)
class ContactSubmission:
    """A stored contact form submission."""

    id: UUID
    name: str
    email: str
    inquiry_type: InquiryType
    verification_token: str
    expires_at: datetime
    created_at: datetime
    phone: str | None = None
    message: str | None = None
    topic: str | None = None
    cooking_description: str | None = None
    experience: str | None = None
    heard_from: str | None = None
    verified: bool = False
    verified_at: datetime | None = None


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a successful ``submit``."""

    id: UUID
    email: str
    token: str
    expires_at: datetime
    notified: bool
    requires_verification: bool = True


@dataclass(frozen=True)
class ContactConfirmation:
    """Outcome of a successful ``verify``."""

    id: UUID
    email: str
    verified_at: datetime | None
    already_verified: bool = False
    notified: bool = False


@dataclass(frozen=True)
class ContactConfig:
    token_ttl: timedelta = DEFAULT_TOKEN_TTL
    token_bytes: int = DEFAULT_TOKEN_BYTES
    send_confirmation_email: bool = True


# --- Error Types ---


class ContactError(Exception):
    """Base contact error."""

    code = "CONTACT_ERROR"


class ContactValidationError(ContactError):
    """Submission rejected before touching storage."""

    code = "INVALID_CONTACT"

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(reason)
