"""
Newsletter component models.

Data models for the double opt-in subscription lifecycle.

State machine (per email address):
- Absent -> Pending (first subscription attempt)
- Pending -> Pending (repeat attempt rotates the token)
- Pending -> Verified (verification link visited before expiry)
- Verified is terminal; verified never goes back to false
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from localcooks.components.tokens import DEFAULT_TOKEN_BYTES, DEFAULT_TOKEN_TTL

# --- State Machine ---


class SubscriptionState(Enum):
    """
    Lifecycle state of a stored subscription.

    PENDING_EXPIRED is a PENDING record past its expiry: re-registration
    revives it, verification rejects it.
    """

    PENDING = "pending"
    PENDING_EXPIRED = "pending_expired"
    VERIFIED = "verified"


# --- Entity ---


@dataclass(frozen=True)
class SubscriptionRecord:
    """
    One newsletter subscription, keyed by normalised email.

    The verification token stays on the record after verification so a
    second visit to the same link resolves to the same (verified) record.
    """

    id: UUID
    email: str
    verification_token: str | None
    expires_at: datetime
    created_at: datetime
    updated_at: datetime
    verified: bool = False
    verified_at: datetime | None = None

    def state_at(self, now: datetime) -> SubscriptionState:
        if self.verified:
            return SubscriptionState.VERIFIED
        if now > self.expires_at:
            return SubscriptionState.PENDING_EXPIRED
        return SubscriptionState.PENDING


# Columns the store may change through a conditional update
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"verification_token", "expires_at", "updated_at", "verified", "verified_at"}
)

# Columns a conditional update may be keyed on
KEY_COLUMNS: frozenset[str] = frozenset({"email", "verification_token"})


@dataclass(frozen=True)
class RecordKey:
    """Predicate key for a conditional update: ``<column> = <value>``."""

    column: str
    value: str

    def __post_init__(self) -> None:
        if self.column not in KEY_COLUMNS:
            raise ValueError(f"Unsupported key column: {self.column}")

    @classmethod
    def by_email(cls, email: str) -> RecordKey:
        return cls("email", email)

    @classmethod
    def by_token(cls, token: str) -> RecordKey:
        return cls("verification_token", token)


def check_update_fields(fields: dict[str, Any]) -> None:
    """
    Validate a conditional update's field set.

    Raises ValueError for unknown columns or an attempt to clear ``verified``.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
    if "verified" in fields and fields["verified"] is not True:
        raise ValueError("verified can only be set to true")
    if not fields:
        raise ValueError("No fields to update")


# --- Validation ---


@dataclass(frozen=True)
class ValidationError:
    """Validation error detail."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidateEmailOutput:
    """Output from email validation."""

    is_valid: bool
    normalized_email: str | None = None  # Lowercase, trimmed
    errors: list[ValidationError] = field(default_factory=list)


# --- Results ---


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a successful ``register`` call."""

    email: str
    token: str
    expires_at: datetime
    created: bool  # False when an existing pending record was refreshed
    notified: bool  # Whether the verification email went out
    requires_verification: bool = True


@dataclass(frozen=True)
class ConfirmationResult:
    """Outcome of a successful ``confirm`` call."""

    email: str
    verified_at: datetime | None
    already_verified: bool = False  # Idempotent success
    notified: bool = False


# --- Configuration ---


@dataclass(frozen=True)
class NewsletterConfig:
    """Newsletter lifecycle configuration."""

    token_ttl: timedelta = DEFAULT_TOKEN_TTL
    token_bytes: int = DEFAULT_TOKEN_BYTES
    send_welcome_email: bool = True


# --- Error Types ---


class NewsletterError(Exception):
    """Base newsletter error."""

    code = "NEWSLETTER_ERROR"


class InvalidEmailError(NewsletterError):
    """Email failed validation; rejected before touching storage."""

    code = "INVALID_EMAIL"

    def __init__(self, email: str, reason: str) -> None:
        self.email = email
        self.reason = reason
        super().__init__(f"Invalid email '{email}': {reason}")


class AlreadySubscribedError(NewsletterError):
    """The email is already verified. A business outcome, not a fault."""

    code = "ALREADY_SUBSCRIBED"

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"{email} is already subscribed")


class TokenError(NewsletterError):
    """Token validation failed."""

    code = "TOKEN_ERROR"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Token error: {reason}")


class TokenNotFoundError(TokenError):
    """No record carries this token (never issued, or rotated away)."""

    code = "INVALID_TOKEN"

    def __init__(self) -> None:
        super().__init__("Token not found")


class TokenExpiredError(TokenError):
    """Token matched a pending record that is past its expiry."""

    code = "TOKEN_EXPIRED"

    def __init__(self) -> None:
        super().__init__("Token has expired")


class StorageUnavailableError(NewsletterError):
    """Storage failed and retries did not help."""

    code = "STORAGE_UNAVAILABLE"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Storage operation '{operation}' failed")


class DuplicateEmailError(Exception):
    """
    Raised by stores when an insert hits the unique email constraint.

    The message keeps the store's wording so the retry classifier sees it
    as a constraint failure and does not retry it.
    """

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"duplicate key value violates unique constraint on email '{email}'")
