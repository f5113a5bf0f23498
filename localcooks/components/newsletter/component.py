"""
Newsletter subscription lifecycle.

Turns a raw email submission into a verified subscriber with double opt-in.

Key behaviors:
- Email normalised (trim, lower-case) and validated before any store access
- Every store call goes through the shared Retrier
- Insert collisions on the unique email are race signals, not failures
- Token rotation and verification are conditional updates guarded by
  ``verified = false``; a zero row count means another request got there
  first and is resolved into the matching business outcome
- Verification always wins over re-registration
- Verification and welcome emails are best-effort and never fail a request

Invariants:
- ``verified`` is monotonic; ``verified_at`` is written exactly once
- At most one live token per email; re-registration invalidates the old one
- An expired token never verifies
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar
from uuid import uuid4

from localcooks.components.newsletter.models import (
    AlreadySubscribedError,
    ConfirmationResult,
    DuplicateEmailError,
    InvalidEmailError,
    NewsletterConfig,
    RecordKey,
    RegistrationResult,
    StorageUnavailableError,
    SubscriptionRecord,
    TokenExpiredError,
    TokenNotFoundError,
    ValidateEmailOutput,
    ValidationError,
)
from localcooks.components.newsletter.ports import NotificationPort, SubscriptionStorePort
from localcooks.components.retry import Retrier
from localcooks.components.tokens import compute_expiry, is_expired, issue_token
from localcooks.core.ports.time import ClockPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

# --- Email Validation Regex (RFC 5322 simplified) ---

EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

MAX_EMAIL_LENGTH = 254


# --- Pure Functions ---


def normalize_email(email: str | None) -> str:
    return email.strip().lower() if email else ""


def validate_email(email: str | None) -> ValidateEmailOutput:
    """
    Normalise and validate an email address.

    Args:
        email: Raw address as submitted

    Returns:
        ValidateEmailOutput with the normalised address when valid
    """
    normalized = normalize_email(email)

    if not normalized:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("EMPTY_EMAIL", "Email address is required", "email")],
        )

    if len(normalized) > MAX_EMAIL_LENGTH:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("EMAIL_TOO_LONG", "Email address is too long", "email")],
        )

    if not EMAIL_REGEX.match(normalized):
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("INVALID_FORMAT", "Invalid email format", "email")],
        )

    return ValidateEmailOutput(is_valid=True, normalized_email=normalized)


def mask_token(token: str) -> str:
    """Short prefix of a token, safe for logs."""
    return f"{token[:6]}..." if len(token) > 6 else "***"


# --- Lifecycle Controller ---


class SubscriptionLifecycle:
    """
    Double opt-in lifecycle controller.

    Stateless apart from its injected collaborators; one instance serves
    any number of concurrent requests. The store's atomic conditional
    update is the only synchronisation used.
    """

    def __init__(
        self,
        store: SubscriptionStorePort,
        retrier: Retrier,
        *,
        notifier: NotificationPort | None = None,
        clock: ClockPort | None = None,
        config: NewsletterConfig | None = None,
    ) -> None:
        self.store = store
        self.retrier = retrier
        self.notifier = notifier
        self.clock = clock
        self.config = config or NewsletterConfig()

    def _now(self) -> datetime:
        return self.clock.now_utc() if self.clock is not None else datetime.now(UTC)

    def _call(self, operation: Callable[[], T], label: str) -> T:
        """Run a store operation under the retrier, mapping store faults."""
        try:
            return self.retrier.call(operation, label=label)
        except DuplicateEmailError:
            raise
        except Exception as e:
            raise StorageUnavailableError(label) from e

    # --- register ---

    def register(self, email: str) -> RegistrationResult:
        """
        Start (or restart) double opt-in for an email address.

        Raises:
            InvalidEmailError: malformed address, nothing was stored
            AlreadySubscribedError: the address is already verified
            StorageUnavailableError: storage failed after retries
        """
        validation = validate_email(email)
        if not validation.is_valid or validation.normalized_email is None:
            reason = validation.errors[0].message if validation.errors else "invalid"
            raise InvalidEmailError(email, reason)
        address = validation.normalized_email

        existing = self._call(lambda: self.store.find_by_email(address), "find_by_email")

        now = self._now()
        token = issue_token(self.config.token_bytes)
        expires_at = compute_expiry(now, self.config.token_ttl)
        created = False

        if existing is None:
            record = SubscriptionRecord(
                id=uuid4(),
                email=address,
                verification_token=token,
                expires_at=expires_at,
                created_at=now,
                updated_at=now,
            )
            try:
                self._call(lambda: self.store.insert_pending(record), "insert_pending")
                created = True
            except DuplicateEmailError:
                # A concurrent register for the same address won the insert
                logger.info("Concurrent registration for %s detected, re-reading", address)
                existing = self._call(lambda: self.store.find_by_email(address), "find_by_email")
                if existing is None:
                    raise StorageUnavailableError("find_by_email") from None

        if not created:
            assert existing is not None
            if existing.verified:
                raise AlreadySubscribedError(address)

            rows = self._call(
                lambda: self.store.update_if_unverified(
                    RecordKey.by_email(address),
                    {
                        "verification_token": token,
                        "expires_at": expires_at,
                        "updated_at": now,
                    },
                ),
                "rotate_token",
            )
            if rows == 0:
                # Verified between our read and our write
                raise AlreadySubscribedError(address)

        logger.info(
            "Subscription pending for %s (%s, token %s)",
            address,
            "created" if created else "token rotated",
            mask_token(token),
        )

        notified = False
        if self.notifier is not None:
            notified = self.notifier.send_verification_best_effort(address, token)

        return RegistrationResult(
            email=address,
            token=token,
            expires_at=expires_at,
            created=created,
            notified=notified,
        )

    # --- confirm ---

    def confirm(self, token: str) -> ConfirmationResult:
        """
        Verify the subscription that owns ``token``.

        Repeat visits to a link that already verified succeed again without
        changing anything.

        Raises:
            TokenNotFoundError: no record carries this token
            TokenExpiredError: the record is pending but past its expiry
            StorageUnavailableError: storage failed after retries
        """
        token = (token or "").strip()
        if not token:
            raise TokenNotFoundError()

        record = self._call(lambda: self.store.find_by_token(token), "find_by_token")
        if record is None:
            raise TokenNotFoundError()

        if record.verified:
            return ConfirmationResult(
                email=record.email,
                verified_at=record.verified_at,
                already_verified=True,
            )

        now = self._now()
        if is_expired(record.expires_at, now):
            logger.info("Expired verification token for %s", record.email)
            raise TokenExpiredError()

        rows = self._call(
            lambda: self.store.update_if_unverified(
                RecordKey.by_token(token),
                {"verified": True, "verified_at": now, "updated_at": now},
            ),
            "mark_verified",
        )
        if rows == 0:
            # Another confirm won, or a re-registration rotated the token away
            current = self._call(lambda: self.store.find_by_token(token), "find_by_token")
            if current is not None and current.verified:
                return ConfirmationResult(
                    email=current.email,
                    verified_at=current.verified_at,
                    already_verified=True,
                )
            raise TokenNotFoundError()

        logger.info("Subscription verified for %s", record.email)

        notified = False
        if self.notifier is not None and self.config.send_welcome_email:
            notified = self.notifier.send_welcome_best_effort(record.email)

        return ConfirmationResult(email=record.email, verified_at=now, notified=notified)
