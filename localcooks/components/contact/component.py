"""
Contact form double opt-in.

Submissions are validated, stored unverified with a fresh token, and
confirmed from an emailed link. Confirmation follows the newsletter rules:
unknown tokens are invalid, repeat visits succeed without changes, expired
tokens never verify, and the final write is conditional on ``verified``
still being false.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar
from uuid import uuid4

from localcooks.components.contact.models import (
    ContactConfig,
    ContactConfirmation,
    ContactRequest,
    ContactSubmission,
    ContactValidationError,
    InquiryType,
    SubmissionResult,
)
from localcooks.components.contact.ports import (
    ContactNotificationPort,
    ContactSubmissionStorePort,
)
from localcooks.components.newsletter import (
    StorageUnavailableError,
    TokenExpiredError,
    TokenNotFoundError,
    mask_token,
    validate_email,
)
from localcooks.components.retry import Retrier
from localcooks.components.tokens import compute_expiry, is_expired, issue_token
from localcooks.core.ports.time import ClockPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_NAME_LENGTH = 200
MAX_MESSAGE_LENGTH = 5000


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_contact_request(request: ContactRequest) -> ContactRequest:
    """
    Validate a contact form and return it with every field trimmed.

    Optional fields that are blank come back as None; the email comes back
    normalised.

    Raises:
        ContactValidationError: on the first failing field
    """
    name = _clean(request.name)
    if name is None:
        raise ContactValidationError("name", "Name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ContactValidationError("name", "Name is too long")

    if _clean(request.email) is None:
        raise ContactValidationError("email", "Email is required")
    email_check = validate_email(request.email)
    if not email_check.is_valid:
        raise ContactValidationError("email", email_check.errors[0].message)

    try:
        inquiry = InquiryType(_clean(request.inquiry_type))
    except ValueError:
        raise ContactValidationError("inquiry_type", "Invalid inquiry type") from None

    message = _clean(request.message)
    experience = _clean(request.experience)
    if inquiry is InquiryType.GENERAL and message is None:
        raise ContactValidationError("message", "Message is required for general inquiries")
    if inquiry is InquiryType.CHEF and experience is None:
        raise ContactValidationError(
            "experience", "Experience is required for chef applications"
        )
    if message is not None and len(message) > MAX_MESSAGE_LENGTH:
        raise ContactValidationError("message", "Message is too long")

    return ContactRequest(
        name=name,
        email=email_check.normalized_email,
        inquiry_type=inquiry.value,
        phone=_clean(request.phone),
        message=message,
        topic=_clean(request.topic),
        cooking_description=_clean(request.cooking_description),
        experience=experience,
        heard_from=_clean(request.heard_from),
    )


class ContactVerification:
    """Submit and verify contact form messages."""

    def __init__(
        self,
        store: ContactSubmissionStorePort,
        retrier: Retrier,
        *,
        notifier: ContactNotificationPort | None = None,
        clock: ClockPort | None = None,
        config: ContactConfig | None = None,
    ) -> None:
        self.store = store
        self.retrier = retrier
        self.notifier = notifier
        self.clock = clock
        self.config = config or ContactConfig()

    def _now(self) -> datetime:
        return self.clock.now_utc() if self.clock is not None else datetime.now(UTC)

    def _call(self, operation: Callable[[], T], label: str) -> T:
        try:
            return self.retrier.call(operation, label=label)
        except Exception as e:
            raise StorageUnavailableError(label) from e

    def submit(self, request: ContactRequest) -> SubmissionResult:
        """
        Store a submission pending verification and email the link.

        Raises:
            ContactValidationError: invalid form, nothing was stored
            StorageUnavailableError: storage failed after retries
        """
        clean = validate_contact_request(request)
        assert clean.name is not None and clean.email is not None

        now = self._now()
        token = issue_token(self.config.token_bytes)
        submission = ContactSubmission(
            id=uuid4(),
            name=clean.name,
            email=clean.email,
            inquiry_type=InquiryType(clean.inquiry_type),
            verification_token=token,
            expires_at=compute_expiry(now, self.config.token_ttl),
            created_at=now,
            phone=clean.phone,
            message=clean.message,
            topic=clean.topic,
            cooking_description=clean.cooking_description,
            experience=clean.experience,
            heard_from=clean.heard_from,
        )
        self._call(lambda: self.store.insert(submission), "insert_contact")
        logger.info(
            "Contact submission %s stored for %s (token %s)",
            submission.id,
            submission.email,
            mask_token(token),
        )

        notified = False
        if self.notifier is not None:
            notified = self.notifier.send_contact_verification_best_effort(
                submission.email, token
            )

        return SubmissionResult(
            id=submission.id,
            email=submission.email,
            token=token,
            expires_at=submission.expires_at,
            notified=notified,
        )

    def verify(self, token: str) -> ContactConfirmation:
        """
        Confirm the submission that owns ``token``.

        Raises:
            TokenNotFoundError: unknown token
            TokenExpiredError: pending submission past its expiry
            StorageUnavailableError: storage failed after retries
        """
        token = (token or "").strip()
        if not token:
            raise TokenNotFoundError()

        submission = self._call(lambda: self.store.find_by_token(token), "find_contact")
        if submission is None:
            raise TokenNotFoundError()

        if submission.verified:
            return ContactConfirmation(
                id=submission.id,
                email=submission.email,
                verified_at=submission.verified_at,
                already_verified=True,
            )

        now = self._now()
        if is_expired(submission.expires_at, now):
            raise TokenExpiredError()

        rows = self._call(
            lambda: self.store.mark_verified_if_unverified(token, now), "verify_contact"
        )
        if rows == 0:
            current = self._call(lambda: self.store.find_by_token(token), "find_contact")
            if current is not None and current.verified:
                return ContactConfirmation(
                    id=current.id,
                    email=current.email,
                    verified_at=current.verified_at,
                    already_verified=True,
                )
            raise TokenNotFoundError()

        logger.info("Contact submission %s verified", submission.id)

        notified = False
        if self.notifier is not None and self.config.send_confirmation_email:
            notified = self.notifier.send_contact_received_best_effort(
                submission.email, submission.name
            )

        return ContactConfirmation(
            id=submission.id,
            email=submission.email,
            verified_at=now,
            notified=notified,
        )
