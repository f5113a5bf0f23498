"""
Contact component unit tests.

Covers:
- Form validation per inquiry type
- submit: stored pending, verification email best-effort
- verify: success, idempotency, expiry, concurrent verify
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from localcooks.adapters.clock import FixedClock
from localcooks.components.contact import (
    ContactRequest,
    ContactSubmission,
    ContactValidationError,
    ContactVerification,
    InquiryType,
    validate_contact_request,
)
from localcooks.components.newsletter import (
    StorageUnavailableError,
    TokenExpiredError,
    TokenNotFoundError,
)
from localcooks.components.retry import Retrier

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


# --- Mocks ---


class MockContactStore:
    def __init__(self) -> None:
        self._items: dict[UUID, ContactSubmission] = {}
        self._lock = threading.Lock()
        self.before_update: Callable[[], None] | None = None
        self.fail_inserts = 0
        self.insert_calls = 0

    def insert(self, submission: ContactSubmission) -> ContactSubmission:
        self.insert_calls += 1
        if self.fail_inserts:
            self.fail_inserts -= 1
            raise ConnectionError("connection reset")
        with self._lock:
            self._items[submission.id] = submission
        return submission

    def find_by_token(self, token: str) -> ContactSubmission | None:
        return next(
            (s for s in self._items.values() if s.verification_token == token), None
        )

    def mark_verified_if_unverified(self, token: str, verified_at: datetime) -> int:
        hook, self.before_update = self.before_update, None
        if hook is not None:
            hook()
        with self._lock:
            for sid, s in self._items.items():
                if s.verification_token == token and not s.verified:
                    self._items[sid] = replace(s, verified=True, verified_at=verified_at)
                    return 1
        return 0

    def all(self) -> list[ContactSubmission]:
        return list(self._items.values())


class MockContactNotifier:
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.verifications: list[tuple[str, str]] = []
        self.received: list[tuple[str, str]] = []

    def send_contact_verification_best_effort(self, email: str, token: str) -> bool:
        self.verifications.append((email, token))
        return self.succeed

    def send_contact_received_best_effort(self, email: str, name: str) -> bool:
        self.received.append((email, name))
        return self.succeed


def general(**overrides: str | None) -> ContactRequest:
    fields: dict[str, str | None] = {
        "name": "Ada",
        "email": "Ada@Example.com",
        "inquiry_type": "general",
        "message": "Do you cater events?",
    }
    fields.update(overrides)
    return ContactRequest(**fields)


# --- Fixtures ---


@pytest.fixture
def store() -> MockContactStore:
    return MockContactStore()


@pytest.fixture
def notifier() -> MockContactNotifier:
    return MockContactNotifier()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def service(
    store: MockContactStore, notifier: MockContactNotifier, clock: FixedClock
) -> ContactVerification:
    return ContactVerification(
        store, Retrier(sleep=lambda _: None), notifier=notifier, clock=clock
    )


# --- Validation ---


class TestValidateContactRequest:
    def test_general_inquiry_cleaned(self) -> None:
        clean = validate_contact_request(general(name="  Ada ", phone="  ", topic=" Catering "))
        assert clean.name == "Ada"
        assert clean.email == "ada@example.com"
        assert clean.phone is None
        assert clean.topic == "Catering"

    def test_chef_application(self) -> None:
        clean = validate_contact_request(
            ContactRequest(
                name="Chef Lin",
                email="lin@example.com",
                inquiry_type="chef",
                experience="10 years in dim sum",
                cooking_description="Cantonese home cooking",
            )
        )
        assert clean.inquiry_type == "chef"
        assert clean.message is None

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"name": "  "}, "name"),
            ({"name": None}, "name"),
            ({"email": None}, "email"),
            ({"email": "nope"}, "email"),
            ({"inquiry_type": "sales"}, "inquiry_type"),
            ({"inquiry_type": None}, "inquiry_type"),
            ({"message": "   "}, "message"),
            ({"inquiry_type": "chef", "experience": None}, "experience"),
        ],
    )
    def test_rejections(self, overrides: dict[str, str | None], field: str) -> None:
        with pytest.raises(ContactValidationError) as exc_info:
            validate_contact_request(general(**overrides))
        assert exc_info.value.field == field

    def test_chef_does_not_need_message(self) -> None:
        clean = validate_contact_request(
            general(inquiry_type="chef", message=None, experience="Line cook")
        )
        assert clean.experience == "Line cook"


# --- submit ---


class TestSubmit:
    def test_stores_pending_submission(
        self,
        service: ContactVerification,
        store: MockContactStore,
        notifier: MockContactNotifier,
    ) -> None:
        result = service.submit(general())

        assert result.requires_verification
        [stored] = store.all()
        assert stored.email == "ada@example.com"
        assert stored.inquiry_type is InquiryType.GENERAL
        assert stored.verified is False
        assert stored.expires_at == NOW + timedelta(days=7)
        assert notifier.verifications == [("ada@example.com", result.token)]

    def test_same_email_may_submit_twice(
        self, service: ContactVerification, store: MockContactStore
    ) -> None:
        first = service.submit(general())
        second = service.submit(general(message="Another question"))
        assert first.token != second.token
        assert len(store.all()) == 2

    def test_invalid_form_stores_nothing(
        self, service: ContactVerification, store: MockContactStore
    ) -> None:
        with pytest.raises(ContactValidationError):
            service.submit(general(email="bad"))
        assert store.insert_calls == 0

    def test_transient_insert_failure_retried(
        self, service: ContactVerification, store: MockContactStore
    ) -> None:
        store.fail_inserts = 2
        service.submit(general())
        assert store.insert_calls == 3
        assert len(store.all()) == 1

    def test_storage_failure_surfaces(
        self, service: ContactVerification, store: MockContactStore
    ) -> None:
        store.fail_inserts = 3
        with pytest.raises(StorageUnavailableError):
            service.submit(general())

    def test_email_failure_does_not_fail_submit(
        self, store: MockContactStore, clock: FixedClock
    ) -> None:
        service = ContactVerification(
            store,
            Retrier(sleep=lambda _: None),
            notifier=MockContactNotifier(succeed=False),
            clock=clock,
        )
        result = service.submit(general())
        assert result.notified is False
        assert len(store.all()) == 1


# --- verify ---


class TestVerify:
    def test_verify_marks_verified_and_acknowledges(
        self,
        service: ContactVerification,
        store: MockContactStore,
        notifier: MockContactNotifier,
    ) -> None:
        token = service.submit(general()).token
        result = service.verify(token)

        assert result.already_verified is False
        assert result.verified_at == NOW
        assert store.all()[0].verified is True
        assert notifier.received == [("ada@example.com", "Ada")]

    def test_verify_twice_is_idempotent(
        self,
        service: ContactVerification,
        notifier: MockContactNotifier,
        clock: FixedClock,
    ) -> None:
        token = service.submit(general()).token
        first = service.verify(token)
        clock.advance(timedelta(days=10))
        second = service.verify(token)

        assert second.already_verified is True
        assert second.verified_at == first.verified_at
        assert len(notifier.received) == 1

    def test_unknown_and_blank_tokens(self, service: ContactVerification) -> None:
        with pytest.raises(TokenNotFoundError):
            service.verify("missing")
        with pytest.raises(TokenNotFoundError):
            service.verify("")

    def test_expired_token(
        self, service: ContactVerification, store: MockContactStore, clock: FixedClock
    ) -> None:
        token = service.submit(general()).token
        clock.advance(timedelta(days=8))
        with pytest.raises(TokenExpiredError):
            service.verify(token)
        assert store.all()[0].verified is False

    def test_concurrent_verify_resolves_to_already_verified(
        self,
        service: ContactVerification,
        store: MockContactStore,
        notifier: MockContactNotifier,
    ) -> None:
        token = service.submit(general()).token
        store.before_update = lambda: store.mark_verified_if_unverified(token, NOW)

        result = service.verify(token)

        assert result.already_verified is True
        assert notifier.received == []
