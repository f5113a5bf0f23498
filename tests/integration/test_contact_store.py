from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from localcooks.adapters.sqlite_db import SQLiteContactSubmissionStore
from localcooks.components.contact import (
    ContactRequest,
    ContactSubmission,
    ContactVerification,
    InquiryType,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def make_submission(token: str = "ctok-1") -> ContactSubmission:
    return ContactSubmission(
        id=uuid4(),
        name="Ada",
        email="ada@example.com",
        inquiry_type=InquiryType.CHEF,
        verification_token=token,
        expires_at=NOW + timedelta(days=7),
        created_at=NOW,
        experience="Line cook",
        heard_from="Friend",
    )


def test_insert_find_roundtrip(contact_store: SQLiteContactSubmissionStore) -> None:
    submission = make_submission()
    contact_store.insert(submission)
    assert contact_store.find_by_token("ctok-1") == submission
    assert contact_store.find_by_token("other") is None


def test_same_email_twice(contact_store: SQLiteContactSubmissionStore) -> None:
    contact_store.insert(make_submission("ctok-1"))
    contact_store.insert(make_submission("ctok-2"))
    assert contact_store.find_by_token("ctok-2") is not None


def test_mark_verified_once(contact_store: SQLiteContactSubmissionStore) -> None:
    contact_store.insert(make_submission())
    assert contact_store.mark_verified_if_unverified("ctok-1", NOW) == 1
    assert contact_store.mark_verified_if_unverified("ctok-1", NOW + timedelta(hours=1)) == 0

    stored = contact_store.find_by_token("ctok-1")
    assert stored is not None
    assert stored.verified is True
    assert stored.verified_at == NOW


@pytest.mark.parametrize("inquiry", ["general", "chef"])
def test_service_on_sqlite(
    contact_service: ContactVerification,
    contact_store: SQLiteContactSubmissionStore,
    inquiry: str,
) -> None:
    result = contact_service.submit(
        ContactRequest(
            name="Ada",
            email="ada@example.com",
            inquiry_type=inquiry,
            message="Hello",
            experience="Some",
        )
    )
    confirmation = contact_service.verify(result.token)

    assert confirmation.already_verified is False
    stored = contact_store.find_by_token(result.token)
    assert stored is not None
    assert stored.inquiry_type.value == inquiry
    assert stored.verified is True
