from collections.abc import Generator
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from localcooks.adapters.clock import FixedClock
from localcooks.adapters.dev_email import DevEmailAdapter
from localcooks.adapters.sqlite.migrator import DEFAULT_MIGRATIONS_DIR, SQLiteMigrator
from localcooks.adapters.sqlite_db import SQLiteContactSubmissionStore, SQLiteSubscriptionStore
from localcooks.api.deps import get_contact_service, get_lifecycle
from localcooks.api.main import app
from localcooks.components.contact import ContactVerification
from localcooks.components.newsletter import SubscriptionLifecycle
from localcooks.components.notifications import (
    MailerConfig,
    NotificationDispatcher,
    VerificationMailer,
)
from localcooks.components.retry import Retrier, RetryPolicy

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def db_path(tmp_path) -> str:
    """A migrated SQLite database in a temp directory."""
    path = str(tmp_path / "localcooks.db")
    SQLiteMigrator(path, DEFAULT_MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def subscription_store(db_path: str) -> SQLiteSubscriptionStore:
    return SQLiteSubscriptionStore(db_path)


@pytest.fixture
def contact_store(db_path: str) -> SQLiteContactSubmissionStore:
    return SQLiteContactSubmissionStore(db_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


@pytest.fixture
def dev_email() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def retrier() -> Retrier:
    """Retrier that never sleeps."""
    return Retrier(RetryPolicy(max_attempts=3, base_delay_seconds=0.0), sleep=lambda _: None)


@pytest.fixture
def dispatcher(dev_email: DevEmailAdapter) -> NotificationDispatcher:
    return NotificationDispatcher(
        VerificationMailer(dev_email, MailerConfig(base_url="https://test.localcook.shop"))
    )


@pytest.fixture
def lifecycle(
    subscription_store: SQLiteSubscriptionStore,
    retrier: Retrier,
    dispatcher: NotificationDispatcher,
    clock: FixedClock,
) -> SubscriptionLifecycle:
    return SubscriptionLifecycle(
        subscription_store, retrier, notifier=dispatcher, clock=clock
    )


@pytest.fixture
def contact_service(
    contact_store: SQLiteContactSubmissionStore,
    retrier: Retrier,
    dispatcher: NotificationDispatcher,
    clock: FixedClock,
) -> ContactVerification:
    return ContactVerification(contact_store, retrier, notifier=dispatcher, clock=clock)


@pytest.fixture
def client(
    lifecycle: SubscriptionLifecycle, contact_service: ContactVerification
) -> Generator[TestClient, None, None]:
    """API client wired to a temp database, dev email and a fixed clock."""
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    app.dependency_overrides[get_contact_service] = lambda: contact_service
    yield TestClient(app)
    app.dependency_overrides.clear()
