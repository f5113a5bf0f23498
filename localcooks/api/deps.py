import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from localcooks.adapters.clock import SystemClock
from localcooks.adapters.dev_email import DevEmailAdapter
from localcooks.adapters.smtp_email import SMTPConfig, SMTPEmailAdapter
from localcooks.adapters.sqlite.migrator import DEFAULT_MIGRATIONS_DIR
from localcooks.adapters.sqlite_db import SQLiteContactSubmissionStore, SQLiteSubscriptionStore
from localcooks.components.contact import ContactVerification
from localcooks.components.newsletter import SubscriptionLifecycle
from localcooks.components.notifications import (
    MailerConfig,
    NotificationDispatcher,
    VerificationMailer,
)
from localcooks.components.retry import Retrier
from localcooks.core.ports.email import EmailAddress, EmailPort
from localcooks.core.ports.time import ClockPort
from localcooks.rules.loader import DEFAULT_RULES_PATH, load_rules
from localcooks.rules.models import Rules


# --- Settings ---
class Settings:
    """Deployment values from the environment. Behaviour lives in rules.yaml."""

    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("LOCALCOOKS_DATA_DIR", "./data"))
        self.db_path = os.environ.get("LOCALCOOKS_DB_PATH", str(self.data_dir / "localcooks.db"))
        self.rules_path = Path(os.environ.get("LOCALCOOKS_RULES_PATH", str(DEFAULT_RULES_PATH)))
        self.migrations_dir = os.environ.get("LOCALCOOKS_MIGRATIONS_DIR", DEFAULT_MIGRATIONS_DIR)
        self.auto_migrate = os.environ.get("LOCALCOOKS_AUTO_MIGRATE", "true").lower() != "false"

        self.base_url = os.environ.get("BASE_URL") or None

        # SMTP; without credentials mail is logged by the dev adapter
        self.email_host = os.environ.get("EMAIL_HOST") or None
        port = os.environ.get("EMAIL_PORT")
        self.email_port = int(port) if port else None
        self.email_secure = os.environ.get("EMAIL_SECURE", "false").lower() == "true"
        self.email_user = os.environ.get("EMAIL_USER") or None
        self.email_password = os.environ.get("EMAIL_PASSWORD") or None
        self.email_org = os.environ.get("EMAIL_ORG") or None

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.email_user and self.email_password)


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Adapters ---
def get_clock() -> ClockPort:
    return SystemClock()


def get_retrier(rules: Rules = Depends(get_rules)) -> Retrier:
    return Retrier(rules.retry_policy())


def get_subscription_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteSubscriptionStore:
    return SQLiteSubscriptionStore(settings.db_path, timeout=rules.storage.busy_timeout_seconds)


def get_contact_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteContactSubmissionStore:
    return SQLiteContactSubmissionStore(
        settings.db_path, timeout=rules.storage.busy_timeout_seconds
    )


@lru_cache
def get_dev_email_adapter() -> DevEmailAdapter:
    """Process-wide dev adapter so logged mail can be inspected."""
    return DevEmailAdapter()


def get_sender(settings: Settings, rules: Rules) -> EmailAddress | None:
    if not settings.email_user:
        return None
    return EmailAddress(settings.email_user, settings.email_org or rules.email.sender_name)


def get_email_transport(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> EmailPort:
    sender = get_sender(settings, rules)
    if not settings.smtp_enabled or sender is None or settings.email_password is None:
        return get_dev_email_adapter()

    return SMTPEmailAdapter(
        SMTPConfig(
            host=settings.email_host or rules.email.smtp_host,
            port=settings.email_port or rules.email.smtp_port,
            username=sender.email,
            password=settings.email_password,
            sender=sender,
            use_ssl=settings.email_secure,
            timeout_seconds=rules.email.smtp_timeout_seconds,
        )
    )


def get_mailer_config(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> MailerConfig:
    return MailerConfig(
        base_url=settings.base_url or rules.email.base_url,
        site_name=rules.email.site_name,
        sender=get_sender(settings, rules),
        newsletter_verify_path=rules.email.newsletter_verify_path,
        contact_verify_path=rules.email.contact_verify_path,
    )


def get_dispatcher(
    transport: EmailPort = Depends(get_email_transport),
    config: MailerConfig = Depends(get_mailer_config),
) -> NotificationDispatcher:
    return NotificationDispatcher(VerificationMailer(transport, config))


# --- Component Services ---
def get_lifecycle(
    store: SQLiteSubscriptionStore = Depends(get_subscription_store),
    retrier: Retrier = Depends(get_retrier),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> SubscriptionLifecycle:
    """Get the newsletter lifecycle controller."""
    return SubscriptionLifecycle(
        store,
        retrier,
        notifier=dispatcher,
        clock=clock,
        config=rules.newsletter_config(),
    )


def get_contact_service(
    store: SQLiteContactSubmissionStore = Depends(get_contact_store),
    retrier: Retrier = Depends(get_retrier),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> ContactVerification:
    """Get the contact form verification service."""
    return ContactVerification(
        store,
        retrier,
        notifier=dispatcher,
        clock=clock,
        config=rules.contact_config(),
    )
