"""
Newsletter component.

Double opt-in newsletter subscription lifecycle.
"""

from localcooks.components.newsletter.component import (
    EMAIL_REGEX,
    MAX_EMAIL_LENGTH,
    SubscriptionLifecycle,
    mask_token,
    normalize_email,
    validate_email,
)
from localcooks.components.newsletter.models import (
    KEY_COLUMNS,
    UPDATABLE_FIELDS,
    AlreadySubscribedError,
    ConfirmationResult,
    DuplicateEmailError,
    InvalidEmailError,
    NewsletterConfig,
    NewsletterError,
    RecordKey,
    RegistrationResult,
    StorageUnavailableError,
    SubscriptionRecord,
    SubscriptionState,
    TokenError,
    TokenExpiredError,
    TokenNotFoundError,
    ValidateEmailOutput,
    ValidationError,
    check_update_fields,
)
from localcooks.components.newsletter.ports import NotificationPort, SubscriptionStorePort

__all__ = [
    # Controller
    "SubscriptionLifecycle",
    # Pure functions
    "validate_email",
    "normalize_email",
    "mask_token",
    "check_update_fields",
    # Constants
    "EMAIL_REGEX",
    "MAX_EMAIL_LENGTH",
    "UPDATABLE_FIELDS",
    "KEY_COLUMNS",
    # Models
    "SubscriptionRecord",
    "SubscriptionState",
    "RecordKey",
    "NewsletterConfig",
    "RegistrationResult",
    "ConfirmationResult",
    "ValidateEmailOutput",
    "ValidationError",
    # Errors
    "NewsletterError",
    "InvalidEmailError",
    "AlreadySubscribedError",
    "TokenError",
    "TokenNotFoundError",
    "TokenExpiredError",
    "StorageUnavailableError",
    "DuplicateEmailError",
    # Ports
    "SubscriptionStorePort",
    "NotificationPort",
]
