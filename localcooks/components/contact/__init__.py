"""
Contact component.

Double opt-in contact form submissions.
"""

from localcooks.components.contact.component import (
    ContactVerification,
    validate_contact_request,
)
from localcooks.components.contact.models import (
    ContactConfig,
    ContactConfirmation,
    ContactError,
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

__all__ = [
    "ContactVerification",
    "validate_contact_request",
    "ContactConfig",
    "ContactConfirmation",
    "ContactError",
    "ContactRequest",
    "ContactSubmission",
    "ContactValidationError",
    "InquiryType",
    "SubmissionResult",
    "ContactNotificationPort",
    "ContactSubmissionStorePort",
]
