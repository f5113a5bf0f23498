# Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from localcooks.core.ports.email import (
    EmailAddress,
    EmailMessage,
    EmailPort,
    EmailResult,
    EmailStatus,
)
from localcooks.core.ports.time import ClockPort

__all__ = [
    "ClockPort",
    "EmailAddress",
    "EmailMessage",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
]
