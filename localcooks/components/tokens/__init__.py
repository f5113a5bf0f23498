"""
Tokens component.

Opaque verification tokens and their expiry policy.
"""

from localcooks.components.tokens.component import (
    DEFAULT_TOKEN_BYTES,
    DEFAULT_TOKEN_TTL,
    MIN_TOKEN_BYTES,
    compute_expiry,
    is_expired,
    issue_token,
)

__all__ = [
    "DEFAULT_TOKEN_BYTES",
    "DEFAULT_TOKEN_TTL",
    "MIN_TOKEN_BYTES",
    "compute_expiry",
    "is_expired",
    "issue_token",
]
