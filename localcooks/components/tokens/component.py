"""
Token issuer and expiry policy.

Verification tokens are random, URL-safe and carry no structure: they are
not signed, not derived from the email address and reveal nothing about
any other token.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

MIN_TOKEN_BYTES = 32
DEFAULT_TOKEN_BYTES = 32

# Unverified records are abandoned after this long
DEFAULT_TOKEN_TTL = timedelta(days=7)


def issue_token(num_bytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """
    Generate a cryptographically secure URL-safe token.

    Args:
        num_bytes: Bytes of entropy (base64url-encoded, so the string is longer)

    Returns:
        Opaque token string
    """
    if num_bytes < MIN_TOKEN_BYTES:
        raise ValueError(f"Tokens need at least {MIN_TOKEN_BYTES} bytes of entropy")
    return secrets.token_urlsafe(num_bytes)


def compute_expiry(now: datetime, ttl: timedelta = DEFAULT_TOKEN_TTL) -> datetime:
    """Expiry timestamp for a token issued at ``now``."""
    return now + ttl


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """A token is expired once ``now`` is strictly past ``expires_at``."""
    return now > expires_at
