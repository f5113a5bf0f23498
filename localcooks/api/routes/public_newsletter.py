"""
Public newsletter endpoints.

Endpoints:
- POST /api/newsletter (alias /api/subscribe) - Start double opt-in
- GET /api/verify-email (alias /api/verify) - Confirm from the emailed link
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from localcooks.api.deps import get_lifecycle
from localcooks.api.errors import GENERIC_SERVER_ERROR, ApiError, ErrorResponse
from localcooks.components.newsletter import (
    AlreadySubscribedError,
    InvalidEmailError,
    StorageUnavailableError,
    SubscriptionLifecycle,
    TokenExpiredError,
    TokenNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---


class SubscribeRequest(BaseModel):
    """Request body for newsletter subscription."""

    email: str | None = Field(default=None, description="Email address to subscribe")


class SubscribeResponse(BaseModel):
    """Response for subscription request."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    requires_verification: bool = Field(default=True, alias="requiresVerification")
    message: str


class VerifyResponse(BaseModel):
    """Response for verification request."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    already_verified: bool = Field(default=False, alias="alreadyVerified")
    message: str


# --- Subscribe Endpoint ---


@router.post(
    "/newsletter",
    response_model=SubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid email"},
        409: {"model": ErrorResponse, "description": "Already subscribed"},
        500: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Subscribe to newsletter",
    description="Start the double opt-in flow. Sends a verification email.",
)
@router.post("/subscribe", response_model=SubscribeResponse, include_in_schema=False)
def subscribe_to_newsletter(
    request_body: SubscribeRequest,
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
) -> SubscribeResponse:
    """
    Subscribe to the newsletter.

    A repeat request for a pending address rotates its token and resends
    the link. The verification email is best-effort: the response is the
    same whether or not it went out.
    """
    try:
        lifecycle.register(request_body.email or "")
    except InvalidEmailError as e:
        raise ApiError(status.HTTP_400_BAD_REQUEST, e.reason, e.code) from e
    except AlreadySubscribedError as e:
        raise ApiError(
            status.HTTP_409_CONFLICT,
            "This email is already subscribed to our newsletter",
            e.code,
        ) from e
    except StorageUnavailableError as e:
        logger.error("Subscription failed: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_ERROR, e.code) from e

    return SubscribeResponse(
        requires_verification=True,
        message="Please check your email to verify your subscription",
    )


# --- Verify Endpoint ---


@router.get(
    "/verify-email",
    response_model=VerifyResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing token"},
        404: {"model": ErrorResponse, "description": "Unknown token"},
        410: {"model": ErrorResponse, "description": "Expired token"},
        500: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Verify newsletter subscription",
    description="Confirm a subscription with the token from the verification email.",
)
@router.get("/verify", response_model=VerifyResponse, include_in_schema=False)
def verify_subscription(
    token: str | None = None,
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
) -> VerifyResponse:
    """
    Verify a newsletter subscription.

    Idempotent: a link that already verified succeeds again with
    ``alreadyVerified`` set.
    """
    if not token or not token.strip():
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "Verification token is required", "MISSING_TOKEN"
        )

    try:
        result = lifecycle.confirm(token)
    except TokenNotFoundError as e:
        raise ApiError(
            status.HTTP_404_NOT_FOUND, "This verification link is not valid", e.code
        ) from e
    except TokenExpiredError as e:
        raise ApiError(
            status.HTTP_410_GONE,
            "This verification link has expired. Please subscribe again",
            e.code,
        ) from e
    except StorageUnavailableError as e:
        logger.error("Verification failed: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_ERROR, e.code) from e

    if result.already_verified:
        return VerifyResponse(
            already_verified=True,
            message="Your subscription was already verified",
        )
    return VerifyResponse(message="Your subscription is now verified. Welcome!")
