"""
Public contact form endpoints.

Endpoints:
- POST /api/contact - Submit a message (double opt-in)
- GET /api/verify-contact - Confirm the submission from the emailed link
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from localcooks.api.deps import get_contact_service
from localcooks.api.errors import GENERIC_SERVER_ERROR, ApiError, ErrorResponse
from localcooks.components.contact import (
    ContactRequest,
    ContactValidationError,
    ContactVerification,
)
from localcooks.components.newsletter import (
    StorageUnavailableError,
    TokenExpiredError,
    TokenNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ContactFormRequest(BaseModel):
    """Contact form body, as posted by the site (camelCase)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    message: str | None = None
    inquiry_type: str | None = Field(default=None, alias="inquiryType")
    topic: str | None = None
    cooking_description: str | None = Field(default=None, alias="cookingDescription")
    experience: str | None = None
    heard_from: str | None = Field(default=None, alias="heardFrom")

    def to_request(self) -> ContactRequest:
        return ContactRequest(
            name=self.name,
            email=self.email,
            inquiry_type=self.inquiry_type,
            phone=self.phone,
            message=self.message,
            topic=self.topic,
            cooking_description=self.cooking_description,
            experience=self.experience,
            heard_from=self.heard_from,
        )


class ContactResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    requires_verification: bool = Field(default=True, alias="requiresVerification")
    message: str


class ContactVerifyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    already_verified: bool = Field(default=False, alias="alreadyVerified")
    message: str


@router.post(
    "/contact",
    response_model=ContactResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid submission"},
        500: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Submit the contact form",
)
def submit_contact_form(
    request_body: ContactFormRequest,
    service: ContactVerification = Depends(get_contact_service),
) -> ContactResponse:
    try:
        service.submit(request_body.to_request())
    except ContactValidationError as e:
        raise ApiError(status.HTTP_400_BAD_REQUEST, e.reason, e.code) from e
    except StorageUnavailableError as e:
        logger.error("Contact submission failed: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_ERROR, e.code) from e

    return ContactResponse(message="Please check your email to verify your submission")


@router.get(
    "/verify-contact",
    response_model=ContactVerifyResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing token"},
        404: {"model": ErrorResponse, "description": "Unknown token"},
        410: {"model": ErrorResponse, "description": "Expired token"},
        500: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Verify a contact form submission",
)
def verify_contact_submission(
    token: str | None = None,
    service: ContactVerification = Depends(get_contact_service),
) -> ContactVerifyResponse:
    if not token or not token.strip():
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "Verification token is required", "MISSING_TOKEN"
        )

    try:
        result = service.verify(token)
    except TokenNotFoundError as e:
        raise ApiError(
            status.HTTP_404_NOT_FOUND, "This verification link is not valid", e.code
        ) from e
    except TokenExpiredError as e:
        raise ApiError(
            status.HTTP_410_GONE,
            "This verification link has expired. Please send your message again",
            e.code,
        ) from e
    except StorageUnavailableError as e:
        logger.error("Contact verification failed: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_ERROR, e.code) from e

    if result.already_verified:
        return ContactVerifyResponse(
            already_verified=True, message="Your message was already verified"
        )
    return ContactVerifyResponse(
        message="Thanks! Your message has been verified and our team will be in touch"
    )
