"""Response envelope shared by every lead endpoint, plus its error codes."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """What went wrong: a stable code, a message for people, optional field detail."""

    code: str = Field(..., description="One of ErrorCodes")
    message: str = Field(..., description="Shown to the user as-is")
    details: list[dict[str, Any]] | None = Field(
        None, description="Per-field problems ({row, field, message}) for validation errors"
    )


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="When the response was built (UTC)")
    request_id: str = Field(..., description="Correlates a response with server logs")


class APIResponse(BaseModel):
    """
    Envelope for every JSON response.

    Exactly one of data and error is set, according to success.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=str(uuid4()))


def success_response(data: Any) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta())


def error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None
) -> APIResponse:
    """Failure envelope; details carries FieldError dicts for VALIDATION_ERROR."""
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message, details=details),
        meta=_meta(),
    )


class ErrorCodes:
    """Standard error codes for consistent error handling."""

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    STALE_RECORD = "STALE_RECORD"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Import
    INVALID_CSV = "INVALID_CSV"
    BATCH_TOO_LARGE = "BATCH_TOO_LARGE"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
