"""
Standardized error response helpers for the journal feedback service.

Every non-success response leaves the service through one of these helpers
so the external body shapes stay fixed:

    400  {"error": "Validation error", "details": [...]}
    429  {"error": "Too many requests", "message": "..."}
    500  {"error": "Internal server error", "message": "..."}

Usage:
    from journal_feedback.shared.errors import (
        ErrorCode, validation_error, internal_error, validation_details
    )

    # In exception handler:
    return validation_error(details=validation_details(exc.errors()))
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from journal_feedback.shared.constants import (
    GENERATION_FAILED_MESSAGE,
    INTERNAL_ERROR_MESSAGE,
    RATE_LIMITED_ERROR_MESSAGE,
    RATE_LIMITED_MESSAGE,
    VALIDATION_ERROR_MESSAGE,
)
from journal_feedback.shared.logging_config import get_logger

logger = get_logger("JournalFeedback.API.Errors")


class ErrorCode(str, Enum):
    """Error codes used in server-side logs; clients only see the message."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    MODEL_EMPTY_RESPONSE = "MODEL_EMPTY_RESPONSE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


class ValidationDetail(BaseModel):
    """One violated request field."""
    field: str
    message: str
    type: str


class ValidationErrorResponse(BaseModel):
    """400 response body."""
    error: str = VALIDATION_ERROR_MESSAGE
    details: List[ValidationDetail]


class MessageErrorResponse(BaseModel):
    """429/500 response body."""
    error: str
    message: str


def get_correlation_id(request: Optional[Request] = None) -> Optional[str]:
    """
    Extract correlation ID from request state.

    Args:
        request: FastAPI request object (optional)

    Returns:
        Correlation ID string or None if not available
    """
    if request is None:
        return None
    return getattr(request.state, "correlation_id", None)


def validation_details(errors: Iterable[Dict[str, Any]]) -> List[ValidationDetail]:
    """
    Convert pydantic error dicts into client-safe validation details.

    The submitted value (``input``) and constraint context are dropped so
    journal text is never echoed back or written to logs.

    Args:
        errors: Output of ``ValidationError.errors()``

    Returns:
        List of field/message/type details
    """
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append(
            ValidationDetail(
                field=".".join(location) or "body",
                message=error.get("msg", "Invalid value"),
                type=error.get("type", "value_error"),
            )
        )
    return details


def validation_error(details: List[ValidationDetail]) -> JSONResponse:
    """
    Create a 400 validation error response.

    Args:
        details: Field-level validation errors

    Returns:
        JSONResponse with 400 status
    """
    body = ValidationErrorResponse(details=details)
    return JSONResponse(status_code=400, content=body.model_dump())


def internal_error(message: str = GENERATION_FAILED_MESSAGE) -> JSONResponse:
    """
    Create a 500 internal error response.

    Note: Never pass exception text or model output here.

    Args:
        message: User-safe error message

    Returns:
        JSONResponse with 500 status
    """
    body = MessageErrorResponse(error=INTERNAL_ERROR_MESSAGE, message=message)
    return JSONResponse(status_code=500, content=body.model_dump())


def rate_limited_error(retry_after: Optional[int] = None) -> JSONResponse:
    """
    Create a 429 rate limit response.

    Args:
        retry_after: Suggested retry time in seconds

    Returns:
        JSONResponse with 429 status
    """
    body = MessageErrorResponse(error=RATE_LIMITED_ERROR_MESSAGE, message=RATE_LIMITED_MESSAGE)
    headers = {"Retry-After": str(retry_after)} if retry_after else None
    return JSONResponse(status_code=429, content=body.model_dump(), headers=headers)


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Map FastAPI's default 422 to the 400 validation contract."""
    details = validation_details(exc.errors())
    logger.warning(
        "Request validation failed",
        extra={
            "error_code": ErrorCode.VALIDATION_ERROR.value,
            "path": request.url.path,
            "fields": [detail.field for detail in details],
            "error_types": [detail.type for detail in details],
        },
    )
    return validation_error(details)
