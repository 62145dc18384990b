"""
Journal Feedback API Routes

POST /v1/feedback turns one journal entry into structured feedback.

Logs carry request metadata only (lengths, ratings, language, timing,
resulting risk score); the journal text and the model output never reach
a log record or an error response.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request

from journal_feedback.api.dependencies import get_feedback_service
from journal_feedback.core.logging_utils import request_log_metadata, sanitize_for_logging
from journal_feedback.features.feedback import (
    FailureKind,
    FeedbackRequest,
    FeedbackResult,
    FeedbackService,
)
from journal_feedback.shared.constants import PROMPT_VERSION
from journal_feedback.shared.correlation import generate_correlation_id
from journal_feedback.shared.errors import (
    ErrorCode,
    MessageErrorResponse,
    ValidationErrorResponse,
    get_correlation_id,
    internal_error,
)

router = APIRouter(tags=["Feedback"])
logger = logging.getLogger("JournalFeedback.API.Feedback")

_FAILURE_CODES = {
    FailureKind.VALIDATION_ERROR: ErrorCode.VALIDATION_ERROR,
    FailureKind.MODEL_UNAVAILABLE: ErrorCode.MODEL_UNAVAILABLE,
    FailureKind.MODEL_EMPTY_RESPONSE: ErrorCode.MODEL_EMPTY_RESPONSE,
    FailureKind.MALFORMED_RESPONSE: ErrorCode.MALFORMED_RESPONSE,
}


@router.post(
    "/feedback",
    response_model=FeedbackResult,
    responses={
        400: {"model": ValidationErrorResponse},
        429: {"model": MessageErrorResponse},
        500: {"model": MessageErrorResponse},
    },
)
async def create_feedback(
    body: FeedbackRequest,
    request: Request,
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Generate empathetic feedback for a bedtime journal entry.

    Returns the feedback object on success; any generation failure is
    answered with a generic 500 so no internal detail leaves the service.
    """
    request_id = get_correlation_id(request) or generate_correlation_id()
    started = time.perf_counter()

    logger.info(
        "Feedback request received",
        extra={
            "request_id": request_id,
            "prompt_version": PROMPT_VERSION,
            **request_log_metadata(
                journal_text=body.journal_text,
                mood=body.mood,
                stress=body.stress,
                language=body.language,
                timezone=body.timezone,
            ),
        },
    )

    try:
        outcome = await service.generate(body)
    except Exception as exc:
        logger.error(
            "Feedback pipeline raised",
            extra={
                "request_id": request_id,
                "duration_ms": int((time.perf_counter() - started) * 1000),
                "error_code": ErrorCode.INTERNAL_ERROR.value,
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
        return internal_error()

    duration_ms = int((time.perf_counter() - started) * 1000)

    if not outcome.is_success:
        error_code = _FAILURE_CODES.get(outcome.failure, ErrorCode.INTERNAL_ERROR)
        logger.error(
            "Feedback generation failed",
            extra={
                "request_id": request_id,
                "duration_ms": duration_ms,
                "error_code": error_code.value,
                "retryable": outcome.retryable,
                "error": outcome.error,
                "stage_metadata": sanitize_for_logging(outcome.metadata),
            },
        )
        return internal_error()

    feedback = outcome.value
    logger.info(
        "Feedback generated",
        extra={
            "request_id": request_id,
            "duration_ms": duration_ms,
            "risk_score": feedback.risk_score,
            "has_safety_note": feedback.safety_note is not None,
            "tag_count": len(feedback.tags),
            "action_count": len(feedback.next_actions),
            "model": outcome.metadata.get("model"),
            "prompt_version": outcome.metadata.get("prompt_version", PROMPT_VERSION),
        },
    )
    return feedback
