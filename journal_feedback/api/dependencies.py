from fastapi import Request

from journal_feedback.features.feedback import FeedbackService


def get_feedback_service(request: Request) -> FeedbackService:
    """Provide the FeedbackService built at startup for request handlers."""
    return request.app.state.feedback_service
