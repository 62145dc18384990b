"""
Journal feedback feature module.

Turns a bedtime journal entry into structured empathetic feedback:
- Prompt rendering (one versioned template)
- Model output normalization and validation
- The pipeline service composing both around a model client
"""

from journal_feedback.features.feedback.models import (
    FeedbackRequest,
    FeedbackResult,
    PromptContext,
)
from journal_feedback.features.feedback.normalizer import normalize
from journal_feedback.features.feedback.prompts import build_prompt
from journal_feedback.features.feedback.service import FeedbackService
from journal_feedback.shared.results import FailureKind, StageResult

__all__ = [
    "FailureKind",
    "FeedbackRequest",
    "FeedbackResult",
    "PromptContext",
    "StageResult",
    "normalize",
    "build_prompt",
    "FeedbackService",
]
