"""
Request/response schema for journal feedback.

``FeedbackRequest`` is the inbound contract, ``FeedbackResult`` the shape
returned to callers. The stage outcome type lives in ``journal_feedback.shared.results``.
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field

from journal_feedback.shared.constants import (
    DEFAULT_LANGUAGE,
    DEFAULT_TIMEZONE,
    JOURNAL_TEXT_MAX_LENGTH,
    JOURNAL_TEXT_MIN_LENGTH,
    MOOD_MAX,
    MOOD_MIN,
    STRESS_MAX,
    STRESS_MIN,
)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class FeedbackRequest(BaseModel):
    """A journal entry submitted for feedback. ``journal_text`` is never logged."""
    journal_text: str = Field(
        ...,
        min_length=JOURNAL_TEXT_MIN_LENGTH,
        max_length=JOURNAL_TEXT_MAX_LENGTH,
        strict=True,
    )
    mood: Optional[int] = Field(default=None, ge=MOOD_MIN, le=MOOD_MAX, strict=True)
    stress: Optional[int] = Field(default=None, ge=STRESS_MIN, le=STRESS_MAX, strict=True)
    language: str = Field(default=DEFAULT_LANGUAGE, strict=True)
    timezone: str = Field(default=DEFAULT_TIMEZONE, strict=True)


class FeedbackResult(BaseModel):
    """Structured feedback returned to the caller."""
    summary: str
    empathic_feedback: str
    tags: List[str] = Field(default_factory=list)
    risk_score: float
    next_actions: List[str] = Field(default_factory=list)
    safety_note: Optional[str] = None


@dataclass(frozen=True)
class PromptContext:
    """Per-request prompt pair; built fresh for every request, never shared."""
    system_instruction: str
    user_message: str
    prompt_version: str
