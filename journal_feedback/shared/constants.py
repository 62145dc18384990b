"""
Shared constants for the journal feedback service.

Request bounds here are the single source of truth for both the request
schema and the prompt context lines.
"""

# Version of the canonical prompt template, logged with every request
PROMPT_VERSION = "sleep-journal-v1"

# Request bounds
JOURNAL_TEXT_MIN_LENGTH = 1
JOURNAL_TEXT_MAX_LENGTH = 1000

MOOD_MIN = 1
MOOD_MAX = 5

STRESS_MIN = 1
STRESS_MAX = 7

DEFAULT_LANGUAGE = "ja"
DEFAULT_TIMEZONE = "Asia/Tokyo"

# Advisory range of the model-estimated risk score
RISK_SCORE_MIN = 0.0
RISK_SCORE_MAX = 1.0

# Client-facing messages (never carry internal detail)
VALIDATION_ERROR_MESSAGE = "Validation error"
INTERNAL_ERROR_MESSAGE = "Internal server error"
GENERATION_FAILED_MESSAGE = "Failed to generate feedback. Please try again later."
RATE_LIMITED_ERROR_MESSAGE = "Too many requests"
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
