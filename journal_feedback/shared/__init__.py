# Shared constants and utilities
from .constants import (
    PROMPT_VERSION,
    JOURNAL_TEXT_MAX_LENGTH,
    DEFAULT_LANGUAGE,
    DEFAULT_TIMEZONE,
)

__all__ = [
    "PROMPT_VERSION",
    "JOURNAL_TEXT_MAX_LENGTH",
    "DEFAULT_LANGUAGE",
    "DEFAULT_TIMEZONE",
]
