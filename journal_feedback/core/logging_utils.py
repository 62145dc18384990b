"""
Logging utilities for safe logging of journal requests and model calls.

Includes:
- Secret/content redaction for safe logging
- Request metadata extraction (never the journal text itself)
- Structured usage logging for model API calls
"""
import json
import logging
import re
from typing import Any, Dict, Optional


# Keys whose values are redacted wherever they appear in logged data
SENSITIVE_KEYS = [
    "api_key", "token", "password", "secret", "auth",
    "authorization", "bearer",
    "journal_text", "raw_text", "user_message", "system_instruction",
]


def sanitize_for_logging(data: Any, max_len: int = 100) -> Any:
    """
    Sanitize data for safe logging - redacts secrets and user content.

    Args:
        data: The data to sanitize (can be dict, list, str, or other types)
        max_len: Maximum length for string values before truncation

    Returns:
        Sanitized version of the data safe for logging
    """
    if data is None:
        return "None"

    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            if any(sensitive in str(k).lower() for sensitive in SENSITIVE_KEYS):
                sanitized[k] = "***REDACTED***"
            else:
                sanitized[k] = sanitize_for_logging(v, max_len)
        return sanitized

    if isinstance(data, list):
        return [sanitize_for_logging(item, max_len) for item in data]

    if isinstance(data, str):
        # Remove control characters and newlines for single-line logging
        cleaned = re.sub(r'[\x00-\x1F\x7F]', '', data)
        if len(cleaned) > max_len:
            return cleaned[:max_len] + "..."
        return cleaned

    if isinstance(data, (int, float, bool)):
        return data

    return sanitize_for_logging(str(data), max_len)


def request_log_metadata(
    journal_text: str,
    mood: Optional[int],
    stress: Optional[int],
    language: str,
    timezone: str,
) -> Dict[str, Any]:
    """
    Build the loggable description of a feedback request.

    Only the length of the journal text is kept.
    """
    return {
        "text_length": len(journal_text),
        "mood": mood,
        "stress": stress,
        "language": language,
        "timezone": timezone,
    }


# =============================================================================
# STRUCTURED USAGE LOGGING
# =============================================================================

_usage_logger = logging.getLogger("JournalFeedback.Usage")


def log_llm_usage(
    model: str,
    input_tokens: int,
    output_tokens: int,
    duration_ms: Optional[int] = None,
    stop_reason: Optional[str] = None,
    prompt_version: Optional[str] = None,
    provider: str = "anthropic",
) -> None:
    """
    Log a structured usage event for a model API call.

    This produces a single log line that can be parsed by log aggregation
    systems for token and latency dashboards.

    Args:
        model: Model identifier (e.g., 'claude-sonnet-4-5-20250929')
        input_tokens: Number of input tokens
        output_tokens: Number of output tokens
        duration_ms: Request duration in milliseconds
        stop_reason: Why generation stopped ('end_turn', 'max_tokens', ...)
        prompt_version: Prompt template version used for the call
        provider: 'anthropic' or 'vertex'
    """
    event = {
        "event": "llm_usage",
        "provider": provider,
        "model": model,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }

    if duration_ms is not None:
        event["duration_ms"] = duration_ms

    if stop_reason:
        event["stop_reason"] = stop_reason

    if prompt_version:
        event["prompt_version"] = prompt_version

    _usage_logger.info("LLM_USAGE %s", json.dumps(event))
