"""
Turn raw model text into a validated ``FeedbackResult``.

Models occasionally wrap the JSON in a code fence or add a sentence before
or after it despite the instructions, so the text is unwrapped and the
first balanced ``{...}`` object is preferred over the whole reply. The
parsed object is then type-checked field by field; nothing is repaired or
guessed. Any failure is reported as ``MALFORMED_RESPONSE``.

Failure descriptions never include the model text, which may quote the
journal entry.
"""

import json
import logging
import math
import re
from numbers import Real
from typing import Any, Dict, Optional

from journal_feedback.features.feedback.models import FeedbackResult
from journal_feedback.shared.results import FailureKind, StageResult
from journal_feedback.shared.constants import RISK_SCORE_MAX, RISK_SCORE_MIN

logger = logging.getLogger("JournalFeedback.Feedback.Normalizer")

_OPENING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?```$")

REQUIRED_TEXT_FIELDS = ("summary", "empathic_feedback")
REQUIRED_LIST_FIELDS = ("tags", "next_actions")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number literal {name}")


def strip_code_fence(text: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence."""
    if not text.startswith("```"):
        return text
    text = _OPENING_FENCE.sub("", text, count=1)
    return _CLOSING_FENCE.sub("", text, count=1)


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals do not count towards the balance.
    Returns None when no opening brace is ever closed.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    # Unclosed from the first brace; a later one cannot close either
    return None


def _is_number(value: Any) -> bool:
    if not isinstance(value, Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers too large for a float
        return False


def validate_payload(payload: Dict[str, Any]) -> Optional[str]:
    """Return a description of the first schema violation, or None."""
    for name in REQUIRED_TEXT_FIELDS:
        value = payload.get(name)
        if not isinstance(value, str) or not value:
            return f"'{name}' must be a non-empty string"

    for name in REQUIRED_LIST_FIELDS:
        value = payload.get(name)
        if not isinstance(value, list):
            return f"'{name}' must be an array"
        if not all(isinstance(item, str) for item in value):
            return f"'{name}' must contain only strings"

    if not _is_number(payload.get("risk_score")):
        return "'risk_score' must be a number"

    safety_note = payload.get("safety_note")
    if safety_note is not None and not isinstance(safety_note, str):
        return "'safety_note' must be a string or null"

    return None


def normalize(raw_text: str) -> StageResult[FeedbackResult]:
    """
    Extract, parse and validate a feedback object from raw model text.

    Returns:
        StageResult with the FeedbackResult, or a MALFORMED_RESPONSE failure
    """
    text = (raw_text or "").strip()
    if not text:
        return StageResult.failed(FailureKind.MALFORMED_RESPONSE, "empty model response")

    text = strip_code_fence(text).strip()

    candidate = extract_json_object(text)
    extracted = candidate is not None
    if candidate is None:
        candidate = text

    try:
        payload = json.loads(candidate, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError is a ValueError; position info only, no content
        return StageResult.failed(
            FailureKind.MALFORMED_RESPONSE,
            f"unparsable JSON: {type(exc).__name__} at char {getattr(exc, 'pos', '?')}",
            raw_length=len(raw_text),
            extracted=extracted,
        )

    if not isinstance(payload, dict):
        return StageResult.failed(
            FailureKind.MALFORMED_RESPONSE,
            f"expected a JSON object, got {type(payload).__name__}",
            raw_length=len(raw_text),
        )

    violation = validate_payload(payload)
    if violation:
        return StageResult.failed(
            FailureKind.MALFORMED_RESPONSE,
            violation,
            raw_length=len(raw_text),
            keys=sorted(str(key) for key in payload.keys()),
        )

    result = FeedbackResult(
        summary=payload["summary"],
        empathic_feedback=payload["empathic_feedback"],
        tags=payload["tags"],
        risk_score=payload["risk_score"],
        next_actions=payload["next_actions"],
        safety_note=payload.get("safety_note"),
    )

    # Passed through unclamped; out-of-range scores are only flagged
    if not RISK_SCORE_MIN <= result.risk_score <= RISK_SCORE_MAX:
        logger.warning(
            "Model returned risk_score outside the advisory range",
            extra={"risk_score": result.risk_score},
        )

    return StageResult.success(result, raw_length=len(raw_text), extracted=extracted)
