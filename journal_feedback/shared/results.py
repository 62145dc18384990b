"""
Stage outcome values for the feedback pipeline.

Every stage (model call, normalization, the pipeline as a whole) returns a
``StageResult``: either a value, or a ``FailureKind`` plus a server-side
description. Failures travel as values; callers branch on ``is_success``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class FailureKind(Enum):
    """Why a stage produced no value."""
    VALIDATION_ERROR = "validation_error"
    MODEL_UNAVAILABLE = "model_unavailable"
    MODEL_EMPTY_RESPONSE = "model_empty_response"
    MALFORMED_RESPONSE = "malformed_response"

    @property
    def retryable(self) -> bool:
        """Only transient remote failures are worth retrying by the caller."""
        return self is FailureKind.MODEL_UNAVAILABLE


@dataclass
class StageResult(Generic[T]):
    """
    Outcome of one pipeline stage.

    Attributes:
        value: The stage output when successful
        failure: Failure kind, None on success
        error: Server-side description of the failure (never sent to clients)
        metadata: Extra loggable facts (model name, token counts, ...)
    """
    value: Optional[T] = None
    failure: Optional[FailureKind] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.failure is None

    @property
    def retryable(self) -> bool:
        return self.failure is not None and self.failure.retryable

    @classmethod
    def success(cls, value: T, **metadata) -> "StageResult[T]":
        """Factory for success results."""
        return cls(value=value, metadata=metadata)

    @classmethod
    def failed(cls, failure: FailureKind, error: str, **metadata) -> "StageResult[T]":
        """Factory for failure results."""
        return cls(failure=failure, error=error, metadata=metadata)
