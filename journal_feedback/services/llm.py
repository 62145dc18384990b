"""Claude text generation for journal feedback."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import anthropic
import httpx
from anthropic import AsyncAnthropic, AsyncAnthropicVertex

from journal_feedback.core.config import Config, settings
from journal_feedback.core.logging_utils import log_llm_usage, sanitize_for_logging
from journal_feedback.core.tracing import get_tracer
from journal_feedback.shared.results import FailureKind, StageResult
from journal_feedback.shared.constants import PROMPT_VERSION

logger = logging.getLogger("JournalFeedback.LLM")
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class GenerationConfig:
    """Fixed sampling parameters; requests cannot change them."""
    temperature: float = 0.7
    max_output_tokens: int = 1024
    top_p: Optional[float] = None

    @classmethod
    def from_settings(cls, config: Config = settings) -> "GenerationConfig":
        return cls(
            temperature=config.MODEL_TEMPERATURE,
            max_output_tokens=config.MODEL_MAX_OUTPUT_TOKENS,
            top_p=config.MODEL_TOP_P,
        )


class ModelClient(ABC):
    """Remote text generation: one prompt pair in, raw text (or a failure) out."""

    @abstractmethod
    async def invoke(self, system_instruction: str, user_message: str) -> StageResult[str]:
        """
        Run one generation.

        Returns:
            StageResult with the raw completion text, or a failure of kind
            MODEL_UNAVAILABLE / MODEL_EMPTY_RESPONSE
        """


class ClaudeModelClient(ModelClient):
    """Call Claude directly or through Vertex AI. Never retries."""

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        generation: Optional[GenerationConfig] = None,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        config: Config = settings,
    ) -> None:
        self.model = model or config.CLAUDE_MODEL
        self.generation = generation or GenerationConfig.from_settings(config)
        self.timeout_seconds = timeout_seconds or config.MODEL_TIMEOUT_SECONDS
        self.provider = "vertex" if config.USE_VERTEX else "anthropic"
        self.client = client or self._build_client(config, http_client)

        logger.info(
            "Claude model client initialized",
            extra={
                "provider": self.provider,
                "model": self.model,
                "timeout_seconds": self.timeout_seconds,
            },
        )

    def _build_client(self, config: Config, http_client: Optional[httpx.AsyncClient]):
        # Retry policy belongs to the caller, so the SDK's own retries are off
        if config.USE_VERTEX:
            return AsyncAnthropicVertex(
                project_id=config.GCP_PROJECT_ID,
                region=config.GCP_REGION,
                max_retries=0,
                timeout=self.timeout_seconds,
                http_client=http_client,
            )
        return AsyncAnthropic(
            api_key=config.ANTHROPIC_API_KEY,
            max_retries=0,
            timeout=self.timeout_seconds,
            http_client=http_client,
        )

    def _request_kwargs(self, system_instruction: str, user_message: str) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.generation.max_output_tokens,
            "temperature": self.generation.temperature,
            "system": system_instruction,
            "messages": [{"role": "user", "content": user_message}],
        }
        if self.generation.top_p is not None:
            kwargs["top_p"] = self.generation.top_p
        return kwargs

    @staticmethod
    def _response_text(response: Any) -> str:
        blocks = getattr(response, "content", None) or []
        parts = [
            block.text
            for block in blocks
            if getattr(block, "type", None) == "text" and getattr(block, "text", None)
        ]
        return "".join(parts)

    async def invoke(self, system_instruction: str, user_message: str) -> StageResult[str]:
        """Send the prompt pair to Claude and return raw text output."""

        kwargs = self._request_kwargs(system_instruction, user_message)
        started = time.perf_counter()

        with tracer.start_as_current_span("model.invoke") as span:
            span.set_attribute("model", self.model)
            span.set_attribute("provider", self.provider)
            span.set_attribute("prompt_version", PROMPT_VERSION)
            span.set_attribute("user_message_length", len(user_message))

            try:
                # Stops waiting locally; the remote generation may still run
                response = await asyncio.wait_for(
                    self.client.messages.create(**kwargs),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                span.set_attribute("failure", FailureKind.MODEL_UNAVAILABLE.value)
                return StageResult.failed(
                    FailureKind.MODEL_UNAVAILABLE,
                    f"model call timed out after {self.timeout_seconds}s",
                    model=self.model,
                )
            except anthropic.APIError as exc:
                span.set_attribute("failure", FailureKind.MODEL_UNAVAILABLE.value)
                status_code = getattr(exc, "status_code", None)
                return StageResult.failed(
                    FailureKind.MODEL_UNAVAILABLE,
                    f"{type(exc).__name__}: {sanitize_for_logging(str(exc), max_len=200)}",
                    model=self.model,
                    status_code=status_code,
                )

            duration_ms = int((time.perf_counter() - started) * 1000)

            usage = getattr(response, "usage", None)
            if usage is not None:
                log_llm_usage(
                    model=self.model,
                    input_tokens=getattr(usage, "input_tokens", 0) or 0,
                    output_tokens=getattr(usage, "output_tokens", 0) or 0,
                    duration_ms=duration_ms,
                    stop_reason=getattr(response, "stop_reason", None),
                    prompt_version=PROMPT_VERSION,
                    provider=self.provider,
                )

            text = self._response_text(response)
            if not text.strip():
                span.set_attribute("failure", FailureKind.MODEL_EMPTY_RESPONSE.value)
                return StageResult.failed(
                    FailureKind.MODEL_EMPTY_RESPONSE,
                    f"model {self.model} returned no text",
                    model=self.model,
                    stop_reason=getattr(response, "stop_reason", None),
                )

            span.set_attribute("response_length", len(text))
            return StageResult.success(text, model=self.model, duration_ms=duration_ms)
