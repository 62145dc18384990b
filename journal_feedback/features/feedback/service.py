"""
Feedback generation pipeline.

    FeedbackRequest -> build_prompt -> ModelClient.invoke -> normalize -> FeedbackResult

Each stage returns a ``StageResult``; the first failure is returned as-is
and later stages are skipped. There is no fallback generation and nothing
is cached between requests.
"""

import logging
import time

from journal_feedback.features.feedback.models import FeedbackRequest, FeedbackResult
from journal_feedback.features.feedback.normalizer import normalize
from journal_feedback.features.feedback.prompts import build_prompt
from journal_feedback.services.llm import ModelClient
from journal_feedback.shared.results import StageResult

logger = logging.getLogger("JournalFeedback.Feedback.Service")


class FeedbackService:
    """Compose prompt rendering, one model call and response normalization."""

    def __init__(self, model_client: ModelClient) -> None:
        self.model_client = model_client

    async def generate(self, request: FeedbackRequest) -> StageResult[FeedbackResult]:
        started = time.perf_counter()

        prompt = build_prompt(
            journal_text=request.journal_text,
            language=request.language,
            mood=request.mood,
            stress=request.stress,
        )

        completion = await self.model_client.invoke(prompt.system_instruction, prompt.user_message)
        if not completion.is_success:
            metadata = {"prompt_version": prompt.prompt_version, **completion.metadata}
            return StageResult.failed(completion.failure, completion.error, **metadata)

        normalized = normalize(completion.value)
        if not normalized.is_success:
            metadata = {
                "prompt_version": prompt.prompt_version,
                "model": completion.metadata.get("model"),
                **normalized.metadata,
            }
            return StageResult.failed(normalized.failure, normalized.error, **metadata)

        logger.debug(
            "Feedback pipeline finished",
            extra={
                "pipeline_ms": int((time.perf_counter() - started) * 1000),
                "extracted": normalized.metadata.get("extracted"),
            },
        )
        return StageResult.success(
            normalized.value,
            prompt_version=prompt.prompt_version,
            model=completion.metadata.get("model"),
        )
