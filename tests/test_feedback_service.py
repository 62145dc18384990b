"""Tests for the feedback pipeline composition."""

import json

import pytest

from journal_feedback.features.feedback import FeedbackRequest, FeedbackService
from journal_feedback.shared.constants import PROMPT_VERSION
from journal_feedback.shared.results import FailureKind


@pytest.mark.asyncio
async def test_generate_success(stub_returning, valid_feedback):
    """A valid model reply becomes a FeedbackResult."""
    stub = stub_returning(json.dumps(valid_feedback))
    service = FeedbackService(stub)

    outcome = await service.generate(FeedbackRequest(journal_text="今日は疲れた", mood=3))

    assert outcome.is_success
    assert outcome.value.model_dump() == valid_feedback
    assert outcome.metadata["prompt_version"] == PROMPT_VERSION
    assert outcome.metadata["model"] == "stub-model"


@pytest.mark.asyncio
async def test_generate_sends_rendered_prompt(stub_returning, valid_feedback):
    """The model receives the journal text and the request's context lines."""
    stub = stub_returning(json.dumps(valid_feedback))
    service = FeedbackService(stub)

    await service.generate(FeedbackRequest(journal_text="Long meeting day", stress=6, language="en"))

    assert len(stub.calls) == 1
    system_instruction, user_message = stub.calls[0]
    assert "Long meeting day" in user_message
    assert "Stress level: 6/7" in user_message
    assert "Mood level:" not in user_message
    assert "Language: en" in user_message
    assert "Long meeting day" not in system_instruction


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind",
    [FailureKind.MODEL_UNAVAILABLE, FailureKind.MODEL_EMPTY_RESPONSE],
)
async def test_generate_propagates_model_failure(stub_failing, kind):
    """A model failure is returned unchanged and normalization never runs."""
    service = FeedbackService(stub_failing(kind, "boom"))

    outcome = await service.generate(FeedbackRequest(journal_text="text"))

    assert not outcome.is_success
    assert outcome.failure is kind
    assert outcome.error == "boom"
    assert outcome.metadata["prompt_version"] == PROMPT_VERSION


@pytest.mark.asyncio
async def test_generate_reports_malformed_reply(stub_returning):
    service = FeedbackService(stub_returning("I'm sorry, I can't help with that."))

    outcome = await service.generate(FeedbackRequest(journal_text="text"))

    assert outcome.failure is FailureKind.MALFORMED_RESPONSE
    assert outcome.metadata["model"] == "stub-model"


@pytest.mark.asyncio
async def test_generate_calls_model_once_per_request(stub_returning, valid_feedback):
    """No retries and no caching between requests."""
    stub = stub_returning(json.dumps(valid_feedback))
    service = FeedbackService(stub)
    request = FeedbackRequest(journal_text="same text")

    await service.generate(request)
    await service.generate(request)

    assert len(stub.calls) == 2


@pytest.mark.asyncio
async def test_generate_leaves_stage_results_untouched(stub_failing):
    """The model client's result is not modified when a failure is passed on."""
    stub = stub_failing(FailureKind.MODEL_UNAVAILABLE, "boom")
    service = FeedbackService(stub)

    first = await service.generate(FeedbackRequest(journal_text="text"))
    second = await service.generate(FeedbackRequest(journal_text="text"))

    assert stub.outcome.metadata == {"model": "stub-model"}
    assert first is not stub.outcome
    assert first.metadata == second.metadata == {"prompt_version": PROMPT_VERSION, "model": "stub-model"}
