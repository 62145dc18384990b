import json
from typing import Callable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from journal_feedback.core.config import Config
from journal_feedback.features.feedback import FeedbackService
from journal_feedback.services.llm import ModelClient
from journal_feedback.shared.results import FailureKind, StageResult
from main import create_app


VALID_FEEDBACK = {
    "summary": "A tiring day.",
    "empathic_feedback": "That sounds exhausting.",
    "tags": ["fatigue"],
    "risk_score": 0.3,
    "next_actions": ["Rest early"],
    "safety_note": None,
}


class StubModelClient(ModelClient):
    """Scripted model client: returns a fixed outcome or raises."""

    def __init__(self, outcome: Optional[StageResult] = None, raises: Optional[Exception] = None):
        self.outcome = outcome
        self.raises = raises
        self.calls: List[Tuple[str, str]] = []

    async def invoke(self, system_instruction: str, user_message: str) -> StageResult[str]:
        self.calls.append((system_instruction, user_message))
        if self.raises is not None:
            raise self.raises
        return self.outcome


@pytest.fixture
def valid_feedback() -> dict:
    """A well-formed feedback object as the model would return it."""
    return dict(VALID_FEEDBACK)


@pytest.fixture
def stub_returning() -> Callable[[str], StubModelClient]:
    """Build a stub whose invoke() succeeds with the given raw text."""
    def _build(raw_text: str) -> StubModelClient:
        return StubModelClient(outcome=StageResult.success(raw_text, model="stub-model"))
    return _build


@pytest.fixture
def stub_failing() -> Callable[[FailureKind, str], StubModelClient]:
    """Build a stub whose invoke() reports the given failure kind."""
    def _build(kind: FailureKind, error: str = "stub failure") -> StubModelClient:
        return StubModelClient(outcome=StageResult.failed(kind, error, model="stub-model"))
    return _build


@pytest.fixture
def stub_raising() -> Callable[[Exception], StubModelClient]:
    """Build a stub whose invoke() raises instead of returning a result."""
    def _build(error: Exception) -> StubModelClient:
        return StubModelClient(raises=error)
    return _build


@pytest.fixture
def client_for() -> Callable[..., TestClient]:
    """Build a TestClient around an app wired to the given model client."""
    def _build(model_client: ModelClient, config: Optional[Config] = None) -> TestClient:
        app_config = config or Config()
        app = create_app(config=app_config, feedback_service=FeedbackService(model_client))
        return TestClient(app)
    return _build


@pytest.fixture
def valid_feedback_text(valid_feedback) -> str:
    return json.dumps(valid_feedback)
