"""End-to-end tests for the HTTP surface, with the model client stubbed."""

import json

import pytest

from journal_feedback.core.config import Config
from journal_feedback.shared.constants import GENERATION_FAILED_MESSAGE
from journal_feedback.shared.results import FailureKind


SCENARIO_ONE_REPLY = (
    '{"summary":"A tiring day.","empathic_feedback":"That sounds exhausting.",'
    '"tags":["fatigue"],"risk_score":0.3,"next_actions":["Rest early"],"safety_note":null}'
)


def assert_generic_500(response):
    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal server error",
        "message": GENERATION_FAILED_MESSAGE,
    }


# =============================================================================
# Success path
# =============================================================================

def test_feedback_returns_model_object(client_for, stub_returning):
    """A valid model reply is returned unchanged with 200."""
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.post("/v1/feedback", json={"journal_text": "今日は疲れた"})

    assert response.status_code == 200
    assert response.json() == json.loads(SCENARIO_ONE_REPLY)


def test_feedback_accepts_full_request(client_for, stub_returning):
    stub = stub_returning("```json\n" + SCENARIO_ONE_REPLY + "\n```")
    client = client_for(stub)

    response = client.post(
        "/v1/feedback",
        json={
            "journal_text": "Work was stressful",
            "mood": 2,
            "stress": 6,
            "language": "en",
            "timezone": "Europe/Berlin",
        },
    )

    assert response.status_code == 200
    _, user_message = stub.calls[0]
    assert "Mood level: 2/5" in user_message
    assert "Stress level: 6/7" in user_message
    assert "Language: en" in user_message


def test_feedback_defaults_language_to_japanese(client_for, stub_returning):
    stub = stub_returning(SCENARIO_ONE_REPLY)
    client = client_for(stub)

    client.post("/v1/feedback", json={"journal_text": "今日は疲れた"})

    _, user_message = stub.calls[0]
    assert "Language: ja" in user_message


def test_feedback_accepts_maximum_length(client_for, stub_returning):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.post("/v1/feedback", json={"journal_text": "あ" * 1000})

    assert response.status_code == 200


def test_feedback_passes_out_of_range_risk_score(client_for, stub_returning, valid_feedback):
    valid_feedback["risk_score"] = 1.4
    client = client_for(stub_returning(json.dumps(valid_feedback)))

    response = client.post("/v1/feedback", json={"journal_text": "text"})

    assert response.status_code == 200
    assert response.json()["risk_score"] == 1.4


# =============================================================================
# Validation
# =============================================================================

def test_feedback_rejects_overlong_text(client_for, stub_returning):
    """1001 characters is a 400 citing the length, and the model is never called."""
    stub = stub_returning(SCENARIO_ONE_REPLY)
    client = client_for(stub)
    journal_text = "x" * 1001

    response = client.post("/v1/feedback", json={"journal_text": journal_text})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation error"
    assert body["details"][0]["field"] == "journal_text"
    assert body["details"][0]["type"] == "string_too_long"
    assert journal_text not in response.text
    assert stub.calls == []


@pytest.mark.parametrize(
    "payload, field",
    [
        ({}, "journal_text"),
        ({"journal_text": ""}, "journal_text"),
        ({"journal_text": 123}, "journal_text"),
        ({"journal_text": "ok", "mood": 0}, "mood"),
        ({"journal_text": "ok", "mood": 6}, "mood"),
        ({"journal_text": "ok", "mood": 3.5}, "mood"),
        ({"journal_text": "ok", "mood": 3.0}, "mood"),
        ({"journal_text": "ok", "mood": "3"}, "mood"),
        ({"journal_text": "ok", "mood": True}, "mood"),
        ({"journal_text": "ok", "stress": 0}, "stress"),
        ({"journal_text": "ok", "stress": 8}, "stress"),
        ({"journal_text": "ok", "language": 5}, "language"),
    ],
)
def test_feedback_validation_errors(client_for, stub_returning, payload, field):
    stub = stub_returning(SCENARIO_ONE_REPLY)
    client = client_for(stub)

    response = client.post("/v1/feedback", json=payload)

    assert response.status_code == 400
    fields = [detail["field"] for detail in response.json()["details"]]
    assert field in fields
    assert stub.calls == []


def test_feedback_accepts_null_ratings(client_for, stub_returning):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.post("/v1/feedback", json={"journal_text": "ok", "mood": None, "stress": None})

    assert response.status_code == 200


def test_feedback_rejects_non_json_body(client_for, stub_returning):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.post(
        "/v1/feedback",
        content="not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


# =============================================================================
# Generation failures
# =============================================================================

@pytest.mark.parametrize(
    "kind",
    [FailureKind.MODEL_UNAVAILABLE, FailureKind.MODEL_EMPTY_RESPONSE],
)
def test_feedback_model_failure_is_generic_500(client_for, stub_failing, kind):
    """Model failures surface as a generic 500 without internal detail."""
    client = client_for(stub_failing(kind, "vertex quota exceeded for project xyz"))

    response = client.post("/v1/feedback", json={"journal_text": "今日は疲れた"})

    assert_generic_500(response)
    assert "vertex" not in response.text
    assert "quota" not in response.text


def test_feedback_malformed_reply_is_500(client_for, stub_returning):
    """Prose without any JSON object fails normalization."""
    client = client_for(stub_returning("I'm sorry, I can't provide feedback today."))

    response = client.post("/v1/feedback", json={"journal_text": "今日は疲れた"})

    assert_generic_500(response)
    assert "sorry" not in response.text


def test_feedback_incomplete_object_is_500(client_for, stub_returning, valid_feedback):
    valid_feedback.pop("summary")
    client = client_for(stub_returning(json.dumps(valid_feedback)))

    response = client.post("/v1/feedback", json={"journal_text": "text"})

    assert_generic_500(response)


def test_feedback_unexpected_exception_is_500(client_for, stub_raising):
    """An exception escaping the model client still yields the generic 500."""
    client = client_for(stub_raising(RuntimeError("socket closed at 10.0.0.3")))

    response = client.post("/v1/feedback", json={"journal_text": "text"})

    assert_generic_500(response)
    assert "10.0.0.3" not in response.text


# =============================================================================
# Health, correlation, CORS, rate limit
# =============================================================================

def test_healthz(client_for, stub_returning):
    stub = stub_returning(SCENARIO_ONE_REPLY)
    client = client_for(stub)

    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert stub.calls == []


def test_correlation_id_echoed(client_for, stub_returning):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.post(
        "/v1/feedback",
        json={"journal_text": "text"},
        headers={"X-Request-ID": "req-123"},
    )

    assert response.headers["X-Correlation-ID"] == "req-123"


def test_correlation_id_generated(client_for, stub_returning):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.get("/healthz")

    assert len(response.headers["X-Correlation-ID"]) == 36


@pytest.mark.parametrize("origin", ["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:8000"])
def test_cors_allows_localhost(client_for, stub_returning, origin):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.options(
        "/v1/feedback",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin


def test_cors_rejects_unknown_origin(client_for, stub_returning):
    client = client_for(stub_returning(SCENARIO_ONE_REPLY))

    response = client.options(
        "/v1/feedback",
        headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert "access-control-allow-origin" not in response.headers


def test_rate_limit_returns_429(client_for, stub_returning):
    """Requests past the per-client limit are refused before reaching the model."""
    config = Config()
    config.RATE_LIMIT_MAX_REQUESTS = 2
    stub = stub_returning(SCENARIO_ONE_REPLY)
    client = client_for(stub, config=config)

    statuses = [
        client.post("/v1/feedback", json={"journal_text": "text"}).status_code
        for _ in range(3)
    ]

    assert statuses == [200, 200, 429]
    assert len(stub.calls) == 2

    limited = client.post("/v1/feedback", json={"journal_text": "text"})
    assert limited.json() == {
        "error": "Too many requests",
        "message": "Rate limit exceeded. Please try again later.",
    }
    assert int(limited.headers["Retry-After"]) >= 1


def test_rate_limit_exempts_healthz(client_for, stub_returning):
    config = Config()
    config.RATE_LIMIT_MAX_REQUESTS = 1
    client = client_for(stub_returning(SCENARIO_ONE_REPLY), config=config)

    statuses = [client.get("/healthz").status_code for _ in range(3)]

    assert statuses == [200, 200, 200]


def test_service_dependency_can_be_overridden(client_for, stub_returning, stub_failing):
    """The injected service is resolved per request through the dependency."""
    from journal_feedback.api.dependencies import get_feedback_service
    from journal_feedback.features.feedback import FeedbackService

    client = client_for(stub_failing(FailureKind.MODEL_UNAVAILABLE))
    replacement = FeedbackService(stub_returning(SCENARIO_ONE_REPLY))
    client.app.dependency_overrides[get_feedback_service] = lambda: replacement

    response = client.post("/v1/feedback", json={"journal_text": "今日は疲れた"})

    assert response.status_code == 200
    assert response.json()["summary"] == "A tiring day."
