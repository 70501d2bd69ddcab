import json

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from deps.generation import get_generator, get_http_client, get_provider
from fallback import FALLBACK_PROBLEMS
from generator import ProblemGenerator
from history import question_history
from main import app
from provider import CompletionClient

client = TestClient(app)

GEOMETRY_FALLBACKS = [dict(p, options=[]) for p in FALLBACK_PROBLEMS["10"]["geometry"]]


class MockProvider:
    """Stands in for the completion API at the transport level."""

    def __init__(self, respond):
        self.respond = respond
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def chat_response(content, status=200):
    return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    monkeypatch.setenv("XAI_API_KEY", "test-key")
    question_history.clear()
    yield
    app.dependency_overrides.clear()
    question_history.clear()


@pytest.fixture
def sleeps():
    calls = []

    def generator_without_waits(provider: CompletionClient = Depends(get_provider)):
        return ProblemGenerator(provider, question_history, sleep=calls.append)

    app.dependency_overrides[get_generator] = generator_without_waits
    return calls


def use_provider(respond):
    mock = MockProvider(respond)
    app.dependency_overrides[get_http_client] = lambda: httpx.Client(
        transport=httpx.MockTransport(mock.handler)
    )
    return mock


def test_generate_problem_ok():
    body = {"question": "A park has 3 rows of 4 trees. How many trees?", "answer": "12", "options": []}
    mock = use_provider(lambda r: chat_response(json.dumps(body)))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "Geometry", "nonce": "abc123"})
    assert r.status_code == 200
    assert r.json() == {**body, "type": "geometry"}
    assert r.headers["cache-control"] == "no-store"

    assert len(mock.requests) == 1
    sent = json.loads(mock.requests[0].content)
    assert sent["model"] == "grok-3"
    assert mock.requests[0].headers["authorization"] == "Bearer test-key"


def test_malformed_provider_output_returns_geometry_fallback(sleeps):
    mock = use_provider(lambda r: chat_response("Here's a fun problem about triangles!"))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "geometry"})
    assert r.status_code == 200
    assert r.json() in GEOMETRY_FALLBACKS
    assert "cache-control" not in r.headers
    assert len(mock.requests) == 7
    assert sleeps == [1.0] * 6


def test_rate_limit_then_success(sleeps):
    responses = [
        httpx.Response(429, json={"error": "Too many requests"}),
        chat_response('{"question": "Find f(2) for f(x) = x + 1.", "answer": "3", "options": []}'),
    ]
    mock = use_provider(lambda r: responses.pop(0))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "functions"})
    assert r.status_code == 200
    assert r.json()["answer"] == "3"
    assert r.json()["type"] == "functions"
    assert len(mock.requests) == 2
    assert sleeps == [1.0]


def test_model_error_is_surfaced():
    use_provider(lambda r: httpx.Response(404, json={"error": {"message": "The model grok-3 was not found"}}))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "geometry"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Model access error"
    assert body["status"] == 404
    assert body["responseData"] == {"error": {"message": "The model grok-3 was not found"}}
    assert body["details"]


def test_endpoint_error_is_surfaced():
    use_provider(lambda r: httpx.Response(404, json={"error": "The requested resource was not found."}))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "geometry"})
    assert r.status_code == 400
    assert r.json()["error"] == "API endpoint error"


def test_missing_api_key_makes_no_calls(monkeypatch):
    monkeypatch.delenv("XAI_API_KEY", raising=False)
    mock = use_provider(lambda r: chat_response("{}"))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "geometry"})
    assert r.status_code == 500
    assert r.json() == {"error": "Server configuration error: Missing API key"}
    assert mock.requests == []


def test_missing_topic():
    r = client.get("/generate-problem", params={"grade": "10"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing grade (10) or topic ()"}


def test_invalid_topic_rejected_before_key_check(monkeypatch):
    monkeypatch.delenv("XAI_API_KEY", raising=False)
    r = client.get("/generate-problem", params={"grade": "10", "topic": "calculus"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid grade (10) or topic (calculus)"}


def test_invalid_grade():
    r = client.get("/generate-problem", params={"grade": "42", "topic": "geometry"})
    assert r.status_code == 400
    assert "Invalid grade (42)" in r.json()["error"]


def test_unhandled_error_returns_fallback_with_500():
    class Broken:
        def generate(self, grade, topic):
            raise RuntimeError("boom")

    app.dependency_overrides[get_generator] = lambda: Broken()
    c = TestClient(app, raise_server_exceptions=False)

    r = c.get("/generate-problem", params={"grade": "10", "topic": "Geometry"})
    assert r.status_code == 500
    assert r.json() in GEOMETRY_FALLBACKS


def test_non_json_success_body_is_retried(sleeps):
    responses = [
        httpx.Response(200, text="<html>gateway hiccup</html>"),
        chat_response('{"question": "What is sin(90°)?", "answer": "1", "options": []}'),
    ]
    mock = use_provider(lambda r: responses.pop(0))

    r = client.get("/generate-problem", params={"grade": "10", "topic": "trigonometry"})
    assert r.status_code == 200
    assert r.json()["question"] == "What is sin(90°)?"
    assert r.headers["cache-control"] == "no-store"
    assert len(mock.requests) == 2
    assert sleeps == [1.0]
