"""
Tests for the HTTP API, with injected fake analyzers.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from email_orchestrator.api import create_app
from email_orchestrator.models import LanguageResult, ReplyResult, SummarizerResult, Tone
from email_orchestrator.orchestrator import Analyzers, MasterOrchestrator
from email_orchestrator.spam_detector import detect_spam

EMAIL_JSON = {
    "from": "john@acme.com",
    "subject": "Project sync",
    "body": "Let's meet Tuesday at 3pm in Room 204.",
}


@pytest.fixture
def analyzers():
    return Analyzers(
        summarizer=AsyncMock(return_value=SummarizerResult(summary="Sync on Tuesday.", key_points=["Room 204"])),
        spam_detector=AsyncMock(side_effect=lambda e: detect_spam(e)),
        calendar_extractor=AsyncMock(return_value=None),
        language_detector=AsyncMock(return_value=LanguageResult(language="en", language_name="English")),
        reply_generator=AsyncMock(return_value=ReplyResult(reply="See you there.", tone=Tone.CASUAL)),
    )


@pytest.fixture
def client(analyzers):
    return TestClient(create_app(MasterOrchestrator(analyzers)))


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "email-orchestrator"
    assert "timestamp" in body


def test_process_email(client):
    response = client.post("/api/process-email", json={"email": EMAIL_JSON})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    result = body["orchestration_result"]
    assert result["summary"] == "Sync on Tuesday."
    assert result["suggested_reply"] == "See you there."
    assert result["priority"] == "medium"
    assert result["detected_language"]["code"] == "en"
    assert "Reply generated (tone=casual)" in result["actions_taken"]


def test_process_email_missing_email(client):
    response = client.post("/api/process-email", json={})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing email in request body"}


def test_process_email_invalid_email(client):
    response = client.post("/api/process-email", json={"email": {"subject": "no sender"}})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"].startswith("Invalid email")


def test_process_email_invalid_json(client):
    response = client.post(
        "/api/process-email",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_process_email_undecodable_body(client):
    response = client.post(
        "/api/process-email",
        content=b'{"email": {"from": "\xff\xfe", "subject": "Hi", "body": "Hello"}}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"].startswith("Invalid JSON body")


def test_agent_undecodable_body(client):
    response = client.post(
        "/api/agents/spam-detector",
        content=b'{"email": {"from": "\xff\xfe"}}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400


def test_process_email_unexpected_failure(analyzers, client):
    analyzers.summarizer.side_effect = RuntimeError("kaboom")
    response = client.post("/api/process-email", json={"email": EMAIL_JSON})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "kaboom"}


def test_agent_summarizer(client):
    response = client.post("/api/agents/summarizer", json={"email": EMAIL_JSON})
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "result": {"summary": "Sync on Tuesday.", "keyPoints": ["Room 204"], "actionItems": []},
        "error": None,
    }


def test_agent_spam_detector_uses_camel_case(client):
    response = client.post("/api/agents/spam-detector", json={"email": EMAIL_JSON})
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["isSpam"] is False
    assert result["features"]["senderDomainMismatch"] is False


def test_agent_calendar_extractor_without_event(client):
    response = client.post("/api/agents/calendar-extractor", json={"email": EMAIL_JSON})
    assert response.json() == {"success": True, "result": None, "error": None}


def test_agent_language_detector(client):
    response = client.post("/api/agents/language-detector", json={"email": EMAIL_JSON})
    assert response.json()["result"]["languageName"] == "English"


def test_agent_invalid_email(client):
    response = client.post("/api/agents/summarizer", json={"email": {"from": "a@b.com"}})
    assert response.status_code == 400


def test_agent_failure(analyzers, client):
    analyzers.language_detector.side_effect = RuntimeError("down")
    response = client.post("/api/agents/language-detector", json={"email": EMAIL_JSON})
    assert response.status_code == 500
    assert response.json()["error"] == "down"
