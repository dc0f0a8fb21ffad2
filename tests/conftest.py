"""
Pytest configuration and fixtures for all tests.
"""

import os
from datetime import datetime, timezone

import pytest

# Keep tests hermetic: no real LLM services, no .env surprises.
os.environ["OPENAI_API_KEY"] = ""
os.environ["USE_OLLAMA"] = "false"
os.environ.setdefault("LOG_LEVEL", "INFO")

from email_orchestrator.config import Config  # noqa: E402
from email_orchestrator.models import Email  # noqa: E402


@pytest.fixture
def now():
    """Fixed reference time: Monday 2024-01-15 09:00 UTC."""
    return datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def config():
    return Config(
        OPENAI_API_KEY="test-key",
        OPENAI_BASE_URL="https://llm.test/v1/chat/completions",
        OLLAMA_HOST="http://ollama.test",
        USE_OLLAMA=True,
        LLM_TIMEOUT_SECONDS=5.0,
        _env_file=None,
    )


@pytest.fixture
def meeting_email():
    return Email.model_validate(
        {
            "from": "john@acme.com",
            "subject": "Project sync",
            "body": "Let's meet Tuesday at 3pm in Room 204 to review the roadmap.",
        }
    )


@pytest.fixture
def phishing_email():
    return Email.model_validate(
        {
            "from": "PayPal Security <security@paypa1-verify.com>",
            "subject": "URGENT: Your account has been suspended",
            "body": (
                "Dear customer, your account has been suspended. Verify your account"
                " immediately by clicking here: http://bit.ly/verify-now or it will be"
                " closed within 24 hours."
            ),
        }
    )


@pytest.fixture
def plain_email():
    return Email.model_validate(
        {
            "from": "alice@example.com",
            "subject": "Quarterly report",
            "body": "Hi team, the quarterly report is attached. Let me know if you have questions.",
        }
    )
