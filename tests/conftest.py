import json
from types import SimpleNamespace

import httpx
import pytest

SAMPLE_RESUME = """Jane Doe
jane.doe@example.com
+1 (415) 555-0134

Summary
Backend engineer with six years of experience building APIs in Python and Node.js for retail platforms.

Experience
Senior Software Engineer, Acme Corp, 2019 - 2024
- Built REST APIs serving two million requests per day
- Migrated services to Docker and AWS

Education
B.Sc. Computer Science, State University

Skills
Python, Node.js, PostgreSQL, Docker, AWS, Git
"""


class FakeCompletions:
    def __init__(self, content=None, error=None, wait_for=None):
        self.content = content
        self.error = error
        self.wait_for = wait_for
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.wait_for is not None:
            self.wait_for.wait(5)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClient:
    """Stands in for openai.OpenAI: exposes chat.completions.create only."""

    def __init__(self, **kwargs):
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)


def status_error(error_cls, status, code=None):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status, request=request)
    body = {"message": "provider failure", "code": code} if code else None
    return error_cls("provider failure", response=response, body=body)


@pytest.fixture
def sample_resume():
    return SAMPLE_RESUME


@pytest.fixture
def make_client():
    return FakeClient


@pytest.fixture
def make_status_error():
    return status_error


@pytest.fixture
def ai_payload():
    def build(**overrides):
        payload = {
            "matchPercentage": 82,
            "atsScore": 74,
            "matchedSkills": ["python", "Docker", "Kubernetes"],
            "missingSkills": ["SQL"],
            "suggestions": ["Add a SQL project.", "Quantify the Docker migration."],
            "detailedFeedback": "Strong Python background with container experience.",
        }
        payload.update(overrides)
        return json.dumps(payload)

    return build
