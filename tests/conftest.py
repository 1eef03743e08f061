"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.services.errors import AbuseShieldError, AuthenticationError


def openai_reply(text: Optional[str]) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": text}}]})


def gemini_reply(text: Optional[str]) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class RecordingTransport:
    """httpx transport that records outbound requests and answers from a responder callable."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.responder = responder or (lambda request: openai_reply("HELLO"))
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)

    def hosts(self) -> List[str]:
        return [r.url.host for r in self.requests]


class FakeAuthenticator:
    def __init__(self, user_id: Optional[str] = "user_123"):
        self.user_id = user_id
        self.calls = 0

    async def authenticate(self, request) -> str:
        self.calls += 1
        if not self.user_id:
            raise AuthenticationError("Unauthorized")
        return self.user_id


class FakeShield:
    def __init__(self, allow: bool = True):
        self.allow = allow
        self.calls = 0

    async def check(self, request) -> None:
        self.calls += 1
        if not self.allow:
            raise AbuseShieldError("Forbidden")


SESSION_SECRET = "test-session-secret-0123456789abcdef"


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "sk-test",
        "google_api_key": "g-test",
        "environment": "test",
        "session_secret": SESSION_SECRET,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_client(transport: RecordingTransport):
    """Build a TestClient whose outbound HTTP goes through the recording transport."""

    def _make(settings: Optional[Settings] = None, authenticator=None, shield=None) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        app = create_app(
            settings=settings or make_settings(),
            http_client=http_client,
            authenticator=authenticator,
            shield=shield,
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client(authenticator=FakeAuthenticator(), shield=FakeShield())


@pytest.fixture
def cv_data() -> dict:
    return {
        "contact": {"name": "Ada Lovelace", "email": "ada@example.com", "location": "London"},
        "summary": "Engineer focused on analytical engines.",
        "experience": [
            {
                "id": "1",
                "company": "Engines Ltd",
                "position": "Lead Engineer",
                "startDate": "2020-01",
                "endDate": None,
                "location": "London",
                "description": ["Designed the first published algorithm"],
                "technologies": ["Python"],
            }
        ],
        "education": [],
        "projects": [],
        "skills": [{"category": "Languages", "items": ["Python", "Go"]}],
    }
