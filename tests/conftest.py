"""Shared fixtures for all tests."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.core.config import RelayConfig
from backend.core.gemini_client import GeminiClient
from backend.main import create_app


def gemini_body(text: str) -> dict:
    """Minimal successful generateContent response."""
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class FakeGemini:
    """Records generateContent calls and replies with a canned response."""

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.status_code = 200
        self.body: dict | str = gemini_body("I'm fine")

    def reply(self, status_code: int, body: dict | str):
        self.status_code = status_code
        self.body = body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def sent_prompt(self, index: int = -1) -> str:
        payload = json.loads(self.calls[index].content)
        return payload["contents"][0]["parts"][0]["text"]


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(
        relay_url="http://relay.test",
        client_key="test-client-key",
        gemini_api_key="test-gemini-key",
    )


@pytest.fixture
def fake_gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def make_client(fake_gemini):
    """Factory: TestClient for a relay app built from the given config."""
    def _make(config: RelayConfig) -> TestClient:
        gemini = GeminiClient(config, transport=fake_gemini.transport)
        return TestClient(create_app(config, gemini=gemini))
    return _make


@pytest.fixture
def api(make_client, relay_config) -> TestClient:
    return make_client(relay_config)


@pytest.fixture
def sample_history() -> list[dict]:
    """12 alternating turns: u0, a1, u2, ... a11."""
    return [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"turn {i}"}
        for i in range(12)
    ]
