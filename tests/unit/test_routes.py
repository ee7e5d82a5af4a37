"""Unit tests for the chat relay endpoint (TestClient + fake Gemini transport)."""

import dataclasses
from datetime import datetime

import pytest
from structlog.testing import capture_logs

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def _assert_cors(resp):
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-headers"] == ALLOW_HEADERS


def _assert_timestamp(value: str):
    assert value.endswith("Z")
    datetime.fromisoformat(value.replace("Z", "+00:00"))


class TestPreflight:

    def test_options_returns_empty_200(self, api, fake_gemini):
        resp = api.options("/chat")
        assert resp.status_code == 200
        assert resp.content == b""
        _assert_cors(resp)
        assert fake_gemini.calls == []

    def test_options_skips_credential_check(self, make_client, relay_config, fake_gemini):
        api = make_client(dataclasses.replace(relay_config, gemini_api_key=""))
        resp = api.options("/chat")
        assert resp.status_code == 200
        assert fake_gemini.calls == []


class TestChatSuccess:

    def test_relays_candidate_text(self, api, fake_gemini):
        resp = api.post("/chat", json={"message": "How are you?"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["response"] == "I'm fine"
        assert data["success"] is True
        _assert_timestamp(data["timestamp"])
        _assert_cors(resp)

    def test_prompt_without_history_is_verbatim(self, api, fake_gemini):
        api.post("/chat", json={"message": "Hello"})
        assert fake_gemini.sent_prompt() == "Hello"

    def test_prompt_with_history(self, api, fake_gemini):
        api.post("/chat", json={
            "message": "How are you?",
            "conversationHistory": [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello!"},
            ],
        })
        assert fake_gemini.sent_prompt() == (
            "Previous conversation:\nuser: Hi\nassistant: Hello!\n\nUser: How are you?"
        )

    def test_history_retruncated_to_last_ten(self, api, fake_gemini, sample_history):
        api.post("/chat", json={"message": "Next", "conversationHistory": sample_history})

        prompt = fake_gemini.sent_prompt()
        context_lines = prompt.split("\n")[1:11]
        assert context_lines == [f"{m['role']}: {m['content']}" for m in sample_history[2:]]
        assert "turn 0" not in prompt

    def test_logs_received_and_success(self, api):
        with capture_logs() as logs:
            api.post("/chat", json={"message": "Hello"})
        events = [entry["event"] for entry in logs]
        assert "chat.received" in events
        assert "chat.success" in events
        received = next(e for e in logs if e["event"] == "chat.received")
        assert received["message"] == "Hello"


class TestChatErrors:

    def _assert_error(self, resp, fragment: str):
        assert resp.status_code == 500
        data = resp.json()
        assert data["success"] is False
        assert fragment in data["error"]
        _assert_timestamp(data["timestamp"])
        _assert_cors(resp)

    def test_missing_api_key(self, make_client, relay_config, fake_gemini):
        api = make_client(dataclasses.replace(relay_config, gemini_api_key=""))
        resp = api.post("/chat", json={"message": "Hello"})
        self._assert_error(resp, "GEMINI_API_KEY is not set")
        assert fake_gemini.calls == []

    def test_missing_key_checked_before_message(self, make_client, relay_config):
        api = make_client(dataclasses.replace(relay_config, gemini_api_key=""))
        resp = api.post("/chat", json={"message": ""})
        self._assert_error(resp, "GEMINI_API_KEY is not set")

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": None}, {"message": 0}])
    def test_empty_message_never_calls_upstream(self, api, fake_gemini, body):
        resp = api.post("/chat", json=body)
        self._assert_error(resp, "Message is required")
        assert fake_gemini.calls == []

    def test_malformed_json(self, api, fake_gemini):
        resp = api.post("/chat", content=b"{not json", headers={"content-type": "application/json"})
        self._assert_error(resp, "valid JSON")
        assert fake_gemini.calls == []

    def test_bad_history_shape(self, api, fake_gemini):
        resp = api.post("/chat", json={
            "message": "Hi",
            "conversationHistory": [{"role": "robot", "content": "beep"}],
        })
        self._assert_error(resp, "Invalid chat request")
        assert fake_gemini.calls == []

    def test_upstream_503(self, api, fake_gemini):
        fake_gemini.reply(503, "Service Unavailable")
        resp = api.post("/chat", json={"message": "Hello"})
        self._assert_error(resp, "503")
        assert "Service Unavailable" in resp.json()["error"]

    def test_upstream_without_candidates(self, api, fake_gemini):
        fake_gemini.reply(200, {"candidates": []})
        resp = api.post("/chat", json={"message": "Hello"})
        self._assert_error(resp, "No response from Gemini API")

    def test_unsupported_method(self, api, fake_gemini):
        resp = api.get("/chat")
        self._assert_error(resp, "not supported")
        assert fake_gemini.calls == []

    @pytest.mark.parametrize("method", ["HEAD", "TRACE"])
    def test_other_methods_get_error_envelope(self, api, fake_gemini, method):
        resp = api.request(method, "/chat")
        assert resp.status_code == 500
        _assert_cors(resp)
        assert fake_gemini.calls == []

    def test_error_is_logged(self, api, fake_gemini):
        fake_gemini.reply(503, "down")
        with capture_logs() as logs:
            api.post("/chat", json={"message": "Hello"})
        failed = [e for e in logs if e["event"] == "chat.failed"]
        assert len(failed) == 1
        assert failed[0]["kind"] == "UpstreamError"


class TestHealth:

    def test_ok(self, api):
        assert api.get("/health").json() == {"status": "ok", "components": {"gemini": "ok"}}

    def test_degraded_without_key(self, make_client, relay_config):
        api = make_client(dataclasses.replace(relay_config, gemini_api_key=""))
        data = api.get("/health").json()
        assert data["status"] == "degraded"
        assert data["components"]["gemini"] == "missing_key"
