import io
import json
from urllib import error

import pytest

from plankernel.connectors import ChatCompletionClient
from plankernel.connectors import chat_completion as chat_module
from plankernel.errors import AIServiceError, ErrorCode
from plankernel.functions import CompletionRequestSettings


class FakeResponse:
    def __init__(self, payload):
        self._body = json.dumps(payload).encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _http_error(code: int, body: str) -> error.HTTPError:
    return error.HTTPError("https://example.test", code, "error", {}, io.BytesIO(body.encode("utf-8")))


def _client(**kwargs) -> ChatCompletionClient:
    params = {"api_key": "test-key", "url": "https://example.test/v1/chat/completions", "model": "test-model"}
    params.update(kwargs)
    return ChatCompletionClient(**params)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(chat_module.time, "sleep", lambda _: None)


@pytest.mark.asyncio
async def test_returns_one_result_per_choice(monkeypatch):
    captured = {}

    def fake_urlopen(req, timeout=None):
        captured["payload"] = json.loads(req.data.decode("utf-8"))
        captured["auth"] = req.get_header("Authorization")
        return FakeResponse(
            {"choices": [{"message": {"content": "first"}}, {"message": {"content": "second"}}]}
        )

    monkeypatch.setattr(chat_module.request, "urlopen", fake_urlopen)

    settings = CompletionRequestSettings(max_tokens=10, stop_sequences=["<!-- END -->"], results_per_prompt=2)
    results = await _client().get_completions("hello", settings)

    assert [await r.get_completion() for r in results] == ["first", "second"]
    assert captured["auth"] == "Bearer test-key"
    assert captured["payload"]["model"] == "test-model"
    assert captured["payload"]["messages"] == [{"role": "user", "content": "hello"}]
    assert captured["payload"]["max_tokens"] == 10
    assert captured["payload"]["stop"] == ["<!-- END -->"]
    assert captured["payload"]["n"] == 2


@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds(monkeypatch):
    attempts = {"count": 0}

    def flaky_urlopen(req, timeout=None):
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise _http_error(503, "busy")
        return FakeResponse({"choices": [{"message": {"content": "recovered"}}]})

    monkeypatch.setattr(chat_module.request, "urlopen", flaky_urlopen)

    results = await _client(retries=2).get_completions("hi", None)

    assert attempts["count"] == 3
    assert await results[0].get_completion() == "recovered"


@pytest.mark.asyncio
async def test_client_errors_surface_status_and_body_without_retry(monkeypatch):
    attempts = {"count": 0}

    def failing_urlopen(req, timeout=None):
        attempts["count"] += 1
        raise _http_error(401, '{"error": "invalid api key"}')

    monkeypatch.setattr(chat_module.request, "urlopen", failing_urlopen)

    with pytest.raises(AIServiceError) as exc_info:
        await _client(retries=3).get_completions("hi", None)

    assert attempts["count"] == 1
    err = exc_info.value
    assert err.status_code == 401
    assert err.transient is False
    assert err.error_code == ErrorCode.AI_AUTHENTICATION_FAILED
    assert "invalid api key" in str(err)


@pytest.mark.asyncio
async def test_network_failures_exhaust_retries(monkeypatch):
    attempts = {"count": 0}

    def offline_urlopen(req, timeout=None):
        attempts["count"] += 1
        raise error.URLError("connection refused")

    monkeypatch.setattr(chat_module.request, "urlopen", offline_urlopen)

    with pytest.raises(AIServiceError) as exc_info:
        await _client(retries=1).get_completions("hi", None)

    assert attempts["count"] == 2
    assert exc_info.value.transient is True


@pytest.mark.asyncio
async def test_response_without_choices_is_invalid(monkeypatch):
    monkeypatch.setattr(chat_module.request, "urlopen", lambda req, timeout=None: FakeResponse({"choices": []}))

    with pytest.raises(AIServiceError) as exc_info:
        await _client().get_completions("hi", None)
    assert exc_info.value.error_code == ErrorCode.AI_INVALID_RESPONSE


def test_defaults_come_from_settings(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "env-key")
    monkeypatch.setenv("LLM_MODEL", "env-model")
    monkeypatch.setenv("LLM_RETRIES", "4")

    client = ChatCompletionClient()

    assert client.api_key == "env-key"
    assert client.model == "env-model"
    assert client.retries == 4
    assert client.config()["has_api_key"] is True
