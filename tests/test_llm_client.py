# tests/test_llm_client.py

"""
Tests for the LLM provider client: request shape, model fallback on rate
limits and error mapping. No network calls are made.
"""

import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from src.classroom_ai.config import ProviderConfig
from src.classroom_ai.errors import ProviderError
from src.classroom_ai.llm_client import LLMProvider


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _rate_limit_error(message="Rate limit reached", body=None):
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    return openai.RateLimitError(
        message,
        response=httpx.Response(429, request=request),
        body=body,
    )


class RecordingClient:
    """
    Fake AsyncOpenAI client that records calls to chat.completions.create
    and returns (or raises) configurable results, one per call.
    """

    def __init__(self, results):
        self.results = list(results)
        self.calls = []

        class _Completions:
            def __init__(self, outer):
                self._outer = outer

            async def create(self, **kwargs):
                self._outer.calls.append(kwargs)
                if not self._outer.results:
                    raise RuntimeError("No more fake results configured")
                result = self._outer.results.pop(0)
                if isinstance(result, Exception):
                    raise result
                return result

        self.chat = SimpleNamespace(completions=_Completions(self))


CONFIG = ProviderConfig(
    api_key="test-key",
    primary_model="big-model",
    fallback_model="small-model",
)


def test_complete_sends_system_and_user_messages():
    client = RecordingClient([_response('{"ok": true}')])
    provider = LLMProvider(CONFIG, client=client)

    reply = asyncio.run(provider.complete("Explain osmosis", system="You are a professor."))

    assert reply == '{"ok": true}'
    call = client.calls[0]
    assert call["model"] == "big-model"
    assert call["messages"] == [
        {"role": "system", "content": "You are a professor."},
        {"role": "user", "content": "Explain osmosis"},
    ]
    assert call["response_format"] == {"type": "json_object"}


def test_complete_without_json_mode_omits_response_format():
    client = RecordingClient([_response("plain")])
    provider = LLMProvider(CONFIG, client=client)

    asyncio.run(provider.complete("hi", system="s", json_mode=False))

    assert "response_format" not in client.calls[0]


def test_complete_returns_empty_string_for_missing_content():
    client = RecordingClient([_response(None)])
    provider = LLMProvider(CONFIG, client=client)

    assert asyncio.run(provider.complete("hi", system="s")) == ""


def test_rate_limit_falls_back_to_smaller_model():
    client = RecordingClient([_rate_limit_error(), _response('{"from": "fallback"}')])
    provider = LLMProvider(CONFIG, client=client)

    reply = asyncio.run(provider.complete("hi", system="s"))

    assert reply == '{"from": "fallback"}'
    assert [c["model"] for c in client.calls] == ["big-model", "small-model"]


def test_insufficient_quota_does_not_fall_back():
    error = _rate_limit_error(
        "You exceeded your current quota", body={"code": "insufficient_quota"}
    )
    client = RecordingClient([error])
    provider = LLMProvider(CONFIG, client=client)

    with pytest.raises(ProviderError):
        asyncio.run(provider.complete("hi", system="s"))
    assert len(client.calls) == 1


def test_fallback_failure_becomes_provider_error():
    client = RecordingClient([_rate_limit_error(), _rate_limit_error()])
    provider = LLMProvider(CONFIG, client=client)

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(provider.complete("hi", system="s"))
    assert isinstance(exc_info.value.__cause__, openai.RateLimitError)


def test_timeout_becomes_provider_error():
    timeout = openai.APITimeoutError(request=httpx.Request("POST", "https://example.test"))
    client = RecordingClient([timeout])
    provider = LLMProvider(CONFIG, client=client)

    with pytest.raises(ProviderError):
        asyncio.run(provider.complete("hi", system="s"))
    assert len(client.calls) == 1


def test_missing_api_key_raises_provider_error():
    with pytest.raises(ProviderError):
        LLMProvider(ProviderConfig(api_key=None))


def test_provider_config_from_env_accepts_groq_key(monkeypatch):
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("GROQ_API_KEY", "gsk_example")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "15")

    config = ProviderConfig.from_env()

    assert config.api_key == "gsk_example"
    assert config.timeout_seconds == 15.0
