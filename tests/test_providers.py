"""Tests for the provider registry and the two completion envelopes."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import RecordingTransport, gemini_reply, make_settings, openai_reply
from app.services.errors import MissingCredentialError, UnknownProviderError, UpstreamError
from app.services.llm import (
    GeminiProvider,
    ModelParams,
    OpenAIProvider,
    available_providers,
    get_provider,
)


def _client(transport: RecordingTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(transport))


class TestRegistry:
    def test_openai_resolves_to_openai_provider(self):
        provider = get_provider("openai", make_settings(), _client(RecordingTransport()))
        assert isinstance(provider, OpenAIProvider)

    def test_google_resolves_to_gemini_provider(self):
        provider = get_provider("google", make_settings(), _client(RecordingTransport()))
        assert isinstance(provider, GeminiProvider)

    def test_unknown_provider_raises(self):
        with pytest.raises(UnknownProviderError):
            get_provider("perplexity", make_settings(), _client(RecordingTransport()))

    @pytest.mark.parametrize(
        "name,override,env_name",
        [
            ("openai", {"openai_api_key": ""}, "OPENAI_API_KEY"),
            ("google", {"google_api_key": ""}, "GOOGLE_GENERATIVE_AI_API_KEY"),
        ],
    )
    def test_missing_key_raises_named_error(self, name, override, env_name):
        with pytest.raises(MissingCredentialError) as exc:
            get_provider(name, make_settings(**override), _client(RecordingTransport()))
        assert exc.value.message == f"{env_name} not configured"
        assert exc.value.status_code == 500

    def test_available_providers_reports_configured_flags(self):
        listed = available_providers(make_settings(google_api_key=""))
        assert [p["id"] for p in listed] == ["openai", "google"]
        assert [p["configured"] for p in listed] == [True, False]


class TestGeminiEnvelope:
    def test_key_in_header_by_default(self):
        transport = RecordingTransport(lambda request: gemini_reply("HELLO"))
        provider = GeminiProvider("g-key", "gemini-1.5-flash", "https://generativelanguage.googleapis.com/v1beta", _client(transport))

        text = asyncio.run(provider.complete_text("Write", ModelParams(system="Be brief.")))

        assert text == "HELLO"
        sent = transport.requests[0]
        assert sent.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert sent.headers["x-goog-api-key"] == "g-key"
        assert "key" not in sent.url.params
        assert transport.json_body() == {"contents": [{"parts": [{"text": "Be brief.\nWrite"}]}]}

    def test_system_text_can_be_left_out(self):
        transport = RecordingTransport(lambda request: gemini_reply("HELLO"))
        provider = GeminiProvider("g-key", "gemini-1.5-flash", "https://generativelanguage.googleapis.com/v1beta", _client(transport))

        asyncio.run(provider.complete_text("Write", ModelParams(system="Be brief.", prefix_system=False)))

        assert transport.json_body() == {"contents": [{"parts": [{"text": "Write"}]}]}

    def test_key_in_query_parameter(self):
        transport = RecordingTransport(lambda request: gemini_reply("HELLO"))
        provider = GeminiProvider(
            "g-key",
            "gemini-1.5-flash",
            "https://generativelanguage.googleapis.com/v1beta",
            _client(transport),
            key_location="query",
        )

        asyncio.run(provider.complete_text("Write", ModelParams()))

        sent = transport.requests[0]
        assert sent.url.params["key"] == "g-key"
        assert "x-goog-api-key" not in sent.headers
        assert transport.json_body() == {"contents": [{"parts": [{"text": "Write"}]}]}

    def test_error_status_raises_upstream_error(self):
        transport = RecordingTransport(lambda request: httpx.Response(400, json={"error": {"message": "bad"}}))
        provider = GeminiProvider("g-key", "m", "https://example.test/v1beta", _client(transport))

        with pytest.raises(UpstreamError) as exc:
            asyncio.run(provider.complete_text("Write", ModelParams()))
        assert exc.value.upstream_status == 400

    def test_missing_parts_gives_empty_text(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"candidates": [{"content": {}}]}))
        provider = GeminiProvider("g-key", "m", "https://example.test/v1beta", _client(transport))

        assert asyncio.run(provider.complete_text("Write", ModelParams())) == ""


class TestOpenAIEnvelope:
    def test_request_shape_and_extraction(self):
        transport = RecordingTransport(lambda request: openai_reply("HELLO"))
        provider = OpenAIProvider("sk-key", "gpt-4o-mini", "https://api.openai.com/v1", _client(transport))

        text = asyncio.run(provider.complete_text("Write", ModelParams(temperature=0.7, system="Sys")))

        assert text == "HELLO"
        sent = transport.requests[0]
        assert sent.headers["authorization"] == "Bearer sk-key"
        assert transport.json_body() == {
            "model": "gpt-4o-mini",
            "messages": [{"role": "system", "content": "Sys"}, {"role": "user", "content": "Write"}],
            "temperature": 0.7,
        }

    def test_server_error_is_not_retried(self):
        transport = RecordingTransport(lambda request: httpx.Response(503, json={"error": {"message": "busy"}}))
        provider = OpenAIProvider("sk-key", "gpt-4o-mini", "https://api.openai.com/v1", _client(transport))

        with pytest.raises(UpstreamError):
            asyncio.run(provider.complete_text("Write", ModelParams()))
        assert transport.calls == 1

    def test_empty_envelope_gives_empty_text(self):
        transport = RecordingTransport(lambda request: httpx.Response(200, json={}))
        provider = OpenAIProvider("sk-key", "gpt-4o-mini", "https://api.openai.com/v1", _client(transport))

        assert asyncio.run(provider.complete_text("Write", ModelParams())) == ""
