"""Tests for completion provider implementations."""

import json

import httpx
import pytest

from companion.core.config import ProviderConfig
from companion.core.exceptions import ProviderFailedError
from companion.services.providers import (
    BUILTIN_RESPONSES,
    AnthropicProvider,
    OfflineProvider,
    OpenAICompatibleProvider,
    build_remote_providers,
)


def _transport(status_code=200, payload=None, captured=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=payload if payload is not None else {})

    return httpx.MockTransport(handler)


class TestOpenAICompatibleProvider:
    @pytest.mark.asyncio
    async def test_maps_choices_schema(self):
        captured = []
        provider = OpenAICompatibleProvider(
            "grok",
            "https://api.x.ai/v1/chat/completions",
            "secret",
            "grok-beta",
            transport=_transport(
                payload={"choices": [{"message": {"content": "  Nya~ hello!  "}}]},
                captured=captured,
            ),
        )

        reply = await provider.complete("Say hi")

        assert reply.text == "Nya~ hello!"
        assert reply.provider == "grok"
        request = captured[0]
        assert request.headers["Authorization"] == "Bearer secret"
        body = json.loads(request.content)
        assert body["model"] == "grok-beta"
        assert body["messages"] == [{"role": "user", "content": "Say hi"}]
        assert body["max_tokens"] == 200

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status(self):
        provider = OpenAICompatibleProvider(
            "openai", "https://api.openai.com/v1/chat/completions", "secret", "gpt-4o",
            transport=_transport(status_code=429, payload={"error": "rate limited"}),
        )

        with pytest.raises(ProviderFailedError) as exc_info:
            await provider.complete("hi")

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self):
        provider = OpenAICompatibleProvider(
            "openai", "https://api.openai.com/v1/chat/completions", "secret", "gpt-4o",
            transport=_transport(payload={"content": [{"text": "wrong shape"}]}),
        )

        with pytest.raises(ProviderFailedError, match="Unexpected response format"):
            await provider.complete("hi")

    @pytest.mark.asyncio
    async def test_empty_text_raises(self):
        provider = OpenAICompatibleProvider(
            "openai", "https://api.openai.com/v1/chat/completions", "secret", "gpt-4o",
            transport=_transport(payload={"choices": [{"message": {"content": "   "}}]}),
        )

        with pytest.raises(ProviderFailedError, match="empty"):
            await provider.complete("hi")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        provider = OpenAICompatibleProvider(
            "grok", "https://api.x.ai/v1/chat/completions", "secret", "grok-beta",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(ProviderFailedError):
            await provider.complete("hi")

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self):
        provider = OpenAICompatibleProvider(
            "grok", "https://api.x.ai/v1/chat/completions", None, "grok-beta",
        )

        assert provider.is_available is False
        with pytest.raises(ProviderFailedError):
            await provider.complete("hi")


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_maps_content_schema(self):
        captured = []
        provider = AnthropicProvider(
            "anthropic",
            "https://api.anthropic.com/v1/messages",
            "secret",
            "claude-3-5-sonnet-20241022",
            transport=_transport(
                payload={"content": [{"type": "text", "text": "Hello from Claude"}]},
                captured=captured,
            ),
        )

        reply = await provider.complete("hi")

        assert reply.text == "Hello from Claude"
        assert reply.provider == "anthropic"
        assert captured[0].headers["x-api-key"] == "secret"
        assert captured[0].headers["anthropic-version"] == "2023-06-01"


class TestOfflineProvider:
    @pytest.mark.asyncio
    async def test_always_available_and_deterministic(self):
        provider = OfflineProvider()

        first = await provider.complete("same prompt")
        second = await provider.complete("same prompt")

        assert provider.is_available is True
        assert first.provider == "mock"
        assert first.text == second.text
        assert first.text in provider.responses

    @pytest.mark.asyncio
    async def test_missing_corpus_uses_builtin_lines(self, tmp_path):
        provider = OfflineProvider(corpus_path=tmp_path / "missing.json")

        reply = await provider.complete("hello")

        assert reply.text in BUILTIN_RESPONSES

    @pytest.mark.asyncio
    async def test_custom_corpus_file(self, tmp_path):
        corpus = tmp_path / "corpus.json"
        corpus.write_text(json.dumps(["only line"]), encoding="utf-8")

        reply = await OfflineProvider(corpus_path=corpus).complete("anything")

        assert reply.text == "only line"


class TestBuildRemoteProviders:
    def test_follows_priority_and_skips_unknown(self):
        config = ProviderConfig(
            priority=["anthropic", "bogus", "grok"],
            anthropic_api_key="a-key",
        )

        providers = build_remote_providers(config)

        assert [p.name for p in providers] == ["anthropic", "grok"]
        assert providers[0].is_available is True
        assert providers[1].is_available is False
