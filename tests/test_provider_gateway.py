"""Tests for the provider gateway fallback chain."""

import asyncio

import pytest

from companion.core.exceptions import AllProvidersFailedError
from companion.models.schemas import ProviderReply
from companion.services.base import BaseCompletionProvider
from companion.services.provider_gateway import ProviderGateway

from conftest import FakeProvider


class SlowProvider(BaseCompletionProvider):
    name = "slow"

    @property
    def is_available(self) -> bool:
        return True

    async def complete(self, prompt: str) -> ProviderReply:
        await asyncio.sleep(5)
        return ProviderReply(text="too late", provider=self.name)


class TestProviderGateway:
    @pytest.mark.asyncio
    async def test_no_configured_providers_uses_offline(self):
        gateway = ProviderGateway(providers=[FakeProvider("grok", "hi", available=False)])

        reply = await gateway.complete("hello")

        assert reply.provider == "mock"
        assert gateway.primary == "mock"

    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        attempts = []
        gateway = ProviderGateway(providers=[
            FakeProvider("grok", "from grok", attempts=attempts),
            FakeProvider("openai", "from openai", attempts=attempts),
        ])

        reply = await gateway.complete("hello")

        assert reply.provider == "grok"
        assert attempts == ["grok"]

    @pytest.mark.asyncio
    async def test_falls_through_failures_in_order(self):
        attempts = []
        gateway = ProviderGateway(providers=[
            FakeProvider("grok", None, attempts=attempts),
            FakeProvider("openai", None, attempts=attempts),
            FakeProvider("anthropic", "from claude", attempts=attempts),
        ])

        reply = await gateway.complete("hello")

        assert reply.text == "from claude"
        assert reply.provider == "anthropic"
        assert attempts == ["grok", "openai", "anthropic"]

    @pytest.mark.asyncio
    async def test_prompt_is_passed_unchanged(self):
        first = FakeProvider("grok", None)
        second = FakeProvider("openai", "ok")
        gateway = ProviderGateway(providers=[first, second])

        await gateway.complete("exact prompt")

        assert first.prompts == ["exact prompt"]
        assert second.prompts == ["exact prompt"]

    @pytest.mark.asyncio
    async def test_all_fail_raises_with_attempted(self):
        attempts = []
        gateway = ProviderGateway(providers=[
            FakeProvider("grok", None, attempts=attempts),
            FakeProvider("openai", None, attempts=attempts),
        ])

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await gateway.complete("hello")

        assert exc_info.value.attempted == ["grok", "openai"]
        assert attempts == ["grok", "openai"]
        assert "openai" in exc_info.value.last_error

    @pytest.mark.asyncio
    async def test_unavailable_providers_are_skipped(self):
        attempts = []
        gateway = ProviderGateway(providers=[
            FakeProvider("grok", "unused", available=False, attempts=attempts),
            FakeProvider("openai", "from openai", attempts=attempts),
        ])

        reply = await gateway.complete("hello")

        assert reply.provider == "openai"
        assert attempts == ["openai"]

    @pytest.mark.asyncio
    async def test_explicit_empty_list_raises(self):
        gateway = ProviderGateway(providers=[])

        with pytest.raises(AllProvidersFailedError):
            await gateway.complete("hello", providers=[])

    @pytest.mark.asyncio
    async def test_timeout_moves_to_next_provider(self):
        gateway = ProviderGateway(
            providers=[SlowProvider(), FakeProvider("openai", "fast")],
            timeout_seconds=0.05,
        )

        reply = await gateway.complete("hello")

        assert reply.provider == "openai"
