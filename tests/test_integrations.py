"""Tests for optional integrations: image generation, social context, events."""

import asyncio

import httpx
import pytest

from companion.models.schemas import PersonalityProfile
from companion.services.character import parse_traits
from companion.services.events import EventBroadcaster
from companion.services.fallback import FallbackStrategy
from companion.services.image_generator import ReplicateImageGenerator
from companion.services.social_context import XSocialContextProvider


class TestReplicateImageGenerator:
    @pytest.mark.asyncio
    async def test_no_token_returns_base_image(self):
        generator = ReplicateImageGenerator(api_token=None)
        assert await generator.generate("sassy") == "/static/base-bella.png"

    @pytest.mark.asyncio
    async def test_polls_until_succeeded(self):
        statuses = iter(["starting", "processing", "succeeded"])

        def handler(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "p1", "status": "starting"})
            status = next(statuses)
            output = ["https://cdn/img.png"] if status == "succeeded" else None
            return httpx.Response(200, json={"id": "p1", "status": status, "output": output})

        generator = ReplicateImageGenerator(
            api_token="tok", poll_interval_seconds=0, transport=httpx.MockTransport(handler),
        )

        assert await generator.generate("cyberpunk") == "https://cdn/img.png"

    @pytest.mark.asyncio
    async def test_failed_prediction_returns_base_image(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "p1"})
            return httpx.Response(200, json={"status": "failed"})

        generator = ReplicateImageGenerator(
            api_token="tok", poll_interval_seconds=0, transport=httpx.MockTransport(handler),
        )

        assert await generator.generate("idol") == "/static/base-bella.png"

    @pytest.mark.asyncio
    async def test_poll_budget_exhausted(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "p1"})
            return httpx.Response(200, json={"status": "processing"})

        generator = ReplicateImageGenerator(
            api_token="tok", poll_interval_seconds=0, max_polls=3,
            transport=httpx.MockTransport(handler),
        )

        assert await generator.generate("idol") == "/static/base-bella.png"


class TestXSocialContextProvider:
    @pytest.mark.asyncio
    async def test_no_key(self):
        assert await XSocialContextProvider(api_key=None).get_context() == FallbackStrategy.SOCIAL_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_first_post_text(self):
        provider = XSocialContextProvider(
            api_key="key",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"data": [{"text": "New season announced"}]})
            ),
        )

        assert await provider.get_context() == "New season announced"

    @pytest.mark.asyncio
    async def test_no_posts(self):
        provider = XSocialContextProvider(
            api_key="key",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"meta": {}})),
        )

        assert await provider.get_context() == FallbackStrategy.SOCIAL_QUIET

    @pytest.mark.asyncio
    async def test_api_down(self):
        provider = XSocialContextProvider(
            api_key="key",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )

        assert await provider.get_context() == FallbackStrategy.SOCIAL_DOWN


def test_parse_traits_resets_unmatched():
    profile = parse_traits("Sassy cyberpunk", PersonalityProfile())

    assert profile.tsundere == 0.8
    assert profile.flirty == 0.0
    assert profile.supportive == 0.0


class TestEventBroadcaster:
    @pytest.mark.asyncio
    async def test_events_reach_only_their_session(self):
        broadcaster = EventBroadcaster()
        mine = broadcaster.subscribe("s1")
        other = broadcaster.subscribe("s2")

        broadcaster.publish("s1", "update", {"affinity": 1.0})

        event = await asyncio.wait_for(mine.get(), timeout=1)
        assert event.to_message() == {"type": "update", "data": {"affinity": 1.0}}
        assert other.empty()

    def test_full_queue_drops_event(self):
        broadcaster = EventBroadcaster(max_queue_size=1)
        queue = broadcaster.subscribe("s1")

        broadcaster.publish("s1", "update", {"n": 1})
        broadcaster.publish("s1", "update", {"n": 2})

        assert queue.qsize() == 1
        assert queue.get_nowait().data == {"n": 1}

    def test_unsubscribe(self):
        broadcaster = EventBroadcaster()
        queue = broadcaster.subscribe("s1")

        broadcaster.unsubscribe("s1", queue)

        assert broadcaster.subscriber_count("s1") == 0
        broadcaster.publish("s1", "update", {})
