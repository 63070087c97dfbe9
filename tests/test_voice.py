"""Tests for emotion-derived voice settings and ElevenLabs synthesis."""

import base64
import json

import httpx
import pytest

from companion.services.voice import ElevenLabsVoiceSynthesizer, voice_settings_for


@pytest.mark.parametrize(
    "emotion,pitch",
    [("playful", 1.2), ("excited", 1.2), ("caring", 0.8), ("sad", 0.8), ("happy", 1.0)],
)
def test_voice_settings_for(emotion, pitch):
    assert voice_settings_for(emotion).pitch == pitch
    assert voice_settings_for(emotion).speed == 1.0


class TestElevenLabsVoiceSynthesizer:
    @pytest.mark.asyncio
    async def test_no_key_returns_fallback(self):
        synth = ElevenLabsVoiceSynthesizer(api_key=None, voice_id="v1")

        assert synth.is_available is False
        assert await synth.synthesize("hello", "happy") == "/static/fallback-voice.mp3"

    @pytest.mark.asyncio
    async def test_success_returns_data_uri(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, content=b"ID3audio")

        synth = ElevenLabsVoiceSynthesizer(
            api_key="key", voice_id="v1", transport=httpx.MockTransport(handler),
        )

        reference = await synth.synthesize("Hi darling", "playful")

        assert reference == "data:audio/mpeg;base64," + base64.b64encode(b"ID3audio").decode("ascii")
        request = captured[0]
        assert request.url.path.endswith("/v1")
        assert request.headers["xi-api-key"] == "key"
        assert json.loads(request.content)["voice_settings"]["pitch"] == 1.2

    @pytest.mark.asyncio
    async def test_api_error_returns_fallback(self):
        synth = ElevenLabsVoiceSynthesizer(
            api_key="key",
            voice_id="v1",
            fallback_reference="/static/custom.mp3",
            transport=httpx.MockTransport(lambda request: httpx.Response(401)),
        )

        assert await synth.synthesize("hello", "happy") == "/static/custom.mp3"

    @pytest.mark.asyncio
    async def test_empty_audio_returns_fallback(self):
        synth = ElevenLabsVoiceSynthesizer(
            api_key="key",
            voice_id="v1",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"")),
        )

        assert await synth.synthesize("hello", "happy") == "/static/fallback-voice.mp3"
