"""Speech synthesis via ElevenLabs.

Synthesis is optional. Without an API key, and on any failure, the
static fallback audio reference is returned instead.
"""

import base64
import logging

import httpx

from companion.core.exceptions import VoiceSynthesisFailedError
from companion.models.schemas import VoiceSettings
from companion.services.base import BaseVoiceSynthesizer

logger = logging.getLogger(__name__)


RAISED_PITCH_EMOTIONS = frozenset({"excited", "playful"})
LOWERED_PITCH_EMOTIONS = frozenset({"caring", "sad"})


def voice_settings_for(emotion: str) -> VoiceSettings:
    """Derive pitch and speed from an emotion label."""
    if emotion in RAISED_PITCH_EMOTIONS:
        return VoiceSettings(pitch=1.2)
    if emotion in LOWERED_PITCH_EMOTIONS:
        return VoiceSettings(pitch=0.8)
    return VoiceSettings()


class ElevenLabsVoiceSynthesizer(BaseVoiceSynthesizer):
    """Returns a ``data:audio/mpeg;base64,...`` URI per reply."""

    def __init__(
        self,
        api_key: str | None,
        voice_id: str,
        base_url: str = "https://api.elevenlabs.io/v1/text-to-speech",
        stability: float = 0.5,
        similarity_boost: float = 0.5,
        timeout_seconds: float = 20.0,
        fallback_reference: str = "/static/fallback-voice.mp3",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.base_url = base_url.rstrip("/")
        self.stability = stability
        self.similarity_boost = similarity_boost
        self.timeout_seconds = timeout_seconds
        self.fallback_reference = fallback_reference
        self._transport = transport

    @property
    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def synthesize(self, text: str, emotion: str) -> str:
        if not self.is_available or not text.strip():
            return self.fallback_reference

        try:
            audio = await self._request_audio(text, voice_settings_for(emotion))
        except VoiceSynthesisFailedError as e:
            logger.warning(f"Voice synthesis failed, using fallback audio: {e.message}")
            return self.fallback_reference

        return "data:audio/mpeg;base64," + base64.b64encode(audio).decode("ascii")

    async def _request_audio(self, text: str, settings: VoiceSettings) -> bytes:
        payload = {
            "text": text,
            "voice_settings": {
                "stability": self.stability,
                "similarity_boost": self.similarity_boost,
                "pitch": settings.pitch,
            },
        }
        headers = {
            "xi-api-key": self.api_key or "",
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    f"{self.base_url}/{self.voice_id}",
                    headers=headers,
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise VoiceSynthesisFailedError(
                f"Voice API error: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise VoiceSynthesisFailedError(f"Voice request failed: {e}") from e

        if not response.content:
            raise VoiceSynthesisFailedError("Voice API returned no audio")
        return response.content
