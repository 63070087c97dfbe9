"""Translation service backed by deep-translator.

The Google backend is synchronous, so each call runs in the default
executor under a timeout. Any backend failure yields the source text
with ``degraded=True``.
"""

import asyncio
import logging
from collections.abc import Callable

from deep_translator import GoogleTranslator

from companion.core.exceptions import TranslationFailedError
from companion.models.schemas import TranslationResult
from companion.services.base import BaseTranslator
from companion.services.language_detector import to_iso_639_1

logger = logging.getLogger(__name__)


def _google_translate(text: str, target: str) -> str:
    return GoogleTranslator(source="auto", target=target).translate(text)


class GoogleTranslatorService(BaseTranslator):
    """Translator over the public Google Translate endpoint."""

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        backend: Callable[[str, str], str] | None = None,
    ):
        """
        Args:
            timeout_seconds: Upper bound for one translation call.
            backend: Synchronous ``(text, iso_639_1_target) -> text`` callable.
                Defaults to deep-translator's GoogleTranslator.
        """
        self.timeout_seconds = timeout_seconds
        self._backend = backend or _google_translate

    async def translate(self, text: str, target_language: str) -> TranslationResult:
        if not text or not text.strip():
            return TranslationResult(text=text, source_text=text, target_language=target_language)

        target = to_iso_639_1(target_language)
        loop = asyncio.get_running_loop()
        try:
            translated = await asyncio.wait_for(
                loop.run_in_executor(None, self._backend, text, target),
                timeout=self.timeout_seconds,
            )
            if not isinstance(translated, str) or not translated.strip():
                raise TranslationFailedError("Backend returned no text", target_language)
        except asyncio.TimeoutError:
            logger.warning(f"Translation to {target_language} timed out after {self.timeout_seconds}s")
            return self._degraded(text, target_language)
        except Exception as e:
            logger.warning(f"Translation to {target_language} failed: {e}")
            return self._degraded(text, target_language)

        return TranslationResult(
            text=translated,
            source_text=text,
            target_language=target_language,
        )

    @staticmethod
    def _degraded(text: str, target_language: str) -> TranslationResult:
        return TranslationResult(
            text=text,
            source_text=text,
            target_language=target_language,
            degraded=True,
        )
