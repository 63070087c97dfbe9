"""Mock implementations for the per-turn component services.

These let the service run, and the tests exercise every degraded path,
without network access or model downloads.
"""

from companion.models.schemas import TranslationResult
from companion.services.base import (
    BaseImageGenerator,
    BaseLanguageDetector,
    BaseSentimentScorer,
    BaseSocialContextProvider,
    BaseTranslator,
    BaseVoiceSynthesizer,
)


class MockLanguageDetector(BaseLanguageDetector):
    """Always reports a fixed language (the pivot by default)."""

    def __init__(self, language: str = "eng"):
        self.language = language

    def detect(self, text: str) -> str:
        return self.language


class IdentityTranslator(BaseTranslator):
    """Returns the text unchanged and never degrades.

    Round-tripping through any pair of languages yields the original text.
    """

    async def translate(self, text: str, target_language: str) -> TranslationResult:
        return TranslationResult(text=text, source_text=text, target_language=target_language)


class FailingTranslator(BaseTranslator):
    """Simulates an unreachable translation backend."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    async def translate(self, text: str, target_language: str) -> TranslationResult:
        self.calls.append((text, target_language))
        return TranslationResult(
            text=text,
            source_text=text,
            target_language=target_language,
            degraded=True,
        )


class MockSentimentScorer(BaseSentimentScorer):
    """Returns a fixed score regardless of input."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def score(self, text: str) -> float:
        return self.value


class MockVoiceSynthesizer(BaseVoiceSynthesizer):
    def __init__(self, reference: str = "/static/fallback-voice.mp3"):
        self.reference = reference

    @property
    def is_available(self) -> bool:
        return False

    async def synthesize(self, text: str, emotion: str) -> str:
        return self.reference


class MockImageGenerator(BaseImageGenerator):
    def __init__(self, image_url: str = "/static/base-bella.png"):
        self.image_url = image_url

    @property
    def is_available(self) -> bool:
        return False

    async def generate(self, prompt: str) -> str:
        return self.image_url


class MockSocialContextProvider(BaseSocialContextProvider):
    def __init__(self, context: str = "No X connection, tell me your vibe!"):
        self.context = context

    @property
    def is_available(self) -> bool:
        return False

    async def get_context(self) -> str:
        return self.context
