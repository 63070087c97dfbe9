"""Abstract base classes for all per-turn component services.

This module defines the abstract interfaces for:
- BaseLanguageDetector: Language classification
- BaseTranslator: Bidirectional translation around the pivot language
- BaseSentimentScorer: Scalar valence scoring
- BaseCompletionProvider: One interchangeable language-model provider
- BaseVoiceSynthesizer: Optional text-to-speech
- BaseImageGenerator: Optional character image generation
- BaseSocialContextProvider: Optional social trend context
"""

from abc import ABC, abstractmethod

from companion.models.schemas import ProviderReply, TranslationResult


class BaseLanguageDetector(ABC):
    """Classifies text into a language code.

    Implementations never raise: low confidence or detector errors
    degrade to the pivot language.
    """

    @abstractmethod
    def detect(self, text: str) -> str:
        """Return an ISO-639-3 code for ``text``."""
        ...

    def warm_up(self) -> None:
        """Load any models ahead of the first request. Blocking."""
        return None


class BaseTranslator(ABC):
    """Translates text to a target language.

    Implementations never raise. On failure they return the source text
    with ``degraded=True``.
    """

    @abstractmethod
    async def translate(self, text: str, target_language: str) -> TranslationResult:
        """Translate ``text`` into ``target_language`` (ISO-639-3).

        Args:
            text: Text to translate.
            target_language: Target language code.

        Returns:
            TranslationResult carrying the translated (or original) text.
        """
        ...


class BaseSentimentScorer(ABC):
    """Maps text to a scalar valence score. Pure and deterministic."""

    @abstractmethod
    def score(self, text: str) -> float:
        ...


class BaseCompletionProvider(ABC):
    """One interchangeable completion provider.

    Every provider maps its own response schema onto ``ProviderReply``,
    so the gateway can iterate a list of them generically.
    """

    name: str = "base"

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether credentials (or a corpus) are configured."""
        ...

    @abstractmethod
    async def complete(self, prompt: str) -> ProviderReply:
        """Complete ``prompt``.

        Raises:
            ProviderFailedError: On network error, non-2xx response,
                malformed payload or empty text.
        """
        ...


class BaseVoiceSynthesizer(ABC):
    """Optional speech synthesis. Never raises."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    async def synthesize(self, text: str, emotion: str) -> str:
        """Return an audio reference (URI) for ``text``."""
        ...


class BaseImageGenerator(ABC):
    """Optional character image generation. Never raises."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return an image URL for ``prompt`` (or the base image)."""
        ...


class BaseSocialContextProvider(ABC):
    """Optional social context for prompts. Never raises."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    async def get_context(self) -> str:
        ...
