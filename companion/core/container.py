"""Service container for dependency injection.

This module implements a service container that:
- Manages all service instances
- Supports registration and retrieval of services
- Allows configuration-based switching between Mock and real implementations
"""

import logging
from enum import Enum
from typing import Any

from companion.core.config import AppConfig, settings
from companion.db.session import async_session_factory
from companion.services.affect import AffectStateMachine
from companion.services.base import (
    BaseImageGenerator,
    BaseLanguageDetector,
    BaseSentimentScorer,
    BaseSocialContextProvider,
    BaseTranslator,
    BaseVoiceSynthesizer,
)
from companion.services.events import EventBroadcaster
from companion.services.exporter import ChatExporter
from companion.services.image_generator import ReplicateImageGenerator
from companion.services.language_detector import LanguageDetector
from companion.services.mocks import (
    IdentityTranslator,
    MockImageGenerator,
    MockLanguageDetector,
    MockSocialContextProvider,
    MockVoiceSynthesizer,
)
from companion.services.orchestrator import Orchestrator
from companion.services.persistence import PersistenceService
from companion.services.provider_gateway import ProviderGateway
from companion.services.providers import OfflineProvider, build_remote_providers
from companion.services.sentiment import AfinnSentimentScorer
from companion.services.session import SessionRegistry
from companion.services.social_context import XSocialContextProvider
from companion.services.status_checker import StatusChecker
from companion.services.tools import ToolService
from companion.services.translator import GoogleTranslatorService
from companion.services.voice import ElevenLabsVoiceSynthesizer

logger = logging.getLogger(__name__)


class ServiceMode(str, Enum):
    """Service implementation mode."""
    MOCK = "mock"
    REAL = "real"


class ServiceContainer:
    """Dependency injection container for managing service instances.

    Every component is created lazily on first ``get_*`` call and then
    shared. Tests register fakes under the same names before first use.

    Attributes:
        config: Application configuration.
        _services: Dictionary storing registered service instances.
        _mode: Current service mode (mock or real).
    """

    def __init__(self, config: AppConfig | None = None, mode: ServiceMode = ServiceMode.MOCK):
        """Initialize the service container.

        Args:
            config: Application configuration. Uses global settings if not provided.
            mode: Service mode determining whether to use mock or real implementations.
        """
        self.config = config or settings
        self._services: dict[str, Any] = {}
        self._mode = mode

    @property
    def mode(self) -> ServiceMode:
        return self._mode

    def register(self, name: str, service: Any) -> None:
        self._services[name] = service

    def get(self, name: str) -> Any:
        """Get a registered service by name.

        Raises:
            KeyError: If service is not registered.
        """
        if name not in self._services:
            raise KeyError(f"Service '{name}' not registered")
        return self._services[name]

    def has(self, name: str) -> bool:
        return name in self._services

    def _get_or_create(self, name: str, factory) -> Any:
        if not self.has(name):
            self.register(name, factory())
        return self.get(name)

    # ------------------------------------------------------------------
    # Component accessors
    # ------------------------------------------------------------------

    def get_language_detector(self) -> BaseLanguageDetector:
        return self._get_or_create("language_detector", self._create_language_detector)

    def get_translator(self) -> BaseTranslator:
        return self._get_or_create("translator", self._create_translator)

    def get_sentiment_scorer(self) -> BaseSentimentScorer:
        return self._get_or_create("sentiment_scorer", AfinnSentimentScorer)

    def get_provider_gateway(self) -> ProviderGateway:
        return self._get_or_create("provider_gateway", self._create_provider_gateway)

    def get_voice_synthesizer(self) -> BaseVoiceSynthesizer:
        return self._get_or_create("voice_synthesizer", self._create_voice_synthesizer)

    def get_image_generator(self) -> BaseImageGenerator:
        return self._get_or_create("image_generator", self._create_image_generator)

    def get_social_context_provider(self) -> BaseSocialContextProvider:
        return self._get_or_create("social_context_provider", self._create_social_context_provider)

    def get_persistence_service(self) -> PersistenceService:
        return self._get_or_create(
            "persistence_service", lambda: PersistenceService(async_session_factory)
        )

    def get_event_broadcaster(self) -> EventBroadcaster:
        return self._get_or_create("event_broadcaster", EventBroadcaster)

    def get_session_registry(self) -> SessionRegistry:
        return self._get_or_create(
            "session_registry", lambda: SessionRegistry(self.get_persistence_service())
        )

    def get_tool_service(self) -> ToolService:
        return self._get_or_create("tool_service", self._create_tool_service)

    def get_orchestrator(self) -> Orchestrator:
        return self._get_or_create("orchestrator", self.create_orchestrator)

    def get_status_checker(self) -> StatusChecker:
        return self._get_or_create("status_checker", self._create_status_checker)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def _create_language_detector(self) -> BaseLanguageDetector:
        if self._mode == ServiceMode.MOCK:
            return MockLanguageDetector(self.config.language.pivot)
        return LanguageDetector(
            pivot_language=self.config.language.pivot,
            min_length=self.config.language.min_length,
            min_confidence=self.config.language.min_confidence,
        )

    def _create_translator(self) -> BaseTranslator:
        if self._mode == ServiceMode.MOCK:
            return IdentityTranslator()
        return GoogleTranslatorService(
            timeout_seconds=self.config.language.translation_timeout_seconds,
        )

    def _create_provider_gateway(self) -> ProviderGateway:
        provider_config = self.config.providers
        providers = [] if self._mode == ServiceMode.MOCK else build_remote_providers(provider_config)
        gateway = ProviderGateway(
            providers=providers,
            offline_provider=OfflineProvider(),
            timeout_seconds=provider_config.timeout_seconds,
        )
        logger.info(f"Provider chain: {[p.name for p in gateway.chain()]}")
        return gateway

    def _create_voice_synthesizer(self) -> BaseVoiceSynthesizer:
        voice = self.config.voice
        if self._mode == ServiceMode.MOCK:
            return MockVoiceSynthesizer(voice.fallback_reference)
        return ElevenLabsVoiceSynthesizer(
            api_key=voice.elevenlabs_api_key,
            voice_id=voice.voice_id,
            base_url=voice.base_url,
            stability=voice.stability,
            similarity_boost=voice.similarity_boost,
            timeout_seconds=voice.timeout_seconds,
            fallback_reference=voice.fallback_reference,
        )

    def _create_image_generator(self) -> BaseImageGenerator:
        image = self.config.image
        if self._mode == ServiceMode.MOCK:
            return MockImageGenerator(image.base_image)
        return ReplicateImageGenerator(
            api_token=image.replicate_api_token,
            base_url=image.base_url,
            model_version=image.model_version,
            base_image=image.base_image,
            poll_interval_seconds=image.poll_interval_seconds,
            max_polls=image.max_polls,
            timeout_seconds=image.timeout_seconds,
        )

    def _create_social_context_provider(self) -> BaseSocialContextProvider:
        if self._mode == ServiceMode.MOCK:
            return MockSocialContextProvider()
        social = self.config.social
        return XSocialContextProvider(
            api_key=social.x_api_key,
            search_url=social.search_url,
            query=social.query,
            timeout_seconds=social.timeout_seconds,
        )

    def _create_tool_service(self) -> ToolService:
        tools = self.config.tools
        return ToolService(
            persistence=self.get_persistence_service(),
            weather_api_key=None if self._mode == ServiceMode.MOCK else tools.openweather_api_key,
            weather_url=tools.weather_url,
            weather_city=tools.weather_city,
            reminder_delay_hours=tools.reminder_delay_hours,
            timeout_seconds=tools.timeout_seconds,
        )

    def _create_status_checker(self) -> StatusChecker:
        return StatusChecker(
            config=self.config,
            provider_gateway=self.get_provider_gateway(),
            session_registry=self.get_session_registry(),
            voice_synthesizer=self.get_voice_synthesizer(),
            image_generator=self.get_image_generator(),
            social_context_provider=self.get_social_context_provider(),
            offline_provider=self.get_provider_gateway().offline_provider,
        )

    def create_orchestrator(self) -> Orchestrator:
        """Create an orchestrator wired to this container's services."""
        return Orchestrator(
            language_detector=self.get_language_detector(),
            translator=self.get_translator(),
            sentiment_scorer=self.get_sentiment_scorer(),
            provider_gateway=self.get_provider_gateway(),
            voice_synthesizer=self.get_voice_synthesizer(),
            affect_machine=AffectStateMachine(),
            social_context_provider=self.get_social_context_provider(),
            image_generator=self.get_image_generator(),
            tool_service=self.get_tool_service(),
            persistence_service=self.get_persistence_service(),
            event_broadcaster=self.get_event_broadcaster(),
            exporter=ChatExporter(
                title=self.config.export.pdf_title,
                persona=self.config.prompt.persona_name,
            ),
            prompt_config=self.config.prompt,
            export_config=self.config.export,
            pivot_language=self.config.language.pivot,
            base_image=self.config.image.base_image,
            voice_fallback_reference=self.config.voice.fallback_reference,
        )


# Global container instance
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the global service container, creating it from settings on first use."""
    global _container
    if _container is None:
        mode = ServiceMode(settings.service_mode)
        _container = ServiceContainer(config=settings, mode=mode)
    return _container


def set_container(container: ServiceContainer) -> None:
    global _container
    _container = container


def reset_container() -> None:
    global _container
    _container = None
