# Service Layer

from companion.services.base import (
    BaseCompletionProvider,
    BaseImageGenerator,
    BaseLanguageDetector,
    BaseSentimentScorer,
    BaseSocialContextProvider,
    BaseTranslator,
    BaseVoiceSynthesizer,
)
from companion.services.mocks import (
    IdentityTranslator,
    MockImageGenerator,
    MockLanguageDetector,
    MockSocialContextProvider,
    MockVoiceSynthesizer,
)
from companion.services.affect import AffectStateMachine, QuestBook
from companion.services.fallback import FallbackStrategy
from companion.services.orchestrator import Orchestrator
from companion.services.persistence import PersistenceService
from companion.services.provider_gateway import ProviderGateway
from companion.services.providers import (
    AnthropicProvider,
    OfflineProvider,
    OpenAICompatibleProvider,
)
from companion.services.session import CompanionSession, SessionRegistry
from companion.core.exceptions import (
    AllProvidersFailedError,
    ProviderFailedError,
)

__all__ = [
    # Abstract base classes
    "BaseCompletionProvider",
    "BaseImageGenerator",
    "BaseLanguageDetector",
    "BaseSentimentScorer",
    "BaseSocialContextProvider",
    "BaseTranslator",
    "BaseVoiceSynthesizer",
    # Mock implementations
    "IdentityTranslator",
    "MockImageGenerator",
    "MockLanguageDetector",
    "MockSocialContextProvider",
    "MockVoiceSynthesizer",
    # Services
    "AffectStateMachine",
    "QuestBook",
    "FallbackStrategy",
    "Orchestrator",
    "PersistenceService",
    "ProviderGateway",
    "AnthropicProvider",
    "OfflineProvider",
    "OpenAICompatibleProvider",
    "CompanionSession",
    "SessionRegistry",
    # Exceptions
    "AllProvidersFailedError",
    "ProviderFailedError",
]
