# Data Models

from companion.models.api import (
    CharacterUpdateRequest,
    CharacterUpdateResponse,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    ExportRequest,
    ExportResponse,
    HealthResponse,
)
from companion.models.schemas import (
    OFFLINE_PROVIDER,
    AffectState,
    HistoryEntry,
    PersonalityProfile,
    ProviderReply,
    Quest,
    QuestCompletion,
    Reminder,
    Reply,
    TranslationResult,
    Turn,
    TurnRecord,
)

__all__ = [
    # API models
    "ChatRequest",
    "ChatResponse",
    "CharacterUpdateRequest",
    "CharacterUpdateResponse",
    "ExportRequest",
    "ExportResponse",
    "HealthResponse",
    "ErrorResponse",
    # Core models
    "OFFLINE_PROVIDER",
    "AffectState",
    "HistoryEntry",
    "PersonalityProfile",
    "ProviderReply",
    "Quest",
    "QuestCompletion",
    "Reminder",
    "Reply",
    "TranslationResult",
    "Turn",
    "TurnRecord",
]
