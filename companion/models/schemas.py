"""Core business models for the companion service.

This module defines Pydantic models for:
- Turn: One immutable request/response cycle input
- Reply: The finalized reply produced for a Turn
- HistoryEntry: A single remembered exchange
- AffectState / PersonalityProfile: Companion state read and written per turn
- Quest / QuestCompletion / Reminder: Engagement records
- TranslationResult / ProviderReply: Component results
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


UserEmotion = Literal["neutral", "happy", "sad", "excited"]
ConversationMode = Literal["chat", "date"]
CompanionEmotion = Literal["happy", "caring", "playful"]

# Provider id reported when the offline corpus (or the apology) produced the reply
OFFLINE_PROVIDER = "mock"


class Turn(BaseModel):
    """Input of one conversational turn. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    user_input: str
    detected_language: str
    user_emotion: UserEmotion = "neutral"
    mode: ConversationMode = "chat"
    quest_id: int | None = None


class TranslationResult(BaseModel):
    """Result of a translation call.

    ``degraded`` is True when the backend failed and ``text`` is the
    untranslated source.
    """

    text: str
    source_text: str
    target_language: str
    degraded: bool = False


class ProviderReply(BaseModel):
    """Uniform reply shape returned by every completion provider."""

    text: str = Field(min_length=1)
    provider: str


class Reply(BaseModel):
    """Finalized reply for a Turn."""

    text: str
    source_provider: str
    translated_back_to: str
    voice_reference: str | None = None
    translation_degraded: bool = False


class HistoryEntry(BaseModel):
    """One remembered exchange, in the user's language."""

    model_config = ConfigDict(frozen=True)

    input: str
    reply: str
    language: str


class AffectState(BaseModel):
    """Companion affect. Affinity only ever grows within a session."""

    model_config = ConfigDict(frozen=True)

    affinity: float = Field(default=0.0, ge=0.0)
    emotion: CompanionEmotion = "happy"


class PersonalityProfile(BaseModel):
    """Trait weights fed into prompt construction."""

    flirty: float = Field(default=0.7, ge=0.0, le=1.0)
    tsundere: float = Field(default=0.3, ge=0.0, le=1.0)
    supportive: float = Field(default=1.0, ge=0.0, le=1.0)


class VoiceSettings(BaseModel):
    pitch: float = 1.0
    speed: float = 1.0


class Quest(BaseModel):
    """An engagement quest. ``pattern`` is the completion regex."""

    id: int
    name: str
    description: str
    reward: str
    completed: bool = False
    pattern: str = "love|like"


class QuestCompletion(BaseModel):
    """Notice emitted once when a quest completes."""

    quest_id: int
    name: str
    reward: str


class Reminder(BaseModel):
    task: str
    due_at: datetime


class TurnRecord(BaseModel):
    """Row persisted for every finished turn, success or fallback."""

    session_id: str
    user_input: str
    reply: str
    sentiment: float
    user_emotion: str
    language: str
    provider: str
    created_at: datetime | None = None
