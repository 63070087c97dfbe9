"""API request and response models for the companion service.

This module defines Pydantic models for:
- ChatRequest / ChatResponse: The turn endpoint
- CharacterUpdateRequest / CharacterUpdateResponse: Re-personalization
- ExportRequest / ExportResponse: History export
- ToolRequest / ToolResponse: Reminder and weather tools
- HealthResponse: Provider and capability status

Field aliases keep the camelCase names the browser client sends and reads.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from companion.models.schemas import (
    CompanionEmotion,
    ConversationMode,
    PersonalityProfile,
    Quest,
    QuestCompletion,
    UserEmotion,
)


class ChatRequest(BaseModel):
    """Request model for POST /api/v1/chat."""

    model_config = ConfigDict(populate_by_name=True)

    input: str = Field(..., min_length=1, max_length=4000, description="User utterance")
    user_emotion: UserEmotion = Field(
        default="neutral", alias="userEmotion", description="Emotion captured by the client"
    )
    mode: ConversationMode = Field(default="chat", description="chat or date mode")
    quest_id: int | None = Field(default=None, alias="questId", description="Quest targeted by this turn")

    @field_validator("input")
    @classmethod
    def validate_input(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("input must not be blank")
        return v


class ChatResponse(BaseModel):
    """Response model for POST /api/v1/chat."""

    model_config = ConfigDict(populate_by_name=True)

    reply: str = Field(..., description="Final, localized reply text")
    provider: str = Field(..., description="Provider that produced the reply")
    detected_lang: str = Field(..., alias="detectedLang", description="Detected input language")
    affinity: float = Field(..., ge=0.0, description="Affinity after the turn")
    emotion: CompanionEmotion = Field(..., description="Companion emotion after the turn")
    voice_url: str | None = Field(default=None, alias="voiceUrl", description="Audio reference")
    quests: list[Quest] = Field(default_factory=list, description="Active quests after the turn")
    quest_completed: QuestCompletion | None = Field(
        default=None, alias="questCompleted", description="Quest completed by this turn"
    )
    reminders: list[str] | None = Field(default=None, description="Reminders that fell due")
    translation_degraded: bool = Field(
        default=False, alias="translationDegraded", description="A translation step fell back"
    )


class CharacterUpdateRequest(BaseModel):
    """Request model for POST /api/v1/character."""

    prompt: str = Field(default="", max_length=500, description="Desired character vibe")


class CharacterUpdateResponse(BaseModel):
    """Response model for POST /api/v1/character."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(default=None, alias="imageUrl")
    updated_personality: PersonalityProfile | None = Field(default=None, alias="updatedPersonality")
    message: str


class ExportRequest(BaseModel):
    format: Literal["json", "pdf"] = "json"


class ExportResponse(BaseModel):
    data: str = Field(..., description="Base64 encoded export payload")
    format: Literal["json", "pdf"]


class ToolRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)


class ToolResponse(BaseModel):
    result: str


class ProactiveResponse(BaseModel):
    message: str


class QuestListResponse(BaseModel):
    quests: list[Quest]


class HealthResponse(BaseModel):
    """Informational status; building it never mutates state."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    version: str
    api_status: dict[str, bool] = Field(..., alias="apiStatus")
    primary_ai: str = Field(..., alias="primaryAi")
    assets: dict[str, bool]
    uptime: float
    quests_active: int = Field(..., alias="questsActive")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type identifier")
    message: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(default=None, description="Additional error details")
