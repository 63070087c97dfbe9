"""
Application configuration using Pydantic Settings.
Supports loading from environment variables and .env files.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderConfig(BaseSettings):
    """Completion provider credentials and fallback-chain settings.

    API keys keep the bare environment names the service has always used
    (GROK_API_KEY, OPENAI_API_KEY, ANTHROPIC_API_KEY).
    """

    model_config = SettingsConfigDict(env_prefix="PROVIDER_", populate_by_name=True)

    grok_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("GROK_API_KEY", "PROVIDER_GROK_API_KEY")
    )
    openai_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("OPENAI_API_KEY", "PROVIDER_OPENAI_API_KEY")
    )
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "PROVIDER_ANTHROPIC_API_KEY"),
    )

    # Static preference order; filtered by which providers have credentials
    priority: list[str] = ["grok", "openai", "anthropic"]

    grok_url: str = "https://api.x.ai/v1/chat/completions"
    openai_url: str = "https://api.openai.com/v1/chat/completions"
    anthropic_url: str = "https://api.anthropic.com/v1/messages"

    grok_model: str = "grok-beta"
    openai_model: str = "gpt-4o"
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    anthropic_version: str = "2023-06-01"

    max_tokens: int = 200
    timeout_seconds: float = 30.0


class LanguageConfig(BaseSettings):
    """Language detection and translation settings."""

    model_config = SettingsConfigDict(env_prefix="LANGUAGE_")

    pivot: str = "eng"
    min_length: int = 3
    min_confidence: float = 0.5
    translation_timeout_seconds: float = 10.0


class VoiceConfig(BaseSettings):
    """Text-to-speech settings."""

    model_config = SettingsConfigDict(env_prefix="VOICE_", populate_by_name=True)

    elevenlabs_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ELEVENLABS_API_KEY", "VOICE_ELEVENLABS_API_KEY"),
    )
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    base_url: str = "https://api.elevenlabs.io/v1/text-to-speech"
    stability: float = 0.5
    similarity_boost: float = 0.5
    timeout_seconds: float = 20.0
    fallback_reference: str = "/static/fallback-voice.mp3"


class ImageConfig(BaseSettings):
    """Character image generation settings."""

    model_config = SettingsConfigDict(env_prefix="IMAGE_", populate_by_name=True)

    replicate_api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("REPLICATE_API_TOKEN", "IMAGE_REPLICATE_API_TOKEN"),
    )
    base_url: str = "https://api.replicate.com/v1/predictions"
    model_version: str = "fofr/anime-pastel-dream"
    base_image: str = "/static/base-bella.png"
    poll_interval_seconds: float = 2.0
    max_polls: int = 30
    timeout_seconds: float = 30.0


class SocialConfig(BaseSettings):
    """Social context (X recent posts) settings."""

    model_config = SettingsConfigDict(env_prefix="SOCIAL_", populate_by_name=True)

    x_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("X_API_KEY", "SOCIAL_X_API_KEY")
    )
    search_url: str = "https://api.x.com/2/tweets/search/recent"
    query: str = "from:user OR #anime"
    timeout_seconds: float = 10.0


class ToolsConfig(BaseSettings):
    """Reminder and weather tool settings."""

    model_config = SettingsConfigDict(env_prefix="TOOLS_", populate_by_name=True)

    openweather_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENWEATHER_API_KEY", "TOOLS_OPENWEATHER_API_KEY"),
    )
    weather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    weather_city: str = "Tokyo"
    reminder_delay_hours: int = 24
    timeout_seconds: float = 10.0


class PromptConfig(BaseSettings):
    """Prompt construction settings."""

    model_config = SettingsConfigDict(env_prefix="PROMPT_")

    persona_name: str = "Bella"
    history_window: int = Field(default=5, ge=1, le=50)
    reply_words: int = 150


class ExportConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EXPORT_")

    max_records: int = 50
    pdf_title: str = "Bella Chat History"


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = "sqlite+aiosqlite:///./companion_memory.db"
    echo: bool = False


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    use_json: bool = False
    enable_request_logging: bool = True


class TraceConfig(BaseSettings):
    """Trace logging configuration (per-turn stage events)."""

    model_config = SettingsConfigDict(env_prefix="TRACE_")

    enabled: bool = False
    level: Literal["error", "info", "debug"] = "info"
    file_path: str = "logs/trace.jsonl"
    log_prompt: bool = False


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    app_name: str = "Companion Service"
    app_version: str = "0.1.0"
    debug: bool = False

    # "mock" wires the offline provider and identity translator only
    service_mode: Literal["mock", "real"] = "real"

    # API settings
    api_prefix: str = "/api/v1"
    default_session_id: str = "default"

    # Served at /static when the directory exists
    static_dir: str = "public"

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Sub-configurations
    providers: ProviderConfig = ProviderConfig()
    language: LanguageConfig = LanguageConfig()
    voice: VoiceConfig = VoiceConfig()
    image: ImageConfig = ImageConfig()
    social: SocialConfig = SocialConfig()
    tools: ToolsConfig = ToolsConfig()
    prompt: PromptConfig = PromptConfig()
    export: ExportConfig = ExportConfig()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    trace: TraceConfig = TraceConfig()


# Global configuration instance
settings = AppConfig()
