"""
Application configuration settings using Pydantic Settings.
Supports environment variables and .env files for flexible deployment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VoicebotSettings(BaseSettings):
    """Turn orchestration and handoff policy configuration."""

    model_config = SettingsConfigDict(env_prefix="VOICEBOT_")

    # Handoff policy
    handoff_confidence_threshold: float = Field(
        default=0.5,
        ge=0.0, le=1.0,
        description="Intent confidence below this triggers handoff"
    )
    handoff_sentiment_threshold: float = Field(
        default=-0.5,
        ge=-1.0, le=1.0,
        description="Sentiment score below this triggers handoff"
    )
    max_failed_attempts: int = Field(
        default=3,
        ge=1,
        description="Failed domain calls before handoff"
    )
    intent_confidence_floor: float = Field(
        default=0.5,
        ge=0.0, le=1.0,
        description="Registry refuses to dispatch intents below this confidence"
    )

    # Conversation state
    history_limit: int = Field(default=20, ge=2, description="Conversation records kept per session")
    chat_history_messages: int = Field(default=6, ge=0, description="Messages replayed to the chat model")

    # Audio
    min_audio_bytes: int = Field(default=256, ge=0, description="Audio shorter than this is ignored")
    default_voice: str = Field(default="en-IN-NeerjaNeural", description="Voice used when the client sends none")

    # Deadlines
    handler_timeout_seconds: float = Field(default=10.0, gt=0, description="Deadline for one intent handler")
    escalation_timeout_seconds: float = Field(default=5.0, gt=0, description="Deadline for the escalation sink")

    # Agent queue
    handoff_queue_limit: int = Field(default=500, ge=1, description="Most handoffs held for agents")
    handoff_queue_max_age_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Queued handoffs older than this are dropped"
    )

    escalation_webhooks: str = Field(
        default="",
        description="Comma-separated webhook URLs notified on escalation"
    )

    @property
    def webhook_urls(self) -> list[str]:
        """Parsed escalation webhook URLs."""
        return [url.strip() for url in self.escalation_webhooks.split(",") if url.strip()]


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=8000, description="API port")
    workers: int = Field(default=1, description="Number of workers")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origins: list[str] = Field(
        default=["*"],
        description="CORS allowed origins"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v


class BatterySmartSettings(BaseSettings):
    """Driver-data REST API settings."""

    model_config = SettingsConfigDict(env_prefix="BATTERY_SMART_")

    api_base: str = Field(
        default="http://localhost:8000",
        description="Driver-data API base URL"
    )
    api_key: str | None = Field(default=None, description="Driver-data API key")
    timeout_seconds: float = Field(default=10.0, description="API timeout")


class GroqSettings(BaseSettings):
    """Groq LLM and Whisper API settings."""

    model_config = SettingsConfigDict(env_prefix="GROQ_")

    api_key: str = Field(
        default="",
        description="Groq API key for LLM inference"
    )
    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI-compatible Groq endpoint"
    )
    model_id: str = Field(
        default="llama-3.3-70b-versatile",
        description="Groq chat model"
    )
    stt_model_id: str = Field(
        default="whisper-large-v3",
        description="Groq speech-to-text model"
    )
    timeout_seconds: float = Field(default=30.0, description="API timeout")
    max_tokens: int = Field(default=500, description="Max tokens for classification")


class ElevenLabsSettings(BaseSettings):
    """ElevenLabs text-to-speech settings."""

    model_config = SettingsConfigDict(env_prefix="ELEVENLABS_")

    api_key: str = Field(default="", description="ElevenLabs API key")
    base_url: str = Field(default="https://api.elevenlabs.io/v1", description="ElevenLabs API base URL")
    model_id: str = Field(default="eleven_multilingual_v2", description="ElevenLabs synthesis model")
    timeout_seconds: float = Field(default=20.0, description="API timeout")


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    # Sub-settings
    voicebot: VoicebotSettings = Field(default_factory=VoicebotSettings)
    api: APISettings = Field(default_factory=APISettings)
    battery_smart: BatterySmartSettings = Field(default_factory=BatterySmartSettings)
    groq: GroqSettings = Field(default_factory=GroqSettings)
    elevenlabs: ElevenLabsSettings = Field(default_factory=ElevenLabsSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
