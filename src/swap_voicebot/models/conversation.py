"""
Conversation context tracked for warm handoff.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from swap_voicebot.models.sentiment import SentimentLabel, SentimentResult


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordRole(str, Enum):
    """Speaker of a conversation record."""

    USER = "user"
    BOT = "bot"


class ConversationRecord(BaseModel):
    """Single message in the tracked history."""

    role: RecordRole
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    intent: str | None = None
    sentiment: SentimentLabel | None = None


class ApiCallRecord(BaseModel):
    """Outcome of one domain API call."""

    intent: str
    success: bool
    timestamp: datetime = Field(default_factory=utcnow)


class ConversationContext(BaseModel):
    """Everything the handoff manager knows about the current session."""

    driver_id: str | None = None
    conversation_history: list[ConversationRecord] = Field(default_factory=list)
    detected_intents: list[str] = Field(default_factory=list)
    failed_attempts: int = 0
    sentiment_history: list[SentimentResult] = Field(default_factory=list)
    api_calls_made: list[ApiCallRecord] = Field(default_factory=list)
