"""
Handoff models.
The summary is the payload a human agent receives when the bot escalates.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from swap_voicebot.models.conversation import utcnow


class HandoffReason(str, Enum):
    """Why the bot escalated."""

    LOW_CONFIDENCE = "low_confidence"
    NEGATIVE_SENTIMENT = "negative_sentiment"
    USER_REQUESTED = "user_requested"
    FAILED_ATTEMPTS = "failed_attempts"
    COMPLAINT = "complaint"


class SentimentTrend(str, Enum):
    """Direction of the driver's mood over the last turns."""

    DECLINING = "declining"
    NEGATIVE = "negative"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


class EscalationPriority(str, Enum):
    """Agent queue priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return {"urgent": 4, "high": 3, "medium": 2, "low": 1}[self.value]


class DriverDetails(BaseModel):
    """Driver identity attached to a handoff."""

    driver_id: str | None = None
    phone: str | None = None
    name: str | None = None


class HandoffSummary(BaseModel):
    """Context package handed to the human agent."""

    handoff_required: Literal[True] = True
    handoff_reason: HandoffReason
    driver_details: DriverDetails = Field(default_factory=DriverDetails)
    conversation_summary: str = ""
    key_intents: list[str] = Field(default_factory=list)
    sentiment_trend: SentimentTrend = SentimentTrend.NEUTRAL
    last_query: str = "N/A"
    resolution_attempted: list[str] = Field(default_factory=list)
    escalation_priority: EscalationPriority = EscalationPriority.LOW
    agent_context: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
