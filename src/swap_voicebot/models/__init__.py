"""Data models for the voicebot system."""

from swap_voicebot.models.conversation import (
    ApiCallRecord,
    ConversationContext,
    ConversationRecord,
    RecordRole,
)
from swap_voicebot.models.handoff import (
    DriverDetails,
    EscalationPriority,
    HandoffReason,
    HandoffSummary,
    SentimentTrend,
)
from swap_voicebot.models.intent import (
    UNKNOWN_INTENT,
    Intent,
    IntentDefinition,
    IntentOutcome,
    IntentResponse,
)
from swap_voicebot.models.sentiment import SentimentLabel, SentimentResult
from swap_voicebot.models.session import DriverSession

__all__ = [
    # Conversation models
    "ApiCallRecord",
    "ConversationContext",
    "ConversationRecord",
    "RecordRole",
    # Handoff models
    "DriverDetails",
    "EscalationPriority",
    "HandoffReason",
    "HandoffSummary",
    "SentimentTrend",
    # Intent models
    "UNKNOWN_INTENT",
    "Intent",
    "IntentDefinition",
    "IntentOutcome",
    "IntentResponse",
    # Sentiment models
    "SentimentLabel",
    "SentimentResult",
    # Session models
    "DriverSession",
]
