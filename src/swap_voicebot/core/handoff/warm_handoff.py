"""
Warm Handoff Manager - Decides when the bot should give up and prepares
the context package a human agent receives.

One instance per voice session. Pure in-memory policy: no I/O, no failures.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any

import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.models import (
    UNKNOWN_INTENT,
    ApiCallRecord,
    ConversationContext,
    ConversationRecord,
    DriverDetails,
    EscalationPriority,
    HandoffReason,
    HandoffSummary,
    Intent,
    RecordRole,
    SentimentResult,
    SentimentTrend,
)

logger = structlog.get_logger(__name__)

AGENT_REQUEST_INTENTS = frozenset({"speak_to_agent"})

SUMMARY_MAX_CHARS = 300

AGENT_CONTEXT_TEMPLATES: dict[HandoffReason, str] = {
    HandoffReason.LOW_CONFIDENCE: "Bot could not understand user query clearly. May need clarification.",
    HandoffReason.NEGATIVE_SENTIMENT: "User is frustrated or unhappy. Handle with empathy.",
    HandoffReason.USER_REQUESTED: "User explicitly asked to speak with human agent.",
    HandoffReason.FAILED_ATTEMPTS: "Multiple attempts to resolve issue failed. User may be frustrated.",
    HandoffReason.COMPLAINT: "User has logged a complaint. Requires immediate attention.",
}
DEFAULT_AGENT_CONTEXT = "User transferred to agent."


class WarmHandoffManager:
    """
    Tracks one session's conversation and evaluates the handoff policy.

    Triggers (any one is enough):
    1. Intent confidence below threshold
    2. Sentiment score below threshold
    3. Last three sentiment scores non-increasing
    4. Too many failed domain calls
    5. Same intent repeated in three of the last four user turns
    """

    def __init__(
        self,
        confidence_threshold: float | None = None,
        sentiment_threshold: float | None = None,
        max_failed_attempts: int | None = None,
        history_limit: int | None = None,
    ) -> None:
        settings = get_settings().voicebot
        self.confidence_threshold = (
            confidence_threshold if confidence_threshold is not None
            else settings.handoff_confidence_threshold
        )
        self.sentiment_threshold = (
            sentiment_threshold if sentiment_threshold is not None
            else settings.handoff_sentiment_threshold
        )
        self.max_failed_attempts = max_failed_attempts or settings.max_failed_attempts
        self.history_limit = history_limit or settings.history_limit
        self.context = ConversationContext()

    # Tracking

    def track_conversation(
        self,
        user_message: str,
        bot_response: str,
        intent: Intent | None = None,
        sentiment: SentimentResult | None = None,
    ) -> None:
        """Record one completed turn."""
        now = datetime.now(timezone.utc)
        intent_name = intent.name if intent else None

        self.context.conversation_history.append(ConversationRecord(
            role=RecordRole.USER,
            message=user_message,
            timestamp=now,
            intent=intent_name,
            sentiment=sentiment.sentiment if sentiment else None,
        ))
        self.context.conversation_history.append(ConversationRecord(
            role=RecordRole.BOT,
            message=bot_response,
            timestamp=now,
        ))

        if (
            intent_name
            and intent_name != UNKNOWN_INTENT
            and intent_name not in self.context.detected_intents
        ):
            self.context.detected_intents.append(intent_name)

        if sentiment:
            self.context.sentiment_history.append(sentiment)

        if len(self.context.conversation_history) > self.history_limit:
            self.context.conversation_history = self.context.conversation_history[-self.history_limit:]

    def track_api_call(self, intent_name: str, success: bool) -> None:
        """Record a domain call outcome."""
        self.context.api_calls_made.append(ApiCallRecord(intent=intent_name, success=success))
        if not success:
            self.context.failed_attempts += 1
            logger.info(
                "api_call_failed_tracked",
                intent=intent_name,
                failed_attempts=self.context.failed_attempts,
            )

    def set_driver_id(self, driver_id: str) -> None:
        self.context.driver_id = driver_id

    # Policy

    def should_handoff(
        self,
        intent: Intent | None = None,
        sentiment: SentimentResult | None = None,
    ) -> bool:
        """Whether any handoff trigger currently fires."""
        return self._trigger(intent, sentiment) is not None

    def handoff_reason(
        self,
        intent: Intent | None = None,
        sentiment: SentimentResult | None = None,
    ) -> HandoffReason | None:
        """
        Reason the bot should hand off now, or None.

        An explicit, confidently classified agent request wins over the
        automatic triggers.
        """
        if (
            intent
            and intent.name in AGENT_REQUEST_INTENTS
            and intent.confidence >= self.confidence_threshold
        ):
            return HandoffReason.USER_REQUESTED

        trigger = self._trigger(intent, sentiment)
        if trigger:
            logger.info("handoff_trigger_fired", trigger=trigger)
        return {
            "low_confidence": HandoffReason.LOW_CONFIDENCE,
            "negative_sentiment": HandoffReason.NEGATIVE_SENTIMENT,
            "sentiment_declining": HandoffReason.NEGATIVE_SENTIMENT,
            "failed_attempts": HandoffReason.FAILED_ATTEMPTS,
            "frustration_loop": HandoffReason.FAILED_ATTEMPTS,
        }.get(trigger)

    def _trigger(
        self,
        intent: Intent | None,
        sentiment: SentimentResult | None,
    ) -> str | None:
        if intent and intent.confidence < self.confidence_threshold:
            return "low_confidence"
        if sentiment and sentiment.score < self.sentiment_threshold:
            return "negative_sentiment"
        if self.is_sentiment_declining():
            return "sentiment_declining"
        if self.context.failed_attempts >= self.max_failed_attempts:
            return "failed_attempts"
        if self.is_in_frustration_loop():
            return "frustration_loop"
        return None

    def is_sentiment_declining(self) -> bool:
        """True when the three latest scores never go up."""
        history = self.context.sentiment_history
        if len(history) < 3:
            return False
        recent = [s.score for s in history[-3:]]
        return all(recent[i] >= recent[i + 1] for i in range(len(recent) - 1))

    def is_in_frustration_loop(self) -> bool:
        """True when one intent appears 3+ times in the last four intent-bearing user turns."""
        intents = [
            record.intent
            for record in self.context.conversation_history
            if record.role == RecordRole.USER and record.intent
        ][-4:]
        if len(intents) < 3:
            return False
        return max(Counter(intents).values()) >= 3

    # Summary

    def generate_handoff_summary(
        self,
        reason: HandoffReason,
        driver_details: DriverDetails | None = None,
    ) -> HandoffSummary:
        """Build the agent-facing context package for this session."""
        user_messages = [
            record.message
            for record in self.context.conversation_history
            if record.role == RecordRole.USER
        ]
        trend = self._sentiment_trend()
        details = driver_details or DriverDetails(driver_id=self.context.driver_id)

        summary = HandoffSummary(
            handoff_reason=reason,
            driver_details=details,
            conversation_summary=self._conversation_summary(user_messages),
            key_intents=list(self.context.detected_intents),
            sentiment_trend=trend,
            last_query=user_messages[-1] if user_messages else "N/A",
            resolution_attempted=[
                f"{call.intent} ({'success' if call.success else 'failed'})"
                for call in self.context.api_calls_made
            ],
            escalation_priority=self._escalation_priority(reason, trend),
            agent_context=self._agent_context(reason),
        )

        logger.info(
            "handoff_summary_generated",
            reason=reason.value,
            priority=summary.escalation_priority.value,
            trend=trend.value,
            driver_id=details.driver_id,
        )
        return summary

    @staticmethod
    def _conversation_summary(user_messages: list[str]) -> str:
        summary = " | ".join(user_messages)
        if len(summary) > SUMMARY_MAX_CHARS:
            return summary[:SUMMARY_MAX_CHARS] + "..."
        return summary

    def _sentiment_trend(self) -> SentimentTrend:
        history = self.context.sentiment_history
        if not history:
            return SentimentTrend.NEUTRAL
        if self.is_sentiment_declining():
            return SentimentTrend.DECLINING

        recent = history[-3:]
        average = sum(s.score for s in recent) / len(recent)
        if average < -0.3:
            return SentimentTrend.NEGATIVE
        if average > 0.3:
            return SentimentTrend.POSITIVE
        return SentimentTrend.NEUTRAL

    @staticmethod
    def _escalation_priority(reason: HandoffReason, trend: SentimentTrend) -> EscalationPriority:
        if reason == HandoffReason.COMPLAINT and trend == SentimentTrend.NEGATIVE:
            return EscalationPriority.URGENT
        if reason == HandoffReason.COMPLAINT or trend == SentimentTrend.DECLINING:
            return EscalationPriority.HIGH
        if reason == HandoffReason.FAILED_ATTEMPTS or trend == SentimentTrend.NEGATIVE:
            return EscalationPriority.MEDIUM
        return EscalationPriority.LOW

    def _agent_context(self, reason: HandoffReason) -> str:
        base = AGENT_CONTEXT_TEMPLATES.get(reason, DEFAULT_AGENT_CONTEXT)
        topics = ", ".join(self.context.detected_intents) or "None"
        return f"{base} Topics discussed: {topics}."

    # Session

    def reset(self) -> None:
        """Start a fresh context for a new call."""
        self.context = ConversationContext()
        logger.info("handoff_context_reset")

    @property
    def conversation_history(self) -> list[ConversationRecord]:
        return list(self.context.conversation_history)

    def get_stats(self) -> dict[str, Any]:
        """Conversation statistics for dashboards."""
        scores = [s.score for s in self.context.sentiment_history]
        return {
            "total_messages": len(self.context.conversation_history),
            "detected_intents": len(self.context.detected_intents),
            "failed_attempts": self.context.failed_attempts,
            "avg_sentiment": sum(scores) / len(scores) if scores else 0.0,
        }
