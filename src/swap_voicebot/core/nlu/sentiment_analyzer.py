"""
Sentiment Analysis for Battery Smart driver conversations.
Advisory signal for the handoff policy: failures degrade to neutral.
"""

import structlog

from swap_voicebot.errors import UpstreamError
from swap_voicebot.models import SentimentLabel, SentimentResult
from swap_voicebot.services.groq import GroqLLMService

logger = structlog.get_logger(__name__)

ESCALATION_EMOTIONS = frozenset({"frustrated", "angry", "very_angry", "upset", "annoyed"})


class SentimentAnalyzer:
    """LLM-backed sentiment analyzer with a neutral fallback."""

    SYSTEM_PROMPT = """You are a sentiment analysis system for a customer support voicebot.

Analyze the user's message and detect:
1. Overall sentiment (positive, neutral, negative)
2. Sentiment score from -1 to 1 (-1 = very negative, 0 = neutral, 1 = very positive)
3. Confidence in your analysis (0 to 1)
4. Primary emotion (frustrated, angry, satisfied, confused, worried, happy, etc.)

IMPORTANT:
- Understand both Hindi and English (Hinglish)
- Detect frustration indicators: "kyu", "problem", "galat", "nahi ho raha", "bahut baar", etc.
- Detect negative sentiment: complaints, anger, dissatisfaction

Respond in JSON format only:
{"sentiment": "positive|neutral|negative", "score": -0.8, "confidence": 0.95, "emotion": "frustrated"}"""

    def __init__(self, llm: GroqLLMService) -> None:
        self.llm = llm

    async def analyze(self, utterance: str) -> SentimentResult:
        """Analyze one utterance; never raises on upstream failure."""
        try:
            result = await self.llm.classify_text(
                self.SYSTEM_PROMPT,
                f'Analyze sentiment of this customer message:\n\n"{utterance}"',
                temperature=0.1,
                max_tokens=200,
            )
            sentiment = self._parse(result)
        except (UpstreamError, ValueError, TypeError) as e:
            logger.warning("sentiment_analysis_failed", error=str(e))
            return SentimentResult.unknown()

        logger.info(
            "sentiment_analyzed",
            sentiment=sentiment.sentiment.value,
            score=sentiment.score,
            emotion=sentiment.emotion,
        )
        return sentiment

    @staticmethod
    def _parse(result: dict) -> SentimentResult:
        label = str(result.get("sentiment") or "neutral").lower()
        try:
            sentiment = SentimentLabel(label)
        except ValueError:
            sentiment = SentimentLabel.NEUTRAL

        score = float(result.get("score") or 0.0)
        confidence = float(result.get("confidence") or 0.5)
        return SentimentResult(
            sentiment=sentiment,
            score=min(max(score, -1.0), 1.0),
            confidence=min(max(confidence, 0.0), 1.0),
            emotion=str(result.get("emotion") or "neutral"),
        )

    @staticmethod
    def requires_escalation(result: SentimentResult) -> bool:
        """Whether this single result warrants a human on its own."""
        return (
            (result.sentiment == SentimentLabel.NEGATIVE and result.confidence > 0.7)
            or result.score < -0.5
            or result.emotion.lower() in ESCALATION_EMOTIONS
        )
