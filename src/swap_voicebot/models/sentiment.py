"""
Sentiment analysis result model.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SentimentLabel(str, Enum):
    """Sentiment classification labels."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class SentimentResult(BaseModel):
    """Sentiment of one utterance."""

    sentiment: SentimentLabel = SentimentLabel.NEUTRAL
    score: float = Field(default=0.0, ge=-1.0, le=1.0, description="-1 very negative, 1 very positive")
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    emotion: str = "neutral"

    @classmethod
    def unknown(cls) -> "SentimentResult":
        """Neutral placeholder used when analysis is unavailable."""
        return cls(sentiment=SentimentLabel.NEUTRAL, score=0.0, confidence=0.5, emotion="unknown")
