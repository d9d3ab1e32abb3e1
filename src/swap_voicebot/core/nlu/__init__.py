"""Natural language understanding: intent and sentiment."""

from swap_voicebot.core.nlu.intent_classifier import IntentClassifier
from swap_voicebot.core.nlu.sentiment_analyzer import ESCALATION_EMOTIONS, SentimentAnalyzer

__all__ = ["ESCALATION_EMOTIONS", "IntentClassifier", "SentimentAnalyzer"]
