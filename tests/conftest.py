"""Shared fixtures for voicebot tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from swap_voicebot.core.handoff import HandoffQueue
from swap_voicebot.core.intents import IntentHandlerRegistry
from swap_voicebot.core.memory import DriverMemory
from swap_voicebot.core.nlu import SentimentAnalyzer
from swap_voicebot.core.orchestrator import SessionManager, VoiceAgent
from swap_voicebot.models import Intent

NEUTRAL_SENTIMENT = {"sentiment": "neutral", "score": 0.1, "confidence": 0.6, "emotion": "calm"}


@pytest.fixture
def driver_memory():
    return DriverMemory()


@pytest.fixture
def chat_llm():
    """LLM stand-in for small talk."""
    llm = MagicMock()
    llm.chat_reply = AsyncMock(return_value="Haan ji, boliye")
    return llm


@pytest.fixture
def sentiment_llm():
    llm = MagicMock()
    llm.classify_text = AsyncMock(return_value=dict(NEUTRAL_SENTIMENT))
    return llm


@pytest.fixture
def classifier():
    classifier = MagicMock()
    classifier.classify = AsyncMock(return_value=Intent(name="greeting", confidence=0.9))
    return classifier


@pytest.fixture
def response_generator():
    generator = MagicMock()
    generator.render = AsyncMock(return_value="Aapne ab tak 42 swaps kiye hain")
    return generator


@pytest.fixture
def registry():
    return IntentHandlerRegistry(confidence_floor=0.5, handler_timeout_seconds=1.0)


@pytest.fixture
def transcriber():
    transcriber = MagicMock()
    transcriber.transcribe = AsyncMock(return_value="mera swap count batao")
    return transcriber


@pytest.fixture
def make_agent(chat_llm, sentiment_llm, classifier, response_generator, registry, driver_memory, transcriber):
    """Factory for a VoiceAgent wired to test doubles."""

    def _make(**overrides):
        kwargs = {
            "llm": chat_llm,
            "classifier": classifier,
            "sentiment_analyzer": SentimentAnalyzer(sentiment_llm),
            "registry": registry,
            "response_generator": response_generator,
            "driver_memory": driver_memory,
            "transcriber": transcriber,
        }
        kwargs.update(overrides)
        return VoiceAgent("session-1", **kwargs)

    return _make


AGENT_REQUEST = {
    "intent": "speak_to_agent",
    "confidence": 0.95,
    "entities": {},
    "sentiment": "neutral",
    "score": 0.2,
    "emotion": "calm",
}


@pytest.fixture
def build_manager():
    """Factory for a SessionManager whose LLM answers every prompt with one JSON object."""

    def _build(classification: dict | None = None) -> SessionManager:
        llm = AsyncMock()
        llm.classify_text = AsyncMock(return_value=dict(classification or AGENT_REQUEST))
        llm.complete = AsyncMock(return_value="Aapne ab tak 42 swaps kiye hain")
        llm.chat_reply = AsyncMock(return_value="Haan ji, boliye")
        synthesizer = AsyncMock()
        synthesizer.synthesize = AsyncMock(return_value=b"ID3audio")
        return SessionManager(
            llm=llm,
            transcriber=AsyncMock(),
            synthesizer=synthesizer,
            domain_client=AsyncMock(),
            registry=IntentHandlerRegistry(confidence_floor=0.5),
            driver_memory=DriverMemory(),
            handoff_queue=HandoffQueue(),
            notifier=AsyncMock(),
        )

    return _build
