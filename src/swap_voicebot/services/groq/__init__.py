"""Groq LLM and speech-to-text services."""

from swap_voicebot.services.groq.llm_service import GroqLLMService
from swap_voicebot.services.groq.transcriber import GroqTranscriber

__all__ = ["GroqLLMService", "GroqTranscriber"]
