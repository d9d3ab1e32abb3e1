"""
Response Generator - Turns handler data into a short spoken Hinglish reply.
"""

import json
import random

import structlog

from swap_voicebot.errors import ResponseGenerationError, UpstreamError
from swap_voicebot.models import IntentResponse
from swap_voicebot.services.groq import GroqLLMService
from swap_voicebot.services.groq.llm_service import FALLBACK_CHAT_REPLY

logger = structlog.get_logger(__name__)

APOLOGY_RESPONSES = (
    "Sorry, abhi yeh information nahi mil rahi hai",
    "Thoda issue hai, phir se try karo",
    "Mujhe yeh nahi pata, kuch aur poocho",
)


class ResponseGenerator:
    """Paraphrases structured results; apologizes for failures."""

    SYSTEM_PROMPT = """You are a helpful voice assistant that converts structured data into natural, conversational Hinglish responses.

IMPORTANT RULES:
- Always respond in Hinglish (mix of Hindi and English words)
- Keep responses VERY SHORT: 1-2 sentences maximum
- Make it sound natural when spoken aloud
- Be friendly and conversational
- Use ONLY the provided data. Never invent numbers, dates, names or facts
- If data is empty or null, politely say information is not available

Examples:
- Data: {"swap_count": 42} -> "Aapne ab tak 42 swaps kiye hain"
- Data: {"swap_price": 240} -> "Aapke last swap ka price 240 rupees tha"
- Data: {"status": "active"} -> "Aapka subscription abhi active hai\""""

    USER_PROMPT = """User asked: "{query}"
Intent: {intent}
Data received: {data}

Convert this data into a natural Hinglish spoken response (1-2 sentences max):"""

    def __init__(self, llm: GroqLLMService) -> None:
        self.llm = llm

    async def render(self, user_query: str, intent_name: str, response: IntentResponse) -> str:
        """
        Produce the spoken reply for a handler result.

        Raises:
            ResponseGenerationError: the paraphrasing call failed
        """
        if not response.success:
            return random.choice(APOLOGY_RESPONSES)

        prompt = self.USER_PROMPT.format(
            query=user_query,
            intent=intent_name,
            data=json.dumps(response.data, indent=2, ensure_ascii=False, default=str),
        )
        try:
            text = await self.llm.complete(self.SYSTEM_PROMPT, prompt, temperature=0.7, max_tokens=150)
        except UpstreamError as e:
            logger.error("response_generation_failed", intent=intent_name, error=str(e))
            raise ResponseGenerationError(str(e), e.status_code) from e

        logger.info("response_generated", intent=intent_name, response_length=len(text))
        return text or FALLBACK_CHAT_REPLY
