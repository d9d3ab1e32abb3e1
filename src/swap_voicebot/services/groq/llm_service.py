"""
Groq LLM Service for classification, paraphrasing and small talk.
Talks to Groq's OpenAI-compatible chat completions endpoint over httpx.
"""

import json
import re
import time
from typing import Any

import httpx
import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.errors import UpstreamError, message_for_upstream_error
from swap_voicebot.utils.logging import log_api_call

logger = structlog.get_logger(__name__)

FALLBACK_CHAT_REPLY = "Sorry, samajh nahi aaya. Phir se bolo?"


class GroqLLMService:
    """
    Groq chat-completions client.

    Stateless across sessions: callers own their conversation history and
    pass it in on every call.
    """

    CHAT_SYSTEM_PROMPT = (
        "You are a friendly AI voice assistant for Battery Smart, an EV battery swapping network. "
        "Always respond in Hinglish (mix of Hindi and English words, e.g. "
        "\"Haan bilkul, main aapki madad karti hoon\" or \"Achha, yeh kaam ho sakta hai\"). "
        "Keep every response VERY short: 1-2 sentences only, so it sounds natural when spoken aloud. "
        "Be conversational and helpful."
    )

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = get_settings()
        self.api_key = api_key or self.settings.groq.api_key
        self.model = self.settings.groq.model_id
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.groq.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                timeout=self.settings.groq.timeout_seconds
            )
        return self._client

    async def _call_groq(
        self,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 300,
        json_mode: bool = False,
    ) -> dict:
        """Make a call to Groq API."""
        client = await self._get_client()
        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            response = await client.post("/chat/completions", json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log_api_call(
                "groq", "/chat/completions",
                success=False, status=status,
                duration_ms=int((time.monotonic() - start) * 1000),
                error=e.response.text[:200],
            )
            raise UpstreamError("groq", message_for_upstream_error("Groq", status, e.response.text), status) from e
        except httpx.HTTPError as e:
            log_api_call(
                "groq", "/chat/completions",
                success=False,
                duration_ms=int((time.monotonic() - start) * 1000),
                error=str(e) or type(e).__name__,
            )
            raise UpstreamError("groq", message_for_upstream_error("Groq", None, str(e))) from e

        log_api_call(
            "groq", "/chat/completions",
            success=True, status=response.status_code,
            duration_ms=int((time.monotonic() - start) * 1000),
            model=self.model,
        )
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("groq", "Completion response is not valid JSON", response.status_code) from e

    @staticmethod
    def _content(result: dict) -> str:
        try:
            return (result["choices"][0]["message"]["content"] or "").strip()
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError("groq", "Malformed completion payload") from e

    async def complete(
        self,
        system_instructions: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 150,
    ) -> str:
        """Single-shot completion; returns the raw text (may be empty)."""
        result = await self._call_groq(
            messages=[
                {"role": "system", "content": system_instructions},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return self._content(result)

    async def classify_text(
        self,
        system_instructions: str,
        conversation: str,
        temperature: float = 0.1,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Run a JSON-mode completion and return the parsed object."""
        result = await self._call_groq(
            messages=[
                {"role": "system", "content": system_instructions},
                {"role": "user", "content": conversation},
            ],
            temperature=temperature,
            max_tokens=max_tokens or self.settings.groq.max_tokens,
            json_mode=True,
        )
        text = self._content(result)
        if not text:
            raise UpstreamError("groq", "Empty classification response")

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            json_match = re.search(r'\{.*\}', text, re.DOTALL)
            if not json_match:
                raise UpstreamError("groq", "No JSON found in response")
            try:
                parsed = json.loads(json_match.group())
            except json.JSONDecodeError as e:
                raise UpstreamError("groq", f"Unparseable JSON in response: {e}") from e

        if not isinstance(parsed, dict):
            raise UpstreamError("groq", "Classification response is not a JSON object")
        return parsed

    async def chat_reply(self, history: list[dict[str, str]]) -> str:
        """
        Generic small-talk reply.

        Args:
            history: Recent chat messages, oldest first, ending with the user turn

        Returns:
            Short Hinglish reply
        """
        result = await self._call_groq(
            messages=[{"role": "system", "content": self.CHAT_SYSTEM_PROMPT}, *history],
            temperature=0.8,
            max_tokens=150,
        )
        text = self._content(result)
        logger.info("groq_chat_reply_generated", response_length=len(text))
        return text or FALLBACK_CHAT_REPLY

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
