"""
Groq Whisper speech-to-text adapter.
"""

import time

import httpx
import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.errors import TranscriptionError, message_for_upstream_error
from swap_voicebot.utils.logging import log_api_call

logger = structlog.get_logger(__name__)

HINDI_PROMPT = "यह एक हिंदी बातचीत है। कृपया शुद्ध हिंदी में लिखें।"


class GroqTranscriber:
    """Transcribes browser-recorded audio with Whisper on Groq."""

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = get_settings()
        self.api_key = api_key or self.settings.groq.api_key
        self.model = self.settings.groq.stt_model_id
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.groq.base_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.settings.groq.timeout_seconds
            )
        return self._client

    async def transcribe(self, audio: bytes, language: str | None = None) -> str:
        """
        Transcribe one utterance.

        Args:
            audio: Encoded audio (webm/opus from the browser)
            language: Optional ISO-639-1 hint ("hi", "en")

        Returns:
            Transcript text, possibly empty
        """
        client = await self._get_client()
        data = {
            "model": self.model,
            "response_format": "json",
            "temperature": "0",
        }
        if language:
            data["language"] = language
            if language == "hi":
                data["prompt"] = HINDI_PROMPT

        start = time.monotonic()
        try:
            response = await client.post(
                "/audio/transcriptions",
                data=data,
                files={"file": ("audio.webm", audio, "audio/webm")},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log_api_call(
                "groq_stt", "/audio/transcriptions",
                success=False, status=status,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            raise TranscriptionError(message_for_upstream_error("Groq", status, e.response.text), status) from e
        except httpx.HTTPError as e:
            raise TranscriptionError(message_for_upstream_error("Groq", None, str(e))) from e

        text = (response.json().get("text") or "").strip()
        log_api_call(
            "groq_stt", "/audio/transcriptions",
            success=True, status=response.status_code,
            duration_ms=int((time.monotonic() - start) * 1000),
            audio_bytes=len(audio),
            language=language,
        )
        logger.info("transcription_completed", text_length=len(text), language=language)
        return text

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
