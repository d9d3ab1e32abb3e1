"""
ElevenLabs text-to-speech adapter.
Model eleven_multilingual_v2 speaks both English and Hindi.
"""

import time

import httpx
import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.errors import SynthesisError
from swap_voicebot.utils.logging import log_api_call

logger = structlog.get_logger(__name__)

DEFAULT_VOICE = "en-IN-NeerjaNeural"

# Browser voice names mapped to ElevenLabs voice IDs (English + Hindi capable)
VOICE_MAP: dict[str, str] = {
    "en-IN-NeerjaNeural": "EXAVITQu4vr4xnSDxMaL",
    "en-IN-PrabhatNeural": "JBFqnCBsd6RMkjVDRZzb",
    "en-US-AriaNeural": "EXAVITQu4vr4xnSDxMaL",
    "en-US-GuyNeural": "cjVigY5qzO86Huf0OWal",
    "hi-IN-SwaraNeural": "EXAVITQu4vr4xnSDxMaL",
    "hi-IN-MadhurNeural": "JBFqnCBsd6RMkjVDRZzb",
}


def voice_id_for(voice: str | None) -> str:
    """Resolve a voice name to an ElevenLabs voice ID."""
    return VOICE_MAP.get(voice or DEFAULT_VOICE, VOICE_MAP[DEFAULT_VOICE])


def _error_detail(response: httpx.Response) -> str:
    if response.status_code == 401:
        return "ElevenLabs API key invalid or expired"
    if response.status_code == 429:
        return "ElevenLabs quota or rate limit exceeded"
    try:
        body = response.json()
    except ValueError:
        return f"ElevenLabs error ({response.status_code})"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return str(detail.get("message", detail))
    return str(detail or body)


class ElevenLabsSynthesizer:
    """Synthesizes MP3 speech for bot replies."""

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = get_settings()
        self.api_key = api_key or self.settings.elevenlabs.api_key
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.elevenlabs.base_url,
                headers={
                    "xi-api-key": self.api_key,
                    "Content-Type": "application/json",
                    "Accept": "audio/mpeg",
                },
                timeout=self.settings.elevenlabs.timeout_seconds
            )
        return self._client

    async def synthesize(self, text: str, voice: str | None = None) -> bytes:
        """
        Synthesize speech.

        Returns empty bytes when the service rejects the request; raises
        SynthesisError when it cannot be reached.
        """
        voice_id = voice_id_for(voice)
        client = await self._get_client()
        endpoint = f"/text-to-speech/{voice_id}"

        start = time.monotonic()
        try:
            response = await client.post(
                endpoint,
                json={"text": text, "model_id": self.settings.elevenlabs.model_id},
            )
        except httpx.HTTPError as e:
            log_api_call(
                "elevenlabs", endpoint,
                success=False,
                duration_ms=int((time.monotonic() - start) * 1000),
                error=str(e) or type(e).__name__,
            )
            raise SynthesisError(f"ElevenLabs unreachable: {e}") from e

        duration_ms = int((time.monotonic() - start) * 1000)
        if not response.is_success:
            log_api_call(
                "elevenlabs", endpoint,
                success=False, status=response.status_code,
                duration_ms=duration_ms,
                error=_error_detail(response),
            )
            return b""

        log_api_call(
            "elevenlabs", endpoint,
            success=True, status=response.status_code,
            duration_ms=duration_ms,
            audio_bytes=len(response.content),
        )
        return response.content

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
