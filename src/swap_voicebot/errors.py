"""
Exception hierarchy for the voicebot.
Upstream adapters raise these; the turn orchestrator decides how each degrades.
"""

import re


class VoicebotError(Exception):
    """Base class for all voicebot errors."""


class UpstreamError(VoicebotError):
    """A remote dependency (LLM, STT, TTS, domain API) failed or timed out."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class ClassificationFailure(UpstreamError):
    """Intent classification could not produce a usable result."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("intent_classifier", message, status_code)


class ResponseGenerationError(UpstreamError):
    """The paraphrasing model call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("response_generator", message, status_code)


class TranscriptionError(UpstreamError):
    """Speech-to-text failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("speech_to_text", message, status_code)


class SynthesisError(UpstreamError):
    """Text-to-speech transport failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__("text_to_speech", message, status_code)


class DomainAPIError(UpstreamError):
    """The driver-data API returned an error or could not be reached."""

    def __init__(self, endpoint: str, message: str, status_code: int | None = None) -> None:
        super().__init__("battery_smart", message, status_code)
        self.endpoint = endpoint


_AUTH_PATTERN = re.compile(r"invalid|unauthorized|api.key|authentication", re.IGNORECASE)
_QUOTA_PATTERN = re.compile(r"rate.limit|quota|limit.exceeded", re.IGNORECASE)


def message_for_upstream_error(service: str, status_code: int | None, detail: str = "") -> str:
    """Turn an upstream failure into an operator-readable message."""
    if status_code == 401 or _AUTH_PATTERN.search(detail):
        return f"{service} API key invalid or expired. Check the configured API key."
    if status_code == 429 or _QUOTA_PATTERN.search(detail):
        return f"{service} rate limit or quota exceeded. Try again later."
    return f"{service} error: {detail or 'Check your API key and quota.'}"
