"""Turn orchestration."""

from swap_voicebot.core.orchestrator.response_generator import APOLOGY_RESPONSES, ResponseGenerator
from swap_voicebot.core.orchestrator.session_manager import (
    SessionManager,
    get_session_manager,
    set_session_manager,
)
from swap_voicebot.core.orchestrator.transcript_filter import is_noise, language_for_voice
from swap_voicebot.core.orchestrator.voice_agent import (
    DRIVER_ID_PROMPT,
    FINAL_APOLOGY,
    HANDLER_HANDOFF_PHRASE,
    HANDOFF_PHRASE,
    TRANSFER_PHRASE,
    TurnOutcome,
    VoiceAgent,
)

__all__ = [
    "APOLOGY_RESPONSES",
    "DRIVER_ID_PROMPT",
    "FINAL_APOLOGY",
    "HANDLER_HANDOFF_PHRASE",
    "HANDOFF_PHRASE",
    "TRANSFER_PHRASE",
    "ResponseGenerator",
    "SessionManager",
    "TurnOutcome",
    "VoiceAgent",
    "get_session_manager",
    "is_noise",
    "language_for_voice",
    "set_session_manager",
]
