"""ElevenLabs text-to-speech service."""

from swap_voicebot.services.elevenlabs.synthesizer import (
    DEFAULT_VOICE,
    VOICE_MAP,
    ElevenLabsSynthesizer,
    voice_id_for,
)

__all__ = ["DEFAULT_VOICE", "VOICE_MAP", "ElevenLabsSynthesizer", "voice_id_for"]
