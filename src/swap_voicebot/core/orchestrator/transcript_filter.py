"""
Transcript noise filtering and voice-to-language mapping.
"""

import re

PUNCTUATION_ONLY = re.compile(r"^[.,!?…\s]+$")
MIN_UNIQUE_WORD_RATIO = 0.3


def is_noise(transcript: str | None) -> bool:
    """
    True for transcripts that are not worth answering.

    Whisper hallucinates on silence: empty strings, lone punctuation and
    chains of one repeated word ("a a a a").
    """
    text = (transcript or "").strip()
    if len(text) < 2:
        return True
    if PUNCTUATION_ONLY.match(text):
        return True

    words = text.split()
    if len(words) >= 2 and len(set(words)) / len(words) < MIN_UNIQUE_WORD_RATIO:
        return True
    return False


def language_for_voice(voice: str | None) -> tuple[str | None, str | None]:
    """
    Map a TTS voice name to (stt_language_hint, reply_language_code).

    hi-IN voices hint Hindi; every other voice hints English.
    """
    if not voice:
        return None, None
    if voice.startswith("hi-"):
        return "hi", "hi"
    if voice.startswith("en-IN"):
        return "en", "en-IN"
    if voice.startswith("en-US"):
        return "en", "en-US"
    return "en", "en"
