"""Tests for reply rendering and transcript filtering."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from swap_voicebot.core.orchestrator import APOLOGY_RESPONSES, ResponseGenerator, is_noise, language_for_voice
from swap_voicebot.errors import ResponseGenerationError, UpstreamError
from swap_voicebot.models import IntentResponse
from swap_voicebot.services.groq.llm_service import FALLBACK_CHAT_REPLY


def llm_completing(text=None, error=None):
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=text, side_effect=error)
    return llm


class TestResponseGenerator:
    @pytest.mark.asyncio
    async def test_failure_gets_canned_apology(self):
        llm = llm_completing("unused")
        generator = ResponseGenerator(llm)

        reply = await generator.render("kitne swaps", "swap_count", IntentResponse.failed("API call failed"))

        assert reply in APOLOGY_RESPONSES
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_is_paraphrased(self):
        llm = llm_completing("Aapne ab tak 42 swaps kiye hain")
        generator = ResponseGenerator(llm)

        reply = await generator.render("kitne swaps", "swap_count", IntentResponse.ok({"swap_count": 42}))

        assert reply == "Aapne ab tak 42 swaps kiye hain"
        prompt = llm.complete.await_args.args[1]
        assert 'User asked: "kitne swaps"' in prompt
        assert "Intent: swap_count" in prompt
        assert '"swap_count": 42' in prompt

    @pytest.mark.asyncio
    async def test_empty_paraphrase_falls_back(self):
        generator = ResponseGenerator(llm_completing(""))

        reply = await generator.render("kitne swaps", "swap_count", IntentResponse.ok({"swap_count": 42}))

        assert reply == FALLBACK_CHAT_REPLY

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        generator = ResponseGenerator(llm_completing(error=UpstreamError("groq", "down", 503)))

        with pytest.raises(ResponseGenerationError):
            await generator.render("kitne swaps", "swap_count", IntentResponse.ok({"swap_count": 42}))


class TestTranscriptFilter:
    @pytest.mark.parametrize("transcript", ["", " ", "a", "...", " ?! ", "a a a a", None])
    def test_noise(self, transcript):
        assert is_noise(transcript)

    @pytest.mark.parametrize("transcript", ["haan", "haan haan", "mera swap count batao"])
    def test_speech(self, transcript):
        assert not is_noise(transcript)

    @pytest.mark.parametrize(
        "voice,expected",
        [
            (None, (None, None)),
            ("hi-IN-SwaraNeural", ("hi", "hi")),
            ("en-IN-NeerjaNeural", ("en", "en-IN")),
            ("en-US-AriaNeural", ("en", "en-US")),
            ("en-GB-RyanNeural", ("en", "en")),
        ],
    )
    def test_language_for_voice(self, voice, expected):
        assert language_for_voice(voice) == expected
