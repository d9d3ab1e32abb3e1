"""Tests for the Groq and ElevenLabs adapters."""

import json

import httpx
import pytest

from swap_voicebot.errors import SynthesisError, TranscriptionError, UpstreamError, message_for_upstream_error
from swap_voicebot.services.elevenlabs import ElevenLabsSynthesizer
from swap_voicebot.services.elevenlabs.synthesizer import VOICE_MAP, voice_id_for
from swap_voicebot.services.groq import GroqLLMService, GroqTranscriber
from swap_voicebot.services.groq.llm_service import FALLBACK_CHAT_REPLY


def mock_client(handler, base_url: str = "https://api.test") -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestGroqLLMService:
    @pytest.mark.asyncio
    async def test_classify_text_uses_json_mode(self):
        sent = {}

        def handler(request: httpx.Request) -> httpx.Response:
            sent.update(json.loads(request.content))
            return httpx.Response(200, json=completion('{"intent": "swap_count", "confidence": 0.9}'))

        llm = GroqLLMService(api_key="test", client=mock_client(handler))

        result = await llm.classify_text("system", "Driver message: \"kitne swaps\"")

        assert result == {"intent": "swap_count", "confidence": 0.9}
        assert sent["response_format"] == {"type": "json_object"}
        assert sent["temperature"] == 0.1
        assert sent["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_classify_text_extracts_embedded_json(self):
        llm = GroqLLMService(
            api_key="test",
            client=mock_client(lambda r: httpx.Response(200, json=completion('Sure! {"intent": "greeting"} done'))),
        )

        assert await llm.classify_text("system", "namaste") == {"intent": "greeting"}

    @pytest.mark.asyncio
    async def test_classify_text_without_json(self):
        llm = GroqLLMService(
            api_key="test",
            client=mock_client(lambda r: httpx.Response(200, json=completion("no idea"))),
        )

        with pytest.raises(UpstreamError):
            await llm.classify_text("system", "namaste")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        llm = GroqLLMService(
            api_key="test",
            client=mock_client(lambda r: httpx.Response(200, text="<html>gateway</html>")),
        )

        with pytest.raises(UpstreamError) as exc_info:
            await llm.complete("system", "prompt")

        assert exc_info.value.service == "groq"
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_rate_limit_message(self):
        llm = GroqLLMService(
            api_key="test",
            client=mock_client(lambda r: httpx.Response(429, json={"error": "slow down"})),
        )

        with pytest.raises(UpstreamError) as exc_info:
            await llm.complete("system", "prompt")

        assert exc_info.value.status_code == 429
        assert "rate limit" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_chat_reply_fallback_on_empty(self):
        sent = {}

        def handler(request: httpx.Request) -> httpx.Response:
            sent.update(json.loads(request.content))
            return httpx.Response(200, json=completion("   "))

        llm = GroqLLMService(api_key="test", client=mock_client(handler))

        reply = await llm.chat_reply([{"role": "user", "content": "namaste"}])

        assert reply == FALLBACK_CHAT_REPLY
        assert sent["messages"][0]["role"] == "system"
        assert sent["messages"][-1] == {"role": "user", "content": "namaste"}


class TestGroqTranscriber:
    @pytest.mark.asyncio
    async def test_transcribe_with_hindi_hint(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"text": "  mera swap count batao "})

        transcriber = GroqTranscriber(api_key="test", client=mock_client(handler))

        text = await transcriber.transcribe(b"\x1a\x45" * 200, language="hi")

        assert text == "mera swap count batao"
        assert captured[0].url.path == "/audio/transcriptions"
        body = captured[0].read()
        assert b'name="language"' in body
        assert b'name="prompt"' in body

    @pytest.mark.asyncio
    async def test_transcribe_failure(self):
        transcriber = GroqTranscriber(
            api_key="test",
            client=mock_client(lambda r: httpx.Response(401, json={"error": "Invalid API Key"})),
        )

        with pytest.raises(TranscriptionError) as exc_info:
            await transcriber.transcribe(b"\x00" * 512)

        assert "API key" in str(exc_info.value)


class TestElevenLabsSynthesizer:
    def test_voice_mapping(self):
        assert voice_id_for("hi-IN-MadhurNeural") == VOICE_MAP["hi-IN-MadhurNeural"]
        assert voice_id_for("unknown-voice") == VOICE_MAP["en-IN-NeerjaNeural"]
        assert voice_id_for(None) == VOICE_MAP["en-IN-NeerjaNeural"]

    @pytest.mark.asyncio
    async def test_synthesize(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=b"ID3audio")

        synthesizer = ElevenLabsSynthesizer(api_key="test", client=mock_client(handler))

        audio = await synthesizer.synthesize("Namaste", "en-US-GuyNeural")

        assert audio == b"ID3audio"
        assert captured[0].url.path == f"/text-to-speech/{VOICE_MAP['en-US-GuyNeural']}"
        assert json.loads(captured[0].content)["text"] == "Namaste"

    @pytest.mark.asyncio
    async def test_rejected_request_returns_no_audio(self):
        synthesizer = ElevenLabsSynthesizer(
            api_key="test",
            client=mock_client(lambda r: httpx.Response(429, json={"detail": {"message": "quota"}})),
        )

        assert await synthesizer.synthesize("Namaste") == b""

    @pytest.mark.asyncio
    async def test_unreachable_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        synthesizer = ElevenLabsSynthesizer(api_key="test", client=mock_client(handler))

        with pytest.raises(SynthesisError):
            await synthesizer.synthesize("Namaste")


class TestUpstreamErrorMessages:
    def test_auth(self):
        assert "API key invalid" in message_for_upstream_error("Groq", 401, "")

    def test_quota_from_detail(self):
        assert "quota" in message_for_upstream_error("Groq", 400, "Quota exceeded for model")

    def test_generic(self):
        assert message_for_upstream_error("Groq", 500, "overloaded") == "Groq error: overloaded"
