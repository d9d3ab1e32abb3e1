"""
Voice Agent - Orchestrates one driver session turn by turn.

Per turn:
1. Decode audio and transcribe
2. Drop silence and noise
3. Sentiment + intent (concurrently)
4. Handoff pre-check
5. Dispatch to the intent handler
6. Recover a missing driver ID, fall back to small talk, or escalate
7. Render the reply and track the turn
"""

import asyncio
import base64
import binascii
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.core.handoff import WarmHandoffManager
from swap_voicebot.core.intents import IntentHandlerRegistry
from swap_voicebot.core.memory import DriverMemory, extract_driver_id
from swap_voicebot.core.nlu import IntentClassifier, SentimentAnalyzer
from swap_voicebot.core.orchestrator.response_generator import ResponseGenerator
from swap_voicebot.core.orchestrator.transcript_filter import is_noise, language_for_voice
from swap_voicebot.models import (
    DriverDetails,
    HandoffReason,
    HandoffSummary,
    Intent,
    IntentOutcome,
    IntentResponse,
    SentimentResult,
)
from swap_voicebot.services.elevenlabs import ElevenLabsSynthesizer
from swap_voicebot.services.groq import GroqLLMService, GroqTranscriber

logger = structlog.get_logger(__name__)

HandoffCallback = Callable[[HandoffSummary], None]
EscalationSink = Callable[[HandoffSummary], Awaitable[None]]

# Spoken phrases
HANDOFF_PHRASE = "Main aapko humare customer care executive se connect kar raha hoon. Please thoda wait karein."
HANDLER_HANDOFF_PHRASE = "Bilkul, main aapki baat ek agent se karwa raha hoon. Ek moment please."
TRANSFER_PHRASE = "Maaf kijiye, main aapko humare support agent ke paas transfer kar raha hoon."
DRIVER_ID_PROMPT = "Apna driver ID bataiye, jaise D0015, taaki main aapki details check kar sakoon."
FINAL_APOLOGY = "Maaf kijiye, abhi thodi dikkat aa rahi hai. Kripya thodi der baad phir se try karein."

SMALL_TALK_OUTCOMES = frozenset({
    IntentOutcome.USE_REGULAR_LLM,
    IntentOutcome.NO_HANDLER,
    IntentOutcome.LOW_CONFIDENCE,
})


class TurnOutcome(str, Enum):
    """How a turn ended."""

    IGNORED = "ignored"
    ANSWERED = "answered"
    SMALL_TALK = "small_talk"
    CLARIFICATION = "clarification"
    HANDOFF = "handoff"
    FALLBACK = "fallback"


class VoiceAgent:
    """
    Turn orchestrator for one session.

    Shared collaborators (registry, classifier, driver memory) are injected;
    the handoff manager and small-talk history belong to this session only.
    Turns of one session are serialized with a lock.
    """

    def __init__(
        self,
        session_id: str,
        *,
        llm: GroqLLMService,
        classifier: IntentClassifier,
        sentiment_analyzer: SentimentAnalyzer,
        registry: IntentHandlerRegistry,
        response_generator: ResponseGenerator,
        driver_memory: DriverMemory,
        transcriber: GroqTranscriber | None = None,
        synthesizer: ElevenLabsSynthesizer | None = None,
        handoff_manager: WarmHandoffManager | None = None,
        escalation_sink: EscalationSink | None = None,
    ) -> None:
        self.settings = get_settings()
        self.session_id = session_id
        self.llm = llm
        self.classifier = classifier
        self.sentiment_analyzer = sentiment_analyzer
        self.registry = registry
        self.response_generator = response_generator
        self.driver_memory = driver_memory
        self.transcriber = transcriber
        self.synthesizer = synthesizer
        self.handoff_manager = handoff_manager or WarmHandoffManager()
        self.escalation_sink = escalation_sink

        self._handoff_callback: HandoffCallback | None = None
        self._chat_history: list[dict[str, str]] = []
        self._lock = asyncio.Lock()
        self._background_tasks: set[asyncio.Task] = set()

        self.last_outcome: TurnOutcome | None = None
        self.last_handoff: HandoffSummary | None = None

    def on_handoff(self, callback: HandoffCallback) -> None:
        """Register the callback invoked with every handoff summary."""
        self._handoff_callback = callback

    # Entry points

    async def process_audio(self, audio: bytes | str, voice: str | None = None) -> str | None:
        """
        Handle one recorded utterance.

        Args:
            audio: Raw bytes or base64 text (a data: URL prefix is allowed)
            voice: TTS voice name, used to derive the transcription language

        Returns:
            Reply text, or None when there was nothing worth answering

        Raises:
            TranscriptionError: speech-to-text failed
        """
        audio_bytes = self._decode_audio(audio)
        if audio_bytes is None:
            self.last_outcome = TurnOutcome.IGNORED
            return None

        async with self._lock:
            language, language_code = language_for_voice(voice)
            if self.transcriber is None:
                raise RuntimeError("VoiceAgent has no transcriber configured")
            transcript = await self.transcriber.transcribe(audio_bytes, language)

            if is_noise(transcript):
                logger.info("transcript_ignored", session_id=self.session_id, transcript=transcript)
                self.last_outcome = TurnOutcome.IGNORED
                return None

            return await self._run_turn(transcript.strip(), language_code)

    async def process_transcript(self, transcript: str, language_code: str | None = None) -> str | None:
        """Handle one already-transcribed utterance."""
        if is_noise(transcript):
            self.last_outcome = TurnOutcome.IGNORED
            return None
        async with self._lock:
            return await self._run_turn(transcript.strip(), language_code)

    async def generate_speech(self, text: str, voice: str | None = None) -> bytes:
        """Synthesize a reply; empty bytes means no audio."""
        if self.synthesizer is None:
            return b""
        return await self.synthesizer.synthesize(text, voice or self.settings.voicebot.default_voice)

    # Turn pipeline

    async def _run_turn(self, transcript: str, language_code: str | None) -> str:
        logger.info("turn_started", session_id=self.session_id, language=language_code)
        self.driver_memory.update_last_query(self.session_id, transcript)

        intent: Intent | None = None
        sentiment: SentimentResult | None = None
        try:
            sentiment, classified = await asyncio.gather(
                self.sentiment_analyzer.analyze(transcript),
                self.classifier.classify(transcript),
                return_exceptions=True,
            )
            if isinstance(sentiment, BaseException):
                logger.warning("sentiment_unavailable", error=str(sentiment))
                sentiment = SentimentResult.unknown()
            if isinstance(classified, BaseException):
                raise classified
            intent = classified

            reply = await self._decide(transcript, intent, sentiment)
        except Exception as e:
            logger.error("turn_failed", session_id=self.session_id, error=str(e), exc_info=True)
            self.last_outcome = TurnOutcome.FALLBACK
            reply = await self._fallback_reply(transcript)

        self.handoff_manager.track_conversation(transcript, reply, intent, sentiment)
        logger.info(
            "turn_completed",
            session_id=self.session_id,
            outcome=self.last_outcome.value if self.last_outcome else None,
            intent=intent.name if intent else None,
        )
        return reply

    async def _decide(self, transcript: str, intent: Intent, sentiment: SentimentResult) -> str:
        reason = self.handoff_manager.handoff_reason(intent, sentiment)
        if reason is None and self.sentiment_analyzer.requires_escalation(sentiment):
            reason = HandoffReason.NEGATIVE_SENTIMENT
        if reason is not None:
            return self._hand_off(reason, HANDOFF_PHRASE)

        intent = self._attach_driver_id(intent)
        response = await self.registry.dispatch(intent)

        if response.handoff_required:
            return self._hand_off(self._handler_reason(response), HANDLER_HANDOFF_PHRASE)

        if response.outcome == IntentOutcome.NEED_DRIVER_ID:
            return await self._recover_driver_id(transcript, intent)

        if response.outcome in SMALL_TALK_OUTCOMES:
            self.last_outcome = TurnOutcome.SMALL_TALK
            return await self._general_reply(transcript)

        if response.outcome == IntentOutcome.FAILED:
            self.handoff_manager.track_api_call(intent.name, False)
            if self.handoff_manager.should_handoff(intent, sentiment):
                reason = self.handoff_manager.handoff_reason(intent, sentiment) or HandoffReason.FAILED_ATTEMPTS
                return self._hand_off(reason, TRANSFER_PHRASE, escalate=True)
            self.last_outcome = TurnOutcome.SMALL_TALK
            return await self._general_reply(transcript)

        return await self._render_success(transcript, intent, response)

    async def _render_success(self, transcript: str, intent: Intent, response: IntentResponse) -> str:
        self.handoff_manager.track_api_call(intent.name, True)
        self.last_outcome = TurnOutcome.ANSWERED
        return await self.response_generator.render(transcript, intent.name, response)

    async def _recover_driver_id(self, transcript: str, intent: Intent) -> str:
        """Pull a driver ID out of the utterance and retry the handler once."""
        raw = extract_driver_id(transcript)
        if raw is None:
            logger.info("driver_id_requested", session_id=self.session_id, intent=intent.name)
            self.last_outcome = TurnOutcome.CLARIFICATION
            return DRIVER_ID_PROMPT

        driver_id = self._remember_driver_id(raw)
        retry = intent.model_copy(update={"entities": {**intent.entities, "driver_id": driver_id}})
        response = await self.registry.dispatch(retry)
        logger.info(
            "driver_id_retry",
            session_id=self.session_id,
            intent=intent.name,
            success=response.success,
        )

        if response.handoff_required:
            return self._hand_off(self._handler_reason(response), HANDLER_HANDOFF_PHRASE)
        if response.success:
            return await self._render_success(transcript, retry, response)
        if response.outcome == IntentOutcome.FAILED:
            self.handoff_manager.track_api_call(intent.name, False)

        self.last_outcome = TurnOutcome.CLARIFICATION
        return DRIVER_ID_PROMPT

    def _attach_driver_id(self, intent: Intent) -> Intent:
        """Normalize a spoken driver ID or fill in the remembered one."""
        entities = dict(intent.entities)
        raw = entities.get("driver_id")
        if raw:
            entities["driver_id"] = self._remember_driver_id(str(raw))
        else:
            stored = self.driver_memory.get_driver_id(self.session_id)
            if stored:
                entities["driver_id"] = stored
        return intent.model_copy(update={"entities": entities})

    def _remember_driver_id(self, raw: str) -> str:
        driver_id = self.driver_memory.set_driver_id(self.session_id, raw)
        self.handoff_manager.set_driver_id(driver_id)
        return driver_id

    @staticmethod
    def _handler_reason(response: IntentResponse) -> HandoffReason:
        try:
            return HandoffReason(response.data.get("reason", HandoffReason.USER_REQUESTED.value))
        except ValueError:
            return HandoffReason.USER_REQUESTED

    # Handoff

    def _hand_off(self, reason: HandoffReason, phrase: str, escalate: bool = False) -> str:
        summary = self.handoff_manager.generate_handoff_summary(
            reason,
            DriverDetails(driver_id=self.driver_memory.get_driver_id(self.session_id)),
        )
        self.last_handoff = summary
        self.last_outcome = TurnOutcome.HANDOFF
        logger.info(
            "handoff_triggered",
            session_id=self.session_id,
            reason=reason.value,
            priority=summary.escalation_priority.value,
        )

        if self._handoff_callback is not None:
            try:
                self._handoff_callback(summary)
            except Exception as e:
                logger.warning("handoff_callback_failed", session_id=self.session_id, error=str(e))

        if escalate:
            self._schedule_escalation(summary)
        return phrase

    def _schedule_escalation(self, summary: HandoffSummary) -> None:
        """Send the escalation in the background; the reply never waits on it."""
        if self.escalation_sink is None:
            return
        task = asyncio.create_task(self._send_escalation(summary))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _send_escalation(self, summary: HandoffSummary) -> None:
        timeout = self.settings.voicebot.escalation_timeout_seconds
        try:
            await asyncio.wait_for(self.escalation_sink(summary), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("escalation_timeout", session_id=self.session_id, timeout=timeout)
        except Exception as e:
            logger.warning("escalation_failed", session_id=self.session_id, error=str(e))

    # Small talk

    async def _general_reply(self, transcript: str) -> str:
        """Generic chat-model reply with this session's recent history."""
        keep = self.settings.voicebot.chat_history_messages
        messages = [*self._chat_history, {"role": "user", "content": transcript}]
        reply = await self.llm.chat_reply(messages[-keep:] if keep else messages[-1:])

        self._chat_history.extend([
            {"role": "user", "content": transcript},
            {"role": "assistant", "content": reply},
        ])
        self._chat_history = self._chat_history[-max(keep, 2):]
        return reply

    async def _fallback_reply(self, transcript: str) -> str:
        try:
            return await self._general_reply(transcript)
        except Exception as e:
            logger.error("fallback_reply_failed", session_id=self.session_id, error=str(e))
            return FINAL_APOLOGY

    # Session

    def _decode_audio(self, audio: bytes | str | None) -> bytes | None:
        if not audio:
            return None
        if isinstance(audio, str):
            payload = audio.split(",", 1)[1] if audio.startswith("data:") else audio
            try:
                data = base64.b64decode(payload.strip(), validate=True)
            except (binascii.Error, ValueError):
                logger.warning("audio_decode_failed", session_id=self.session_id)
                return None
        else:
            data = bytes(audio)

        if len(data) < self.settings.voicebot.min_audio_bytes:
            logger.info("audio_too_short", session_id=self.session_id, size=len(data))
            return None
        return data

    def reset(self) -> None:
        """Forget everything about this session."""
        self.handoff_manager.reset()
        self._chat_history.clear()
        self.driver_memory.clear_session(self.session_id)
        self.last_outcome = None
        self.last_handoff = None
        logger.info("voice_agent_reset", session_id=self.session_id)

    def get_stats(self) -> dict[str, Any]:
        """Conversation statistics for this session."""
        session = self.driver_memory.get_session(self.session_id)
        return {
            "session_id": self.session_id,
            "driver_id": session.driver_id if session else None,
            "queries_asked": session.queries_asked if session else 0,
            **self.handoff_manager.get_stats(),
        }
