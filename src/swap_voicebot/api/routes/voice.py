"""
Voice API routes for real-time audio conversation.
One WebSocket connection is one driver session.
"""

import base64
import json

import structlog
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from swap_voicebot.api.metrics import TURN_COUNT
from swap_voicebot.config import get_settings
from swap_voicebot.core.orchestrator import TurnOutcome, VoiceAgent, get_session_manager
from swap_voicebot.errors import SynthesisError, VoicebotError

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/voice", tags=["Voice"])


# Request/Response Models
class StartSessionResponse(BaseModel):
    """New session details."""

    session_id: str


class TextInputRequest(BaseModel):
    """Text turn (testing and chat fallback)."""

    text: str = Field(..., min_length=1)
    voice: str | None = Field(default=None, description="Voice for the spoken reply")
    include_audio: bool = Field(default=False, description="Synthesize the reply")


class ConversationResponse(BaseModel):
    """Result of one conversation turn."""

    session_id: str
    response_text: str | None
    response_audio_base64: str | None = None
    outcome: str | None
    handoff: dict | None = None


# WebSocket message types
class WSMessageType:
    """WebSocket message types."""

    RESET = "reset"
    AUDIO = "audio"
    TTS = "tts"
    RESPONSE = "response"
    NO_RESPONSE = "no_response"
    ERROR = "error"


def _record_turn(agent: VoiceAgent) -> None:
    if agent.last_outcome is not None:
        TURN_COUNT.labels(outcome=agent.last_outcome.value).inc()


async def _speak(agent: VoiceAgent, text: str, voice: str | None) -> str | None:
    """Synthesize and base64-encode; None when there is no audio."""
    try:
        audio = await agent.generate_speech(text, voice)
    except SynthesisError as e:
        logger.warning("speech_synthesis_failed", session_id=agent.session_id, error=str(e))
        return None
    return base64.b64encode(audio).decode() if audio else None


def _get_agent(session_id: str) -> VoiceAgent:
    agent = get_session_manager().get_agent(session_id)
    if agent is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return agent


@router.post("/sessions", response_model=StartSessionResponse)
async def start_session():
    """Start a new driver session."""
    agent = get_session_manager().create_agent()
    return StartSessionResponse(session_id=agent.session_id)


@router.post("/sessions/{session_id}/message", response_model=ConversationResponse)
async def send_message(session_id: str, request: TextInputRequest):
    """Run one text turn through the full pipeline."""
    agent = _get_agent(session_id)
    reply = await agent.process_transcript(request.text)
    _record_turn(agent)

    audio = None
    if reply and request.include_audio:
        audio = await _speak(agent, reply, request.voice)

    handoff = None
    if agent.last_outcome == TurnOutcome.HANDOFF and agent.last_handoff is not None:
        handoff = agent.last_handoff.model_dump(mode="json")

    return ConversationResponse(
        session_id=session_id,
        response_text=reply,
        response_audio_base64=audio,
        outcome=agent.last_outcome.value if agent.last_outcome else None,
        handoff=handoff,
    )


@router.get("/sessions/{session_id}")
async def get_session_status(session_id: str):
    """Get current session statistics."""
    agent = _get_agent(session_id)
    return {
        **agent.get_stats(),
        "history": [r.model_dump(mode="json") for r in agent.handoff_manager.conversation_history],
    }


@router.delete("/sessions/{session_id}")
async def end_session(session_id: str):
    """End a session and forget the driver."""
    if not get_session_manager().end_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"session_id": session_id, "status": "ended"}


@router.websocket("/stream")
async def voice_stream(websocket: WebSocket):
    """
    WebSocket endpoint for voice conversation.

    Client messages:
        {"type": "audio", "audio": "<base64>", "voice": "<voice name>"}
        {"type": "tts", "text": "...", "voice": "<voice name>"}
        {"type": "reset"}

    Server messages:
        {"type": "response", "text": "...", "audio": "<base64 mp3, optional>"}
        {"type": "no_response"}
        {"type": "audio", "audio": "<base64 mp3>"}
        {"type": "error", "message": "..."}
    """
    await websocket.accept()
    manager = get_session_manager()
    agent = manager.create_agent()
    default_voice = get_settings().voicebot.default_voice
    logger.info("websocket_connected", session_id=agent.session_id)

    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                message = json.loads(raw_data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": WSMessageType.ERROR, "message": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": WSMessageType.ERROR, "message": "Message must be a JSON object"})
                continue

            msg_type = message.get("type")
            voice = message.get("voice") or default_voice

            try:
                if msg_type == WSMessageType.RESET:
                    agent.reset()

                elif msg_type == WSMessageType.AUDIO:
                    reply = await agent.process_audio(message.get("audio") or "", voice)
                    _record_turn(agent)
                    if not reply or not reply.strip():
                        await websocket.send_json({"type": WSMessageType.NO_RESPONSE})
                        continue

                    payload = {"type": WSMessageType.RESPONSE, "text": reply}
                    audio = await _speak(agent, reply, voice)
                    if audio:
                        payload["audio"] = audio
                    await websocket.send_json(payload)

                elif msg_type == WSMessageType.TTS:
                    audio = await _speak(agent, message.get("text") or "", voice)
                    await websocket.send_json({"type": WSMessageType.AUDIO, "audio": audio or ""})

                else:
                    await websocket.send_json({
                        "type": WSMessageType.ERROR,
                        "message": f"Unknown message type: {msg_type}",
                    })

            except VoicebotError as e:
                logger.error("websocket_turn_failed", session_id=agent.session_id, error=str(e))
                await websocket.send_json({"type": WSMessageType.ERROR, "message": str(e)})

    except WebSocketDisconnect:
        logger.info("websocket_client_disconnected", session_id=agent.session_id)
    finally:
        manager.end_session(agent.session_id)
