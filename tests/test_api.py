"""HTTP and WebSocket tests for the FastAPI app."""

import base64

import pytest
from fastapi.testclient import TestClient

from swap_voicebot.api.app import app
from swap_voicebot.core.orchestrator import HANDOFF_PHRASE, get_session_manager, set_session_manager

GREETING = {
    "intent": "greeting",
    "confidence": 0.9,
    "entities": {},
    "sentiment": "positive",
    "score": 0.4,
    "emotion": "happy",
}


def _serve(manager):
    set_session_manager(manager)
    with TestClient(app) as test_client:
        yield test_client
    set_session_manager(None)


@pytest.fixture
def client(build_manager):
    """App around a session manager whose driver makes small talk."""
    yield from _serve(build_manager(GREETING))


@pytest.fixture
def handoff_client(build_manager):
    """App around a session manager whose driver asks for an agent."""
    yield from _serve(build_manager())


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness_reports_checks(self, client):
        body = client.get("/health/ready").json()

        assert body["status"] in ("ready", "not_ready")
        assert set(body["checks"]) == {"groq_configured", "elevenlabs_configured", "intent_handlers"}

    def test_metrics(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "voicebot_requests_total" in response.text


class TestVoiceSessions:
    def test_text_turn(self, client):
        session_id = client.post("/api/v1/voice/sessions").json()["session_id"]

        response = client.post(f"/api/v1/voice/sessions/{session_id}/message", json={"text": "namaste"})

        assert response.status_code == 200
        body = response.json()
        assert body["response_text"] == "Haan ji, boliye"
        assert body["outcome"] == "small_talk"
        assert body["handoff"] is None
        assert body["response_audio_base64"] is None

    def test_text_turn_with_audio(self, client):
        session_id = client.post("/api/v1/voice/sessions").json()["session_id"]

        body = client.post(
            f"/api/v1/voice/sessions/{session_id}/message",
            json={"text": "namaste", "include_audio": True, "voice": "hi-IN-SwaraNeural"},
        ).json()

        assert base64.b64decode(body["response_audio_base64"]) == b"ID3audio"

    def test_session_status_and_end(self, client):
        session_id = client.post("/api/v1/voice/sessions").json()["session_id"]
        client.post(f"/api/v1/voice/sessions/{session_id}/message", json={"text": "namaste"})

        status = client.get(f"/api/v1/voice/sessions/{session_id}").json()

        assert status["session_id"] == session_id
        assert status["total_messages"] == 2
        assert [r["role"] for r in status["history"]] == ["user", "bot"]

        assert client.delete(f"/api/v1/voice/sessions/{session_id}").json()["status"] == "ended"
        assert client.get(f"/api/v1/voice/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        response = client.post("/api/v1/voice/sessions/missing/message", json={"text": "namaste"})

        assert response.status_code == 404

    def test_empty_text_rejected(self, client):
        session_id = client.post("/api/v1/voice/sessions").json()["session_id"]

        response = client.post(f"/api/v1/voice/sessions/{session_id}/message", json={"text": ""})

        assert response.status_code == 422


class TestHandoffQueueRoutes:
    def test_handoff_reaches_queue(self, handoff_client):
        client = handoff_client
        session_id = client.post("/api/v1/voice/sessions").json()["session_id"]

        body = client.post(
            f"/api/v1/voice/sessions/{session_id}/message",
            json={"text": "mujhe agent se baat karni hai"},
        ).json()

        assert body["response_text"] == HANDOFF_PHRASE
        assert body["outcome"] == "handoff"
        assert body["handoff"]["handoff_reason"] == "user_requested"

        queue = client.get("/api/v1/handoff/queue").json()
        assert len(queue) == 1
        assert queue[0]["session_id"] == session_id
        assert queue[0]["queue_position"] == 1

        handoff_id = queue[0]["id"]
        assert client.get(f"/api/v1/handoff/queue/{handoff_id}").json()["id"] == handoff_id

        stats = client.get("/api/v1/handoff/queue/stats").json()
        assert stats["total"] == 1
        assert stats["by_priority"] == {"low": 1}

    def test_take_next(self, handoff_client):
        client = handoff_client
        session_id = client.post("/api/v1/voice/sessions").json()["session_id"]
        client.post(f"/api/v1/voice/sessions/{session_id}/message", json={"text": "agent chahiye"})

        taken = client.post("/api/v1/handoff/queue/next")

        assert taken.status_code == 200
        assert taken.json()["session_id"] == session_id
        assert client.post("/api/v1/handoff/queue/next").status_code == 404
        assert client.get("/api/v1/handoff/queue").json() == []

    def test_unknown_handoff(self, handoff_client):
        client = handoff_client
        assert client.get("/api/v1/handoff/queue/nope").status_code == 404


class TestVoiceStream:
    def test_tts_and_controls(self, client):
        with client.websocket_connect("/api/v1/voice/stream") as websocket:
            websocket.send_json({"type": "tts", "text": "Namaste"})
            audio = websocket.receive_json()
            assert audio["type"] == "audio"
            assert base64.b64decode(audio["audio"]) == b"ID3audio"

            websocket.send_json({"type": "audio", "audio": ""})
            assert websocket.receive_json() == {"type": "no_response"}

            websocket.send_text("not json")
            assert websocket.receive_json() == {"type": "error", "message": "Invalid JSON"}

            websocket.send_text("[1]")
            assert websocket.receive_json() == {"type": "error", "message": "Message must be a JSON object"}

            websocket.send_json({"type": "dance"})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"type": "reset"})
            websocket.send_json({"type": "tts", "text": "Phir milte hain"})
            assert websocket.receive_json()["type"] == "audio"

    def test_audio_turn(self, client):
        get_session_manager().transcriber.transcribe.return_value = "namaste ji"
        audio = base64.b64encode(b"\x1a\x45\xdf\xa3" * 256).decode()

        with client.websocket_connect("/api/v1/voice/stream") as websocket:
            websocket.send_json({"type": "audio", "audio": audio, "voice": "hi-IN-SwaraNeural"})
            reply = websocket.receive_json()

        assert reply["type"] == "response"
        assert reply["text"] == "Haan ji, boliye"
        assert base64.b64decode(reply["audio"]) == b"ID3audio"
