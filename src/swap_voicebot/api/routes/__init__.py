"""API routes."""

from swap_voicebot.api.routes.handoff import router as handoff_router
from swap_voicebot.api.routes.voice import router as voice_router

__all__ = ["handoff_router", "voice_router"]
