"""
Handoff API routes for the agent dashboard.
Agents read escalations from the queue with the full conversation context.
"""

import structlog
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from swap_voicebot.core.handoff import HandoffQueue, QueuedHandoff
from swap_voicebot.core.orchestrator import get_session_manager

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/handoff", tags=["Handoff"])


class QueueStatsResponse(BaseModel):
    """Queue statistics."""

    total: int
    by_priority: dict[str, int]
    avg_wait_seconds: float


def _queue() -> HandoffQueue:
    return get_session_manager().handoff_queue


@router.get("/queue", response_model=list[QueuedHandoff])
async def get_queue(limit: int = Query(default=50, ge=1, le=500)):
    """Pending handoffs, most urgent first."""
    return _queue().pending(limit)


@router.get("/queue/stats", response_model=QueueStatsResponse)
async def get_queue_stats():
    """Queue size and priority breakdown."""
    return QueueStatsResponse(**_queue().get_stats())


@router.get("/queue/{handoff_id}", response_model=QueuedHandoff)
async def get_handoff(handoff_id: str):
    """One queued handoff with its summary."""
    entry = _queue().get_by_id(handoff_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Handoff not found")
    return entry


@router.post("/queue/next", response_model=QueuedHandoff)
async def take_next_handoff():
    """Assign the most urgent handoff to the calling agent."""
    entry = _queue().get_next()
    if entry is None:
        raise HTTPException(status_code=404, detail="Queue is empty")
    logger.info("handoff_assigned", handoff_id=entry.id, session_id=entry.session_id)
    return entry
