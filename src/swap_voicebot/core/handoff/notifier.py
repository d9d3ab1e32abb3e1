"""
Escalation delivery - Queues handoff summaries for the agent dashboard and
pushes them to configured webhooks.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import httpx
import structlog
from pydantic import BaseModel, Field

from swap_voicebot.config import get_settings
from swap_voicebot.models import HandoffSummary

logger = structlog.get_logger(__name__)


class QueuedHandoff(BaseModel):
    """A handoff waiting for an agent."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    session_id: str
    summary: HandoffSummary
    queue_position: int | None = None
    estimated_wait_seconds: int | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HandoffQueue:
    """
    In-memory agent queue, highest priority first then oldest first.

    Entries older than max_age_seconds are dropped. When the queue is full the
    oldest entry of the lowest priority present makes room for a new one.
    """

    WAIT_SECONDS_PER_ITEM = 30

    def __init__(self, max_size: int | None = None, max_age_seconds: float | None = None) -> None:
        settings = get_settings().voicebot
        self.max_size = max_size or settings.handoff_queue_limit
        self.max_age_seconds = max_age_seconds or settings.handoff_queue_max_age_seconds
        self._queue: list[QueuedHandoff] = []

    def add(self, session_id: str, summary: HandoffSummary) -> QueuedHandoff:
        """Enqueue a summary and return its queue entry."""
        self._prune()
        if len(self._queue) >= self.max_size:
            evicted = min(self._queue, key=lambda x: (x.summary.escalation_priority.rank, x.created_at))
            self._queue.remove(evicted)
            logger.warning("handoff_queue_full", evicted_id=evicted.id, session_id=evicted.session_id)

        entry = QueuedHandoff(session_id=session_id, summary=summary)
        self._queue.append(entry)
        self._reindex()

        logger.info(
            "handoff_queued",
            handoff_id=entry.id,
            session_id=session_id,
            priority=summary.escalation_priority.value,
            position=entry.queue_position,
        )
        return entry

    def _reindex(self) -> None:
        self._queue.sort(key=lambda x: (-x.summary.escalation_priority.rank, x.created_at))
        for i, item in enumerate(self._queue):
            item.queue_position = i + 1
            item.estimated_wait_seconds = item.queue_position * self.WAIT_SECONDS_PER_ITEM

    def _prune(self) -> None:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.max_age_seconds)
        stale = [e for e in self._queue if e.created_at < cutoff]
        if not stale:
            return
        self._queue = [e for e in self._queue if e.created_at >= cutoff]
        self._reindex()
        logger.info("handoff_queue_pruned", dropped=len(stale))

    def get_next(self) -> QueuedHandoff | None:
        """Pop the next handoff for an agent."""
        self._prune()
        if not self._queue:
            return None
        entry = self._queue.pop(0)
        self._reindex()
        return entry

    def get_by_id(self, handoff_id: str) -> QueuedHandoff | None:
        self._prune()
        return next((h for h in self._queue if h.id == handoff_id), None)

    def pending(self, limit: int = 50) -> list[QueuedHandoff]:
        self._prune()
        return self._queue[:limit]

    @property
    def size(self) -> int:
        self._prune()
        return len(self._queue)

    def get_stats(self) -> dict:
        """Get queue statistics."""
        self._prune()
        if not self._queue:
            return {
                "total": 0,
                "by_priority": {},
                "avg_wait_seconds": 0
            }

        by_priority: dict[str, int] = {}
        for entry in self._queue:
            priority = entry.summary.escalation_priority.value
            by_priority[priority] = by_priority.get(priority, 0) + 1

        return {
            "total": len(self._queue),
            "by_priority": by_priority,
            "avg_wait_seconds": sum(e.estimated_wait_seconds or 0 for e in self._queue) / len(self._queue)
        }


class HandoffNotifier:
    """
    Sends escalations to webhooks and dashboard listeners.
    Used as the orchestrator's fire-and-forget escalation sink.
    """

    def __init__(
        self,
        webhooks: list[str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = get_settings()
        self._webhooks = list(webhooks) if webhooks is not None else self.settings.voicebot.webhook_urls
        self._client = client
        self._listeners: list[Callable[[HandoffSummary], Awaitable[None]]] = []

    async def send_escalation(self, summary: HandoffSummary) -> None:
        """Deliver one escalation to every webhook and listener."""
        logger.info(
            "escalation_sent",
            reason=summary.handoff_reason.value,
            priority=summary.escalation_priority.value,
            webhooks=len(self._webhooks),
        )
        await asyncio.gather(self._send_webhooks(summary), self._notify_listeners(summary))

    async def _send_webhooks(self, summary: HandoffSummary) -> None:
        if not self._webhooks:
            return

        payload = {"event": "handoff_escalation", **summary.model_dump(mode="json")}
        client = self._client or httpx.AsyncClient(timeout=self.settings.voicebot.escalation_timeout_seconds)
        try:
            for webhook in self._webhooks:
                try:
                    response = await client.post(webhook, json=payload)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.warning("webhook_failed", url=webhook, error=str(e))
        finally:
            if client is not self._client:
                await client.aclose()

    async def _notify_listeners(self, summary: HandoffSummary) -> None:
        for listener in self._listeners:
            try:
                await listener(summary)
            except Exception as e:
                logger.warning("escalation_listener_failed", error=str(e))

    def register_listener(self, listener: Callable[[HandoffSummary], Awaitable[None]]) -> None:
        """Register a dashboard listener."""
        self._listeners.append(listener)

    def add_webhook(self, url: str) -> None:
        self._webhooks.append(url)


# Singleton instances
_handoff_queue: HandoffQueue | None = None
_handoff_notifier: HandoffNotifier | None = None


def get_handoff_queue() -> HandoffQueue:
    """Get handoff queue singleton."""
    global _handoff_queue
    if _handoff_queue is None:
        _handoff_queue = HandoffQueue()
    return _handoff_queue


def get_handoff_notifier() -> HandoffNotifier:
    """Get handoff notifier singleton."""
    global _handoff_notifier
    if _handoff_notifier is None:
        _handoff_notifier = HandoffNotifier()
    return _handoff_notifier
