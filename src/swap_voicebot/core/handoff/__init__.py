"""Warm handoff policy and escalation delivery."""

from swap_voicebot.core.handoff.notifier import (
    HandoffNotifier,
    HandoffQueue,
    QueuedHandoff,
    get_handoff_notifier,
    get_handoff_queue,
)
from swap_voicebot.core.handoff.warm_handoff import (
    AGENT_REQUEST_INTENTS,
    WarmHandoffManager,
)

__all__ = [
    "AGENT_REQUEST_INTENTS",
    "HandoffNotifier",
    "HandoffQueue",
    "QueuedHandoff",
    "WarmHandoffManager",
    "get_handoff_notifier",
    "get_handoff_queue",
]
