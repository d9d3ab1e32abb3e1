"""
Intent Handler Registry - Maps intent names to async handlers and runs them
behind a confidence floor, a deadline and a failure boundary.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from swap_voicebot.config import get_settings
from swap_voicebot.models import Intent, IntentOutcome, IntentResponse

logger = structlog.get_logger(__name__)

IntentHandlerFn = Callable[[dict[str, Any]], Awaitable[IntentResponse]]


class IntentHandlerRegistry:
    """
    Dispatches classified intents to registered handlers.

    Built once at startup and injected into every voice agent. dispatch()
    never raises: every problem becomes a failed IntentResponse.
    """

    def __init__(
        self,
        confidence_floor: float | None = None,
        handler_timeout_seconds: float | None = None,
    ) -> None:
        settings = get_settings().voicebot
        self.confidence_floor = (
            confidence_floor if confidence_floor is not None else settings.intent_confidence_floor
        )
        self.handler_timeout_seconds = handler_timeout_seconds or settings.handler_timeout_seconds
        self._handlers: dict[str, IntentHandlerFn] = {}

    def register(self, name: str, handler: IntentHandlerFn) -> None:
        """Register a handler; a later registration for the same name replaces it."""
        if name in self._handlers:
            logger.info("intent_handler_replaced", intent=name)
        self._handlers[name] = handler

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    @property
    def registered_intents(self) -> list[str]:
        return sorted(self._handlers)

    async def dispatch(self, intent: Intent) -> IntentResponse:
        """Run the handler for an intent."""
        if intent.confidence < self.confidence_floor:
            logger.info("intent_below_confidence_floor", intent=intent.name, confidence=intent.confidence)
            return IntentResponse(
                success=False,
                error=f"Low confidence for intent: {intent.name}",
                outcome=IntentOutcome.LOW_CONFIDENCE,
            )

        handler = self._handlers.get(intent.name)
        if handler is None:
            logger.info("intent_handler_missing", intent=intent.name)
            return IntentResponse(
                success=False,
                error=f"No handler available for intent: {intent.name}",
                outcome=IntentOutcome.NO_HANDLER,
            )

        try:
            response = await asyncio.wait_for(
                handler(dict(intent.entities)),
                timeout=self.handler_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("intent_handler_timeout", intent=intent.name, timeout=self.handler_timeout_seconds)
            return IntentResponse.failed(f"Handler timed out after {self.handler_timeout_seconds}s")
        except Exception as e:
            logger.error("intent_handler_error", intent=intent.name, error=str(e), exc_info=True)
            return IntentResponse.failed(str(e) or type(e).__name__)

        if not isinstance(response, IntentResponse):
            logger.error("intent_handler_bad_result", intent=intent.name, result_type=type(response).__name__)
            return IntentResponse.failed(f"Handler for {intent.name} returned {type(response).__name__}")

        logger.info(
            "intent_dispatched",
            intent=intent.name,
            success=response.success,
            outcome=response.outcome.value,
        )
        return response
