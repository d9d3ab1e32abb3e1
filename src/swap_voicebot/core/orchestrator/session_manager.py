"""
Session Manager - Builds the shared collaborators once and hands out one
VoiceAgent per live session.
"""

from collections.abc import Callable
from uuid import uuid4

import structlog

from swap_voicebot.core.handoff import HandoffNotifier, HandoffQueue, get_handoff_notifier, get_handoff_queue
from swap_voicebot.core.intents import BATTERY_SMART_INTENTS, IntentHandlerRegistry, build_registry
from swap_voicebot.core.memory import DriverMemory, get_driver_memory
from swap_voicebot.core.nlu import IntentClassifier, SentimentAnalyzer
from swap_voicebot.core.orchestrator.response_generator import ResponseGenerator
from swap_voicebot.core.orchestrator.voice_agent import VoiceAgent
from swap_voicebot.models import HandoffSummary
from swap_voicebot.services.battery_smart import BatterySmartClient
from swap_voicebot.services.elevenlabs import ElevenLabsSynthesizer
from swap_voicebot.services.groq import GroqLLMService, GroqTranscriber

logger = structlog.get_logger(__name__)

HandoffHook = Callable[[str, HandoffSummary], None]


class SessionManager:
    """Owns live voice agents and the collaborators they share."""

    def __init__(
        self,
        llm: GroqLLMService | None = None,
        transcriber: GroqTranscriber | None = None,
        synthesizer: ElevenLabsSynthesizer | None = None,
        domain_client: BatterySmartClient | None = None,
        registry: IntentHandlerRegistry | None = None,
        driver_memory: DriverMemory | None = None,
        handoff_queue: HandoffQueue | None = None,
        notifier: HandoffNotifier | None = None,
    ) -> None:
        self.llm = llm or GroqLLMService()
        self.transcriber = transcriber or GroqTranscriber()
        self.synthesizer = synthesizer or ElevenLabsSynthesizer()
        self.domain_client = domain_client or BatterySmartClient()
        self.registry = registry or build_registry(self.domain_client)
        self.driver_memory = driver_memory or get_driver_memory()
        self.handoff_queue = handoff_queue or get_handoff_queue()
        self.notifier = notifier or get_handoff_notifier()

        self.classifier = IntentClassifier(self.llm, BATTERY_SMART_INTENTS)
        self.sentiment_analyzer = SentimentAnalyzer(self.llm)
        self.response_generator = ResponseGenerator(self.llm)

        self._agents: dict[str, VoiceAgent] = {}
        self._handoff_hooks: list[HandoffHook] = []

    def add_handoff_hook(self, hook: HandoffHook) -> None:
        """Run a hook for every handoff in every session."""
        self._handoff_hooks.append(hook)

    def create_agent(self, session_id: str | None = None) -> VoiceAgent:
        """Start a session and return its agent."""
        session_id = session_id or str(uuid4())
        agent = VoiceAgent(
            session_id,
            llm=self.llm,
            classifier=self.classifier,
            sentiment_analyzer=self.sentiment_analyzer,
            registry=self.registry,
            response_generator=self.response_generator,
            driver_memory=self.driver_memory,
            transcriber=self.transcriber,
            synthesizer=self.synthesizer,
            escalation_sink=self.notifier.send_escalation,
        )
        agent.on_handoff(lambda summary: self._record_handoff(session_id, summary))
        self._agents[session_id] = agent
        logger.info("session_started", session_id=session_id, active=len(self._agents))
        return agent

    def get_agent(self, session_id: str) -> VoiceAgent | None:
        return self._agents.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Drop a session and forget its driver."""
        agent = self._agents.pop(session_id, None)
        if agent is None:
            return False
        agent.reset()
        logger.info("session_ended", session_id=session_id, active=len(self._agents))
        return True

    @property
    def active_sessions(self) -> int:
        return len(self._agents)

    def _record_handoff(self, session_id: str, summary: HandoffSummary) -> None:
        self.handoff_queue.add(session_id, summary)
        for hook in self._handoff_hooks:
            hook(session_id, summary)

    async def close(self) -> None:
        """Close every HTTP client."""
        for session_id in list(self._agents):
            self.end_session(session_id)
        await self.llm.close()
        await self.transcriber.close()
        await self.synthesizer.close()
        await self.domain_client.close()


# Singleton instance
_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Get session manager singleton."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def set_session_manager(manager: SessionManager | None) -> None:
    """Replace the singleton (application startup and tests)."""
    global _session_manager
    _session_manager = manager
