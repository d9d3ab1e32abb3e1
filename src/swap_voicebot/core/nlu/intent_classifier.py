"""
Intent Classification for Battery Smart driver queries.
Embeds the intent catalog in a prompt and asks the LLM for strict JSON.
"""

import math
from typing import Any

import structlog
from pydantic import ValidationError

from swap_voicebot.errors import ClassificationFailure, UpstreamError
from swap_voicebot.models import UNKNOWN_INTENT, Intent, IntentDefinition
from swap_voicebot.services.groq import GroqLLMService

logger = structlog.get_logger(__name__)


class IntentClassifier:
    """LLM-backed classifier over a swappable intent catalog."""

    SYSTEM_PROMPT = """You are an intent classifier for Battery Smart's driver support voicebot.
Battery Smart operates India's largest battery-swapping network for electric vehicles.
Drivers speak Hindi, English or Hinglish (mixed Hindi-English).

Classify the driver's message into exactly one of these intents:

{catalog}

Rules:
- If nothing fits, use "{unknown}" with a low confidence.
- Extract driver_id exactly as spoken or typed (e.g. "D0015", "15", "d 15"). Do not normalize it.
- Only include entities listed for the chosen intent.

Respond in JSON format only:
{{"intent": "<intent_name>", "confidence": <0.0-1.0>, "entities": {{"<entity_name>": "<value>"}}}}"""

    def __init__(self, llm: GroqLLMService, intents: list[IntentDefinition]) -> None:
        self.llm = llm
        self.intents = list(intents)

    def update_intents(self, intents: list[IntentDefinition]) -> None:
        """Replace the whole catalog."""
        self.intents = list(intents)
        logger.info("intent_catalog_updated", count=len(self.intents))

    def build_prompt(self) -> str:
        """Render the system prompt for the current catalog."""
        blocks = []
        for definition in self.intents:
            lines = [f"- {definition.name}: {definition.description}"]
            if definition.examples:
                lines.append("  Examples: " + "; ".join(f'"{e}"' for e in definition.examples))
            if definition.entity_schema:
                lines.append("  Entities: " + ", ".join(
                    f"{name} ({kind})" for name, kind in definition.entity_schema.items()
                ))
            blocks.append("\n".join(lines))
        return self.SYSTEM_PROMPT.format(catalog="\n".join(blocks), unknown=UNKNOWN_INTENT)

    async def classify(self, utterance: str) -> Intent:
        """
        Classify one utterance.

        Raises:
            ClassificationFailure: upstream error or unparseable output
        """
        try:
            result = await self.llm.classify_text(self.build_prompt(), f'Driver message: "{utterance}"')
        except UpstreamError as e:
            logger.error("intent_classification_failed", error=str(e))
            raise ClassificationFailure(str(e), e.status_code) from e

        intent = self._parse(result)
        logger.info(
            "intent_classified",
            intent=intent.name,
            confidence=intent.confidence,
            entities=list(intent.entities),
        )
        return intent

    @staticmethod
    def _parse(result: dict[str, Any]) -> Intent:
        raw_entities = result.get("entities") or {}
        if not isinstance(raw_entities, dict):
            raise ClassificationFailure("Entities in classification result are not an object")
        entities = {k: v for k, v in raw_entities.items() if v not in (None, "")}
        if result.get("driver_id") not in (None, ""):
            entities["driver_id"] = result["driver_id"]

        confidence = result.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = 1.0
        elif isinstance(confidence, float) and not math.isfinite(confidence):
            raise ClassificationFailure(f"Non-finite confidence in classification result: {confidence}")

        try:
            return Intent(
                name=str(result.get("intent") or UNKNOWN_INTENT),
                confidence=min(max(confidence, 0.0), 1.0),
                entities=entities,
            )
        except ValidationError as e:
            raise ClassificationFailure(f"Invalid classification result: {e.error_count()} errors") from e
