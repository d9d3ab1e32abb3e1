"""
Intent models shared by the classifier, the handler registry and the orchestrator.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

UNKNOWN_INTENT = "unknown"


class Intent(BaseModel):
    """Classified intent of one utterance."""

    name: str = UNKNOWN_INTENT
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    entities: dict[str, Any] = Field(default_factory=dict)


class IntentDefinition(BaseModel):
    """Catalog entry describing one supported intent."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    examples: list[str] = Field(default_factory=list)
    entity_schema: dict[str, str] = Field(default_factory=dict)


class IntentOutcome(str, Enum):
    """How a dispatched intent resolved."""

    SUCCESS = "success"
    NEED_DRIVER_ID = "need_driver_id"
    USE_REGULAR_LLM = "use_regular_llm"
    LOW_CONFIDENCE = "low_confidence"
    NO_HANDLER = "no_handler"
    FAILED = "failed"


SENTINEL_OUTCOMES = {
    "NEED_DRIVER_ID": IntentOutcome.NEED_DRIVER_ID,
    "USE_REGULAR_LLM": IntentOutcome.USE_REGULAR_LLM,
}


class IntentResponse(BaseModel):
    """
    Result of running an intent handler.

    When outcome is not given it follows success and error: a failure whose
    error is one of the sentinels ("NEED_DRIVER_ID", "USE_REGULAR_LLM") gets
    that outcome, any other failure is FAILED. An explicit outcome has to
    agree with success.
    """

    success: bool
    data: Any | None = None
    error: str | None = None
    outcome: IntentOutcome = IntentOutcome.SUCCESS

    @model_validator(mode="after")
    def _derive_outcome(self) -> "IntentResponse":
        if "outcome" not in self.model_fields_set:
            if self.success:
                self.outcome = IntentOutcome.SUCCESS
            else:
                self.outcome = SENTINEL_OUTCOMES.get(self.error or "", IntentOutcome.FAILED)
        elif self.success != (self.outcome == IntentOutcome.SUCCESS):
            raise ValueError(f"outcome {self.outcome.value} contradicts success={self.success}")
        return self

    @classmethod
    def ok(cls, data: Any = None) -> "IntentResponse":
        return cls(success=True, data=data, outcome=IntentOutcome.SUCCESS)

    @classmethod
    def failed(cls, error: str) -> "IntentResponse":
        return cls(success=False, error=error, outcome=IntentOutcome.FAILED)

    @classmethod
    def need_driver_id(cls) -> "IntentResponse":
        return cls(success=False, error="NEED_DRIVER_ID", outcome=IntentOutcome.NEED_DRIVER_ID)

    @classmethod
    def use_regular_llm(cls) -> "IntentResponse":
        return cls(success=False, error="USE_REGULAR_LLM", outcome=IntentOutcome.USE_REGULAR_LLM)

    @property
    def handoff_required(self) -> bool:
        """Whether the handler asked for a human agent."""
        return self.success and isinstance(self.data, dict) and bool(self.data.get("handoff_required"))
