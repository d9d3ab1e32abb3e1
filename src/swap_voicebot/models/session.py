"""
Per-session driver identity model.
"""

from datetime import datetime

from pydantic import BaseModel


class DriverSession(BaseModel):
    """What the bot remembers about the driver on one session."""

    driver_id: str | None = None
    last_query: str | None = None
    conversation_started: datetime | None = None
    queries_asked: int = 0
