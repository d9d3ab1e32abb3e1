"""
Driver session memory.
Remembers which driver is speaking on each session so a driver ID given once
is reused by later turns of the same conversation. Lives for the process only.
"""

import re
from datetime import datetime, timezone

import structlog

from swap_voicebot.models import DriverSession

logger = structlog.get_logger(__name__)


def normalize_driver_id(raw: str) -> str:
    """
    Canonicalize a spoken or typed driver identifier.

    "d0015" -> "D0015", "0015" -> "D0015", "D0015" -> "D0015".
    Anything else is upper-cased and passed through.
    """
    value = str(raw).strip().upper()
    if value.startswith("D"):
        return value
    if value.isdigit():
        return f"D{value}"
    return value


SPOKEN_DIGITS = {
    "zero": "0", "oh": "0", "one": "1", "two": "2", "three": "3", "four": "4",
    "five": "5", "six": "6", "seven": "7", "eight": "8", "nine": "9",
    "shunya": "0", "ek": "1", "teen": "3", "char": "4", "chaar": "4",
    "paanch": "5", "panch": "5", "chhe": "6", "che": "6", "saat": "7",
    "aath": "8", "nau": "9",
}
# "do" (two) is left out: in Hinglish it is far more often "give".
DRIVER_PREFIX_TOKENS = frozenset({"d", "dee", "di"})
DRIVER_HINT_TOKENS = frozenset({"id", "driver"})
# Words allowed between a hint and its digits: "driver id is 15", "id number 15"
HINT_CONNECTOR_TOKENS = frozenset({"is", "hai", "number", "no", "num"})
MIN_BARE_DIGITS = 3

_TOKEN_RE = re.compile(r"[a-z]+|\d+")


def _digit_runs(tokens: list[str]):
    """Yield (start index, digits) for each run of typed or spoken digits."""
    i = 0
    while i < len(tokens):
        start = i
        digits = ""
        while i < len(tokens) and (tokens[i].isdigit() or tokens[i] in SPOKEN_DIGITS):
            digits += tokens[i] if tokens[i].isdigit() else SPOKEN_DIGITS[tokens[i]]
            i += 1
        if digits:
            yield start, digits
        else:
            i += 1


def _follows_hint(tokens: list[str], start: int) -> bool:
    i = start - 1
    while i >= 0 and tokens[i] in HINT_CONNECTOR_TOKENS:
        i -= 1
    return i >= 0 and tokens[i] in DRIVER_HINT_TOKENS


def extract_driver_id(text: str) -> str | None:
    """
    Find a driver identifier in free speech.

    Accepts "D0015", "d 0 0 1 5", "driver id 15" and spoken digits such as
    "dee zero zero one five". A "D"-prefixed number wins over everything
    else; then digits right after "driver"/"id"; then any bare run of at
    least three digits. Returns the digits with a "D" prefix when one was
    spoken, or None.
    """
    tokens = _TOKEN_RE.findall(text.lower())

    hinted: str | None = None
    bare: str | None = None
    for start, digits in _digit_runs(tokens):
        if start > 0 and tokens[start - 1] in DRIVER_PREFIX_TOKENS:
            return f"D{digits}"
        if hinted is None and _follows_hint(tokens, start):
            hinted = digits
        elif bare is None and len(digits) >= MIN_BARE_DIGITS:
            bare = digits
    return hinted or bare


class DriverMemory:
    """Session-keyed store of driver identity."""

    def __init__(self) -> None:
        self._sessions: dict[str, DriverSession] = {}

    def set_driver_id(self, session_id: str, raw_driver_id: str) -> str:
        """Normalize and store the driver ID; returns the stored form."""
        driver_id = normalize_driver_id(raw_driver_id)
        session = self._sessions.setdefault(session_id, DriverSession())
        session.driver_id = driver_id
        if session.conversation_started is None:
            session.conversation_started = datetime.now(timezone.utc)

        logger.info("driver_id_stored", session_id=session_id, driver_id=driver_id)
        return driver_id

    def get_driver_id(self, session_id: str) -> str | None:
        session = self._sessions.get(session_id)
        return session.driver_id if session else None

    def has_driver_id(self, session_id: str) -> bool:
        return self.get_driver_id(session_id) is not None

    def update_last_query(self, session_id: str, query: str) -> None:
        """Record the latest query and count it."""
        session = self._sessions.setdefault(session_id, DriverSession())
        session.last_query = query
        session.queries_asked += 1

    def get_session(self, session_id: str) -> DriverSession | None:
        """Return a copy of the session record."""
        session = self._sessions.get(session_id)
        return session.model_copy() if session else None

    def clear_session(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info("driver_session_cleared", session_id=session_id)

    def clear_all(self) -> None:
        self._sessions.clear()

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)


# Singleton instance
_driver_memory: DriverMemory | None = None


def get_driver_memory() -> DriverMemory:
    """Get driver memory singleton."""
    global _driver_memory
    if _driver_memory is None:
        _driver_memory = DriverMemory()
    return _driver_memory
