"""Per-session driver identity memory."""

from swap_voicebot.core.memory.driver_memory import (
    DriverMemory,
    extract_driver_id,
    get_driver_memory,
    normalize_driver_id,
)

__all__ = ["DriverMemory", "extract_driver_id", "get_driver_memory", "normalize_driver_id"]
