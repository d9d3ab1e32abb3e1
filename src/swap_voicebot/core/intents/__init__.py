"""Intent catalog, handler registry and domain handlers."""

from swap_voicebot.core.intents.catalog import BATTERY_SMART_INTENTS
from swap_voicebot.core.intents.handlers import BatterySmartIntentHandlers, build_registry
from swap_voicebot.core.intents.registry import IntentHandlerFn, IntentHandlerRegistry

__all__ = [
    "BATTERY_SMART_INTENTS",
    "BatterySmartIntentHandlers",
    "IntentHandlerFn",
    "IntentHandlerRegistry",
    "build_registry",
]
