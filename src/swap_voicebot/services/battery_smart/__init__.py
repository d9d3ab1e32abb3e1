"""Battery Smart driver-data API."""

from swap_voicebot.services.battery_smart.client import BatterySmartClient

__all__ = ["BatterySmartClient"]
