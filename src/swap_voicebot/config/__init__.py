"""Configuration package."""

from swap_voicebot.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
