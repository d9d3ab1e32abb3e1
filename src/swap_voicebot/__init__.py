"""Swap Voicebot - Hinglish voice support for battery-swap drivers."""

__version__ = "1.0.0"
