"""Shared utilities."""

from swap_voicebot.utils.logging import log_api_call, setup_logging

__all__ = ["log_api_call", "setup_logging"]
