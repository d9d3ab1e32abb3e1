"""
Logging configuration using structlog.
Provides structured logging with JSON output for production.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from swap_voicebot.config import get_settings


APP_NAME = "swap-voicebot"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "multipart")


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every record with the app name and environment."""
    event_dict.setdefault("app", APP_NAME)
    event_dict.setdefault("env", get_settings().environment)
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the API process."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if settings.environment == "production":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def log_api_call(
    service: str,
    endpoint: str,
    *,
    success: bool,
    duration_ms: int,
    status: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Emit one structured record for an outbound API call."""
    logger = structlog.get_logger("swap_voicebot.api_calls")
    fields = {
        "service": service,
        "endpoint": endpoint,
        "success": success,
        "duration_ms": duration_ms,
        **extra,
    }
    if status is not None:
        fields["status"] = status
    if error:
        fields["error"] = error

    if success:
        logger.info("api_call", **fields)
    else:
        logger.warning("api_call", **fields)
