"""
Main entry point for Swap Voicebot.
"""

import uvicorn

from swap_voicebot.config import get_settings


def main() -> None:
    """Run the voicebot application."""
    settings = get_settings()

    uvicorn.run(
        "swap_voicebot.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        workers=settings.api.workers if not settings.api.debug else 1,
        reload=settings.api.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
