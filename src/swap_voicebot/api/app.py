"""
Main FastAPI application for Swap Voicebot.
"""

import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from swap_voicebot.api.metrics import HANDOFF_COUNT, REQUEST_COUNT, REQUEST_LATENCY
from swap_voicebot.api.routes import handoff_router, voice_router
from swap_voicebot.config import get_settings
from swap_voicebot.core.orchestrator import get_session_manager
from swap_voicebot.models import HandoffSummary
from swap_voicebot.utils.logging import setup_logging

logger = structlog.get_logger(__name__)


def _count_handoff(session_id: str, summary: HandoffSummary) -> None:
    HANDOFF_COUNT.labels(
        reason=summary.handoff_reason.value,
        priority=summary.escalation_priority.value,
    ).inc()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    settings = get_settings()
    setup_logging()

    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.api.debug
    )

    manager = get_session_manager()
    manager.add_handoff_hook(_count_handoff)
    logger.info("intent_registry_ready", intents=manager.registry.registered_intents)

    yield

    logger.info("application_shutting_down", active_sessions=manager.active_sessions)
    await manager.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Swap Voicebot API",
        description="""
        Hinglish voice assistant for battery-swap drivers.

        ## Features
        - Real-time voice conversation (WebSocket)
        - Intent detection for swap, scheme, subscription and station queries
        - Sentiment-driven escalation
        - Warm handoff to human agents with conversation summary
        """,
        version="1.0.0",
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging and metrics middleware
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID", str(time.time()))

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                error=str(e)
            )
            raise

        latency = time.time() - start_time
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(latency)

        logger.info(
            "request_completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            latency_ms=int(latency * 1000)
        )

        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    @app.get("/health")
    async def health_check():
        """Basic health check."""
        return {"status": "healthy"}

    @app.get("/health/ready")
    async def readiness_check():
        """Readiness check with dependency validation."""
        settings = get_settings()
        checks = {
            "groq_configured": bool(settings.groq.api_key),
            "elevenlabs_configured": bool(settings.elevenlabs.api_key),
            "intent_handlers": bool(get_session_manager().registry.registered_intents),
        }

        all_healthy = all(checks.values())
        return {
            "status": "ready" if all_healthy else "not_ready",
            "checks": checks
        }

    @app.get("/health/live")
    async def liveness_check():
        """Liveness check."""
        return {"status": "alive"}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type="text/plain"
        )

    app.include_router(voice_router, prefix="/api/v1")
    app.include_router(handoff_router, prefix="/api/v1")

    return app


# Application instance
app = create_app()
