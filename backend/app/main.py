"""Main FastAPI application for the server analytics backend."""

from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core import db_manager, get_global_settings
from app.core.logging import setup_logging
from app.core.rate_limiter import limiter
from app.features.alerts import AlertDispatcher, CooldownController, build_notification_sink
from app.features.analytics.router import router as analytics_router
from app.features.events.handlers import build_event_dispatcher
from app.features.events.router import router as events_router
from app.features.events.runner import BackgroundRunner
from app.features.resolution.router import router as resolution_router
from app.features.retention import (
    shutdown_retention_scheduler,
    start_retention_scheduler,
)

settings = get_global_settings()
setup_logging(settings.log_level, json_logs=not settings.debug)
logger = structlog.get_logger(__name__)


def _log_auth_mode(app: FastAPI) -> None:
    """Resolve the ingestion auth mode once and warn loudly when open."""
    auth_mode = settings.auth_mode
    app.state.auth_mode = auth_mode
    if auth_mode.is_open:
        logger.warning(
            "⚠️  ANALYTICS_API_KEY not configured! The ingestion gateway accepts "
            "unauthenticated requests.",
            hint="Set ANALYTICS_API_KEY in .env and configure the plugins to send it",
        )
    else:
        logger.info("✓ Ingestion API key configured")


async def _start_scheduler_safely(cooldowns: CooldownController) -> None:
    """Start the retention scheduler with error handling."""
    try:
        await start_retention_scheduler(cooldowns=cooldowns)
    except Exception as e:
        logger.error(
            "Failed to start retention scheduler",
            error=str(e),
            error_type=type(e).__name__,
        )
        # Ingestion keeps working without the sweeper


async def _shutdown_safely(app: FastAPI) -> None:
    """Drain background work and release connections."""
    try:
        await app.state.event_runner.drain(timeout=settings.handler_timeout_seconds)
        await shutdown_retention_scheduler()
        await app.state.notification_sink.close()
        await db_manager.close()
    except Exception as e:
        logger.error(
            "Error during shutdown",
            error=str(e),
            error_type=type(e).__name__,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting up server analytics backend")
    _log_auth_mode(app)

    cooldowns = CooldownController(window_seconds=settings.alert_cooldown_seconds)
    sink = build_notification_sink(
        settings.notification_webhook_url, settings.notification_timeout_seconds
    )
    alerts = AlertDispatcher(cooldowns, sink)
    app.state.notification_sink = sink
    app.state.event_runner = BackgroundRunner(
        build_event_dispatcher(alerts, settings),
        timeout_seconds=settings.handler_timeout_seconds,
    )

    await _start_scheduler_safely(cooldowns)
    yield
    logger.info("Shutting down server analytics backend")
    await _shutdown_safely(app)


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "events",
        "description": "Telemetry ingestion from game-server and proxy plugins.",
    },
    {
        "name": "resolutions",
        "description": "Staff decisions on alt groups and lag findings.",
    },
    {
        "name": "analytics",
        "description": "Read-only views over collected telemetry.",
    },
    {
        "name": "health",
        "description": "Health check and system status endpoints.",
    },
]

# Create FastAPI application
app = FastAPI(
    title="Server Analytics Backend",
    description="""
    Telemetry ingestion and alerting for a cluster of game servers.

    ## Authentication

    Plugin-facing and staff endpoints expect `Authorization: Bearer <key>` with the
    shared `ANALYTICS_API_KEY`. When no key is configured every request is accepted.
    """,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    debug=settings.debug,
)

# Configure rate limiter for FastAPI app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(events_router, prefix="/api")
app.include_router(resolution_router, prefix="/api")
app.include_router(analytics_router, prefix="/api")


@app.get("/health", tags=["health"])
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Health check endpoint.

    Unauthenticated, so load balancers and the plugins can probe it.
    """
    runner = getattr(request.app.state, "event_runner", None)
    auth_mode = getattr(request.app.state, "auth_mode", settings.auth_mode)
    return {
        "status": "healthy",
        "version": "0.1.0",
        "auth_mode": auth_mode.name,
        "pending_events": runner.pending if runner else 0,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
