"""
Crash Engine - FastAPI Application

Main entry point for the failure-injection service.
Provides the failure routes, diagnostics, and health endpoints.
"""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, Request
from pydantic import BaseModel

from crash_engine import __version__
from crash_engine.api.crash_routes import ROUTE_TABLE
from crash_engine.api.crash_routes import router as crash_router
from crash_engine.api.diagnostics_routes import router as diagnostics_router
from crash_engine.config import Settings, get_settings, get_settings_dep
from crash_engine.errors import register_exception_handlers
from crash_engine.logging import get_logger, set_request_id, setup_logging

# Setup logging
_settings = get_settings()
setup_logging(
    level=_settings.log_level,
    json_output=_settings.log_json,
    buffer_size=_settings.log_buffer_size,
)
logger = get_logger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    time: str
    uptime_seconds: float


class ConfigResponse(BaseModel):
    """Configuration response (redacted)."""

    env: str
    host: str
    port: int
    log_level: str
    deadlock_hold_seconds: float
    show_error_details: bool


# =============================================================================
# Application State
# =============================================================================


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        self.start_time: datetime = datetime.now(UTC)


state = AppState()


# =============================================================================
# Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("Starting Crash Engine v%s (%s)", __version__, settings.env.value)
    logger.info("Server: http://%s:%d", settings.host, settings.port)
    logger.info("Registered %d failure routes", len(ROUTE_TABLE))

    yield

    logger.info("Shutting down Crash Engine")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Crash Engine",
    description="Endpoints that deliberately fail, for exercising error handling and observability",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Tag each request with an ID and log its outcome."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    # Left set so the exception handlers log under the same ID
    set_request_id(request_id)
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        # Rendered by the outermost handler after this middleware unwinds
        logger.info(
            "%s %s -> 500 (%.1fms)",
            request.method,
            request.url.path,
            (time.perf_counter() - start) * 1000,
        )
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    response.headers["X-Request-ID"] = request_id
    return response


register_exception_handlers(app)

# Include API routers
app.include_router(crash_router)
app.include_router(diagnostics_router)


# =============================================================================
# REST Endpoints
# =============================================================================


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Health check endpoint.

    Returns current status, version, and uptime.
    """
    now = datetime.now(UTC)
    uptime = (now - state.start_time).total_seconds()

    return HealthResponse(
        status="healthy",
        version=__version__,
        time=now.isoformat(),
        uptime_seconds=round(uptime, 2),
    )


@app.get("/config", response_model=ConfigResponse)
async def config(
    settings: Settings = Depends(get_settings_dep)
) -> ConfigResponse:
    """Get current configuration (redacted)."""
    return ConfigResponse(**settings.get_redacted_config())


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API info."""
    return {
        "name": "Crash Engine",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "failures": "/failures",
    }


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Run the server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "crash_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
