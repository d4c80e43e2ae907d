"""
Failure taxonomy and HTTP error mapping.

Exceptions raised by the failure triggers are left unrecovered; the handlers
registered here turn them into a rendered error view:
- Tagged SimulatedFailure subclasses use their own status code (e.g. 403)
- Everything else becomes a generic 500
"""

import html
from datetime import UTC, datetime
from enum import Enum
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from crash_engine.config import Settings, get_settings, get_settings_dep
from crash_engine.logging import get_logger
from crash_engine.runtime.failure_stats import get_failure_stats

logger = get_logger(__name__)


class FailureKind(str, Enum):
    """Closed set of failure categories the engine can produce."""

    GENERIC_FAILURE = "generic_failure"
    NULL_ACCESS = "null_access"
    INVALID_ARGUMENT = "invalid_argument"
    BOUNDS_VIOLATION = "bounds_violation"
    FORBIDDEN_ACCESS = "forbidden_access"
    SIMULATED_IO = "simulated_io"
    PARSE_FAILURE = "parse_failure"
    STACK_EXHAUSTION = "stack_exhaustion"
    DATABASE_SIMULATION = "database_simulation"
    DEADLOCK = "deadlock"


# =============================================================================
# Exceptions
# =============================================================================


class SimulatedFailure(Exception):
    """Base for custom failure kinds that carry their own HTTP status."""

    kind: FailureKind = FailureKind.GENERIC_FAILURE
    status_code: int = 500


class ForbiddenAccessSimulationError(SimulatedFailure):
    """Simulated permission failure, mapped to 403 Forbidden."""

    kind = FailureKind.FORBIDDEN_ACCESS
    status_code = 403


class DatabaseSimulationError(SimulatedFailure):
    """Simulated database failure."""

    kind = FailureKind.DATABASE_SIMULATION
    status_code = 500


class IntegerParseError(ValueError):
    """A string could not be parsed as an integer."""

    def __init__(self, value: str):
        super().__init__(f"For input string: {value!r}")
        self.value = value


# Checked in order; the first matching type wins
_KIND_BY_TYPE: tuple[tuple[type[BaseException], FailureKind], ...] = (
    (RecursionError, FailureKind.STACK_EXHAUSTION),
    (IntegerParseError, FailureKind.PARSE_FAILURE),
    (IndexError, FailureKind.BOUNDS_VIOLATION),
    (OSError, FailureKind.SIMULATED_IO),
    (AttributeError, FailureKind.NULL_ACCESS),
    (ValueError, FailureKind.INVALID_ARGUMENT),
)


def classify_failure(exc: BaseException) -> FailureKind:
    """Map an exception to its failure kind."""
    if isinstance(exc, SimulatedFailure):
        return exc.kind
    for exc_type, kind in _KIND_BY_TYPE:
        if isinstance(exc, exc_type):
            return kind
    return FailureKind.GENERIC_FAILURE


def status_for(exc: BaseException) -> int:
    """HTTP status for an unrecovered exception."""
    if isinstance(exc, SimulatedFailure):
        return exc.status_code
    return 500


# =============================================================================
# Error view
# =============================================================================


class ErrorResponse(BaseModel):
    """JSON error envelope."""

    detail: str
    error_code: str
    failure_kind: FailureKind
    status: int
    path: str
    request_id: str | None = None
    timestamp: str


ERROR_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>{status} {phrase}</title>
</head>
<body>
    <h2>Something happened...</h2>
    <p class="status">{status} {phrase}</p>
    <p class="kind">Failure kind: {kind}</p>
    <p class="detail">{detail}</p>
    <p class="meta">Path: {path} &middot; Request: {request_id} &middot; {timestamp}</p>
</body>
</html>
"""


def _resolve_settings(request: Request) -> Settings:
    # Exception handlers cannot use Depends; honour test overrides manually
    provider = request.app.dependency_overrides.get(get_settings_dep, get_settings)
    return provider()


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def render_error(request: Request, exc: BaseException, status_code: int) -> Response:
    """
    Render the error view for an unrecovered failure.

    Returns HTML when the client accepts it, JSON otherwise.
    """
    settings = _resolve_settings(request)
    phrase = HTTPStatus(status_code).phrase
    kind = classify_failure(exc)
    detail = str(exc) if settings.show_error_details and str(exc) else phrase

    error = ErrorResponse(
        detail=detail,
        error_code=type(exc).__name__,
        failure_kind=kind,
        status=status_code,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", None),
        timestamp=datetime.now(UTC).isoformat(),
    )

    headers = {"X-Request-ID": error.request_id} if error.request_id else None

    if _wants_html(request):
        page = ERROR_PAGE.format(
            status=status_code,
            phrase=html.escape(phrase),
            kind=html.escape(kind.value),
            detail=html.escape(error.detail),
            path=html.escape(error.path),
            request_id=html.escape(error.request_id or "-"),
            timestamp=error.timestamp,
        )
        return HTMLResponse(content=page, status_code=status_code, headers=headers)

    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json"),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the failure handlers on the application."""

    @app.exception_handler(SimulatedFailure)
    async def _handle_simulated_failure(request: Request, exc: SimulatedFailure) -> Response:
        logger.warning(
            "%s on %s (status %d): %s",
            type(exc).__name__,
            request.url.path,
            exc.status_code,
            exc,
        )
        get_failure_stats().record(classify_failure(exc), request.url.path, exc)
        return render_error(request, exc, exc.status_code)

    @app.exception_handler(Exception)
    async def _handle_unrecovered(request: Request, exc: Exception) -> Response:
        kind = classify_failure(exc)
        if isinstance(exc, RecursionError):
            # A full traceback here is ~1000 identical frames
            logger.error("Unrecovered %s on %s: %s", kind.value, request.url.path, exc)
        else:
            logger.error("Unrecovered %s on %s", kind.value, request.url.path, exc_info=exc)
        get_failure_stats().record(kind, request.url.path, exc)
        return render_error(request, exc, status_for(exc))


__all__ = [
    "FailureKind",
    "SimulatedFailure",
    "ForbiddenAccessSimulationError",
    "DatabaseSimulationError",
    "IntegerParseError",
    "ErrorResponse",
    "classify_failure",
    "status_for",
    "render_error",
    "register_exception_handlers",
]
