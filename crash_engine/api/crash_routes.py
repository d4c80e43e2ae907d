"""
Failure-injection API routes.

Every route deliberately fails (or, for the deadlock pair, may block
forever). Failures propagate untouched to the handlers registered in
crash_engine.errors.
"""

from dataclasses import asdict, dataclass

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from crash_engine.config import Settings, get_settings_dep
from crash_engine.errors import FailureKind
from crash_engine.failures import triggers
from crash_engine.failures.locks import LockPair, deadlock_one, deadlock_two, get_lock_pair
from crash_engine.logging import get_logger

router = APIRouter(tags=["Crash"])
logger = get_logger(__name__)


# =============================================================================
# Route Table
# =============================================================================


@dataclass(frozen=True)
class RouteOutcome:
    """One branch of a route whose result depends on its path parameter."""

    when: str
    example: str
    status: int
    kind: FailureKind | None = None


@dataclass(frozen=True)
class RouteEntry:
    """
    One failure trigger and the route it is bound to.

    kind and expected_status describe the failing branch. Routes that branch
    on input list every branch in outcomes.
    """

    path: str
    kind: FailureKind
    expected_status: int
    description: str
    outcomes: tuple[RouteOutcome, ...] = ()

    @property
    def conditional(self) -> bool:
        return bool(self.outcomes)


ROUTE_TABLE: tuple[RouteEntry, ...] = (
    RouteEntry("/generic-failure", FailureKind.GENERIC_FAILURE, 500, "Raises RuntimeError"),
    RouteEntry("/null-access", FailureKind.NULL_ACCESS, 500, "Calls a method on None"),
    RouteEntry("/invalid-arg", FailureKind.INVALID_ARGUMENT, 500, "Validates a negative value"),
    RouteEntry("/out-of-bounds", FailureKind.BOUNDS_VIOLATION, 500, "Reads index 5 of a 3-tuple"),
    RouteEntry("/forbidden-access", FailureKind.FORBIDDEN_ACCESS, 403, "Raises a 403-tagged error"),
    RouteEntry("/io-error", FailureKind.SIMULATED_IO, 500, "Raises OSError without doing I/O"),
    RouteEntry(
        "/parse-error/{value}",
        FailureKind.PARSE_FAILURE,
        500,
        "Parses value as a 32-bit integer",
        outcomes=(
            RouteOutcome(
                "value is not a 32-bit integer", "/parse-error/abc", 500, FailureKind.PARSE_FAILURE
            ),
            RouteOutcome("value is a 32-bit integer", "/parse-error/42", 200),
        ),
    ),
    RouteEntry("/stack-overflow", FailureKind.STACK_EXHAUSTION, 500, "Recurses with no base case"),
    RouteEntry("/deadlock/one", FailureKind.DEADLOCK, 200, "Takes lock A then lock B"),
    RouteEntry("/deadlock/two", FailureKind.DEADLOCK, 200, "Takes lock B then lock A"),
    RouteEntry(
        "/param-variant/{param}",
        FailureKind.NULL_ACCESS,
        500,
        "'trigger' -> null access, 'simulateDbIssue' -> database error, else 200",
        outcomes=(
            RouteOutcome(
                "param is 'trigger'", "/param-variant/trigger", 500, FailureKind.NULL_ACCESS
            ),
            RouteOutcome(
                "param is 'simulateDbIssue'",
                "/param-variant/simulateDbIssue",
                500,
                FailureKind.DATABASE_SIMULATION,
            ),
            RouteOutcome("any other param", "/param-variant/anything-else", 200),
        ),
    ),
)


# =============================================================================
# Response Models
# =============================================================================


class RouteOutcomeResponse(BaseModel):
    """One branch of a conditional route."""

    when: str
    example: str
    status: int
    kind: FailureKind | None = None


class RouteEntryResponse(BaseModel):
    """Route table entry."""

    path: str
    kind: FailureKind
    expected_status: int
    description: str
    conditional: bool = False
    outcomes: list[RouteOutcomeResponse] = []


class RouteTableResponse(BaseModel):
    """All failure routes."""

    routes: list[RouteEntryResponse]
    count: int


class ParseResult(BaseModel):
    """Normal outcome of /parse-error when the value is an integer."""

    value: str
    parsed: int


class ParamVariantResult(BaseModel):
    """Normal outcome of /param-variant for any other param."""

    param: str
    message: str


class DeadlockResult(BaseModel):
    """Normal outcome of a deadlock route that ran without contention."""

    acquired: list[str]
    held_seconds: float
    elapsed_seconds: float


# =============================================================================
# Routes
# =============================================================================


@router.get("/failures", response_model=RouteTableResponse)
async def list_failures() -> RouteTableResponse:
    """List every failure route with its expected status."""
    routes = [
        RouteEntryResponse(**asdict(entry), conditional=entry.conditional) for entry in ROUTE_TABLE
    ]
    return RouteTableResponse(routes=routes, count=len(routes))


@router.get("/generic-failure")
async def generic_failure() -> None:
    triggers.trigger_generic_failure()


@router.get("/null-access")
async def null_access() -> None:
    triggers.trigger_null_access()


@router.get("/invalid-arg")
async def invalid_argument() -> None:
    triggers.trigger_invalid_argument()


@router.get("/out-of-bounds")
async def out_of_bounds() -> None:
    triggers.trigger_bounds_violation()


@router.get("/forbidden-access")
async def forbidden_access() -> None:
    """Fails with 403 Forbidden via the tagged error kind."""
    triggers.trigger_forbidden_access()


@router.get("/io-error")
async def io_error() -> None:
    triggers.trigger_io_error()


@router.get("/parse-error/{value}", response_model=ParseResult)
async def parse_error(value: str) -> ParseResult:
    """
    Parse the path value as a 32-bit integer.

    Anything else (e.g. /parse-error/abc, /parse-error/1_000) fails with a
    parse error.
    """
    return ParseResult(value=value, parsed=triggers.parse_integer(value))


@router.get("/stack-overflow")
async def stack_overflow() -> None:
    triggers.trigger_stack_exhaustion()


# Sync endpoints: each invocation runs on its own worker thread


@router.get("/deadlock/one", response_model=DeadlockResult)
def deadlock_route_one(
    settings: Settings = Depends(get_settings_dep),
    locks: LockPair = Depends(get_lock_pair),
) -> DeadlockResult:
    """
    Acquire lock A, hold it, then acquire lock B.

    Blocks forever if /deadlock/two is holding lock B at the same time.
    """
    outcome = deadlock_one(locks, settings.deadlock_hold_seconds)
    return DeadlockResult(
        acquired=list(outcome.order),
        held_seconds=outcome.held_seconds,
        elapsed_seconds=round(outcome.elapsed_seconds, 3),
    )


@router.get("/deadlock/two", response_model=DeadlockResult)
def deadlock_route_two(
    settings: Settings = Depends(get_settings_dep),
    locks: LockPair = Depends(get_lock_pair),
) -> DeadlockResult:
    """
    Acquire lock B, hold it, then acquire lock A.

    Blocks forever if /deadlock/one is holding lock A at the same time.
    """
    outcome = deadlock_two(locks, settings.deadlock_hold_seconds)
    return DeadlockResult(
        acquired=list(outcome.order),
        held_seconds=outcome.held_seconds,
        elapsed_seconds=round(outcome.elapsed_seconds, 3),
    )


@router.get("/param-variant/{param}", response_model=ParamVariantResult)
async def param_variant(param: str) -> ParamVariantResult:
    """
    Fail or succeed depending on param.

    - trigger: null access (500)
    - simulateDbIssue: simulated database error (500)
    - anything else: 200
    """
    message = triggers.param_variant(param)
    return ParamVariantResult(param=param, message=message)
