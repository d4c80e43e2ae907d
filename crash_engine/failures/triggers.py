"""
Failure triggers.

Each function unconditionally produces one specific failure, except
parse_integer and param_variant which branch on their input. Nothing here
catches, retries or recovers: the failure is left for the web layer to map
to a response.
"""

import re

from crash_engine.errors import (
    DatabaseSimulationError,
    ForbiddenAccessSimulationError,
    IntegerParseError,
)
from crash_engine.logging import get_logger

logger = get_logger(__name__)

FIXED_SEQUENCE: tuple[int, ...] = (1, 2, 3)
OUT_OF_RANGE_INDEX = 5
INVALID_INPUT = -5

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")

PARAM_NULL_TRIGGER = "trigger"
PARAM_DB_TRIGGER = "simulateDbIssue"


def trigger_generic_failure() -> None:
    raise RuntimeError("This is a generic runtime exception. Something unexpected went wrong!")


def trigger_null_access() -> int:
    """Call a method on a reference that was never set."""
    data: str | None = None
    return len(data.strip())  # type: ignore[union-attr]


def validate_input(value: int) -> None:
    """Reject negative values."""
    if value < 0:
        raise ValueError("Input value cannot be negative!")


def trigger_invalid_argument() -> None:
    validate_input(INVALID_INPUT)


def trigger_bounds_violation() -> int:
    """Read past the end of a three-element sequence."""
    return FIXED_SEQUENCE[OUT_OF_RANGE_INDEX]


def trigger_forbidden_access() -> None:
    raise ForbiddenAccessSimulationError("You do not have permission to access this resource!")


def simulate_file_read_error() -> None:
    """Fail the way a file read would, without opening anything."""
    raise OSError("Failed to read data from simulated file. Permission denied or file corrupt.")


def trigger_io_error() -> None:
    simulate_file_read_error()


def parse_integer(value: str) -> int:
    """
    Parse value as a signed 32-bit base-10 integer with no prior validation.

    Only an optional sign followed by ASCII digits is accepted: no surrounding
    whitespace, no underscores, nothing outside INT32_MIN..INT32_MAX.

    Raises:
        IntegerParseError: value is not an integer literal or is out of range
    """
    if _INTEGER_LITERAL.fullmatch(value) is None:
        raise IntegerParseError(value)
    parsed = int(value)
    if not INT32_MIN <= parsed <= INT32_MAX:
        raise IntegerParseError(value)
    return parsed


def recurse(depth: int) -> int:
    """Call itself with no base case. The addition keeps the call out of tail position."""
    return recurse(depth + 1) + 1


def trigger_stack_exhaustion() -> int:
    return recurse(0)


def param_variant(param: str) -> str:
    """
    Branch on exact string equality.

    Returns:
        A message for any param other than the two trigger literals
    """
    if param == PARAM_NULL_TRIGGER:
        trigger_null_access()
    if param == PARAM_DB_TRIGGER:
        logger.warning("Simulating database failure for param=%s", param)
        raise DatabaseSimulationError("Simulated database issue: connection pool exhausted")
    return f"Param '{param}' handled normally"
