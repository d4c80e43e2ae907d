"""
Diagnostics API routes.

Read-only views for the tooling that watches the failures:
- Recent log records
- Failure tally per kind
- Deadlock lock state
- Thread dump
"""

import sys
import threading
import traceback
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from crash_engine.failures.locks import LockPair, get_lock_pair
from crash_engine.logging import get_in_memory_logs, get_logger
from crash_engine.runtime.failure_stats import get_failure_stats

router = APIRouter(prefix="/diagnostics", tags=["Diagnostics"])
logger = get_logger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class LogsDiagnostics(BaseModel):
    """Buffered log records."""

    logs: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    timestamp: str


class FailureDiagnostics(BaseModel):
    """Failures seen by the error handlers."""

    total: int = 0
    by_kind: dict[str, dict[str, Any]] = Field(default_factory=dict)
    timestamp: str


class LockState(BaseModel):
    """State of one lock."""

    locked: bool


class LockDiagnostics(BaseModel):
    """Deadlock lock pair state."""

    lock_a: LockState
    lock_b: LockState
    deadlock_suspected: bool
    timestamp: str


class ThreadInfo(BaseModel):
    """One live thread."""

    name: str
    ident: int | None
    daemon: bool
    stack: list[str] = Field(default_factory=list)


class ThreadDiagnostics(BaseModel):
    """Thread dump."""

    threads: list[ThreadInfo]
    count: int
    timestamp: str


# =============================================================================
# Routes
# =============================================================================


@router.get("/logs", response_model=LogsDiagnostics)
async def get_logs_diagnostics(
    level: str = Query(default="INFO", description="Minimum level"),
    limit: int = Query(default=50, ge=1, le=1000, description="Maximum records"),
) -> LogsDiagnostics:
    """Get the most recent buffered log records."""
    logs = get_in_memory_logs(level=level, limit=limit)
    return LogsDiagnostics(
        logs=logs,
        count=len(logs),
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/failures", response_model=FailureDiagnostics)
async def get_failure_diagnostics() -> FailureDiagnostics:
    """Get counts and last occurrence per failure kind."""
    stats = get_failure_stats().get_stats()
    return FailureDiagnostics(
        total=stats["total"],
        by_kind=stats["by_kind"],
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/locks", response_model=LockDiagnostics)
async def get_lock_diagnostics(
    locks: LockPair = Depends(get_lock_pair),
) -> LockDiagnostics:
    """
    Get deadlock lock state.

    Only inspects the locks; never acquires them. Both held at once means
    the deadlock routes are either mid-hold or stuck in a circular wait.
    """
    state = locks.state()
    return LockDiagnostics(
        lock_a=LockState(locked=state["lock_a"]),
        lock_b=LockState(locked=state["lock_b"]),
        deadlock_suspected=state["lock_a"] and state["lock_b"],
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/threads", response_model=ThreadDiagnostics)
async def get_thread_diagnostics(
    include_stacks: bool = Query(default=True, description="Include stack lines"),
) -> ThreadDiagnostics:
    """Get a dump of all live threads."""
    frames = sys._current_frames()
    threads: list[ThreadInfo] = []
    for thread in threading.enumerate():
        stack: list[str] = []
        frame = frames.get(thread.ident) if thread.ident is not None else None
        if include_stacks and frame is not None:
            stack = [line.rstrip() for line in traceback.format_stack(frame)]
        threads.append(
            ThreadInfo(
                name=thread.name,
                ident=thread.ident,
                daemon=thread.daemon,
                stack=stack,
            )
        )
    return ThreadDiagnostics(
        threads=threads,
        count=len(threads),
        timestamp=datetime.now(UTC).isoformat(),
    )
