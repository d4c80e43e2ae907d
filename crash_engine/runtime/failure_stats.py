"""
Tally of failures observed by the error handlers.

Feeds /diagnostics/failures. Uses its own lock; the deadlock lock pair is
never touched from here.
"""

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from crash_engine.errors import FailureKind


@dataclass
class FailureRecord:
    """Most recent occurrence of a failure kind."""

    count: int
    last_seen: datetime
    last_path: str
    last_exception: str
    last_message: str


class FailureStats:
    """Thread-safe per-kind failure counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, FailureRecord] = {}
        self._total = 0

    def record(self, kind: "FailureKind", path: str, exc: BaseException) -> None:
        """Count one failure of the given kind."""
        now = datetime.now(UTC)
        with self._lock:
            self._total += 1
            previous = self._records.get(kind.value)
            self._records[kind.value] = FailureRecord(
                count=(previous.count if previous else 0) + 1,
                last_seen=now,
                last_path=path,
                last_exception=type(exc).__name__,
                last_message=str(exc),
            )

    def get_stats(self) -> dict[str, Any]:
        """Get a snapshot of all recorded failures."""
        with self._lock:
            return {
                "total": self._total,
                "by_kind": {
                    kind: {
                        "count": r.count,
                        "last_seen": r.last_seen.isoformat(),
                        "last_path": r.last_path,
                        "last_exception": r.last_exception,
                        "last_message": r.last_message,
                    }
                    for kind, r in sorted(self._records.items())
                },
            }


_failure_stats: FailureStats | None = None


def get_failure_stats() -> FailureStats:
    """Get or create the failure stats singleton."""
    global _failure_stats
    if _failure_stats is None:
        _failure_stats = FailureStats()
    return _failure_stats


def reset_failure_stats() -> None:
    """Reset the failure stats singleton (for testing)."""
    global _failure_stats
    _failure_stats = None
