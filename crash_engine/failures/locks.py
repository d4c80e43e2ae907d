"""
Lock-ordering deadlock.

Two operations share a pair of process-wide locks and acquire them in
opposite order, holding the first for a fixed delay. Run concurrently,
each ends up holding the lock the other is waiting on and both threads
block forever. There is no timeout and no recovery.
"""

import threading
import time
from dataclasses import dataclass, field

from crash_engine.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LockPair:
    """LockA and LockB. Only deadlock_one and deadlock_two may acquire these."""

    lock_a: threading.Lock = field(default_factory=threading.Lock)
    lock_b: threading.Lock = field(default_factory=threading.Lock)

    def state(self) -> dict[str, bool]:
        """Inspect without acquiring."""
        return {"lock_a": self.lock_a.locked(), "lock_b": self.lock_b.locked()}


@dataclass
class DeadlockOutcome:
    """Returned only when both locks were acquired."""

    order: tuple[str, str]
    held_seconds: float
    elapsed_seconds: float


def _acquire_in_order(
    first: threading.Lock,
    second: threading.Lock,
    names: tuple[str, str],
    hold_seconds: float,
) -> DeadlockOutcome:
    started = time.monotonic()
    with first:
        logger.info("Acquired %s, holding for %.2fs", names[0], hold_seconds)
        time.sleep(hold_seconds)
        logger.info("Waiting for %s while holding %s", names[1], names[0])
        with second:
            logger.info("Acquired %s and %s", names[0], names[1])
    return DeadlockOutcome(
        order=names,
        held_seconds=hold_seconds,
        elapsed_seconds=time.monotonic() - started,
    )


def deadlock_one(locks: LockPair, hold_seconds: float) -> DeadlockOutcome:
    """Acquire LockA, hold, then acquire LockB."""
    return _acquire_in_order(locks.lock_a, locks.lock_b, ("lock_a", "lock_b"), hold_seconds)


def deadlock_two(locks: LockPair, hold_seconds: float) -> DeadlockOutcome:
    """Acquire LockB, hold, then acquire LockA."""
    return _acquire_in_order(locks.lock_b, locks.lock_a, ("lock_b", "lock_a"), hold_seconds)


# Lazy-initialized process-wide pair
_lock_pair: LockPair | None = None
_lock_pair_guard = threading.Lock()


def get_lock_pair() -> LockPair:
    """Get or create the lock pair singleton."""
    global _lock_pair
    with _lock_pair_guard:
        if _lock_pair is None:
            _lock_pair = LockPair()
        return _lock_pair


def reset_lock_pair() -> None:
    """Replace the lock pair (for testing). Threads blocked on the old pair stay blocked."""
    global _lock_pair
    with _lock_pair_guard:
        _lock_pair = None
