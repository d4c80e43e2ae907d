"""
Tests for the lock-ordering deadlock.

The concurrent case runs on daemon threads against a private LockPair:
once deadlocked those threads never return, so they must not hold the
process-wide pair or keep the interpreter alive.
"""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from crash_engine.failures.locks import (
    LockPair,
    deadlock_one,
    deadlock_two,
    get_lock_pair,
    reset_lock_pair,
)

HOLD_S = 0.3
WAIT_S = 3.0


def _start(target, pair: LockPair) -> threading.Thread:
    thread = threading.Thread(target=target, args=(pair, HOLD_S), daemon=True)
    thread.start()
    return thread


class TestLockPair:
    """Tests for LockPair."""

    def test_locks_are_distinct(self) -> None:
        """LockA and LockB should be different objects."""
        pair = LockPair()
        assert pair.lock_a is not pair.lock_b

    def test_state_does_not_acquire(self) -> None:
        """Inspecting state should leave both locks free."""
        pair = LockPair()
        assert pair.state() == {"lock_a": False, "lock_b": False}
        assert pair.lock_a.acquire(blocking=False)
        pair.lock_a.release()

    def test_singleton(self) -> None:
        """get_lock_pair should return the same pair until reset."""
        first = get_lock_pair()
        assert get_lock_pair() is first
        reset_lock_pair()
        assert get_lock_pair() is not first


class TestSingleInvocation:
    """Without contention each route completes."""

    def test_one_alone_completes(self) -> None:
        """deadlock_one should return after roughly the hold delay."""
        pair = LockPair()
        outcome = deadlock_one(pair, 0.05)
        assert outcome.order == ("lock_a", "lock_b")
        assert outcome.elapsed_seconds >= 0.05
        assert pair.state() == {"lock_a": False, "lock_b": False}

    def test_two_alone_completes(self) -> None:
        """deadlock_two should acquire B before A."""
        pair = LockPair()
        outcome = deadlock_two(pair, 0.05)
        assert outcome.order == ("lock_b", "lock_a")
        assert pair.state() == {"lock_a": False, "lock_b": False}

    def test_sequential_calls_do_not_deadlock(self) -> None:
        """One after the other there is no circular wait."""
        pair = LockPair()
        deadlock_one(pair, 0.01)
        deadlock_two(pair, 0.01)
        deadlock_one(pair, 0.01)


@pytest.mark.concurrency
class TestConcurrentInvocation:
    """Run together the two operations block forever."""

    def test_both_block(self) -> None:
        """Neither thread should return within the wait window."""
        pair = LockPair()
        first = _start(deadlock_one, pair)
        second = _start(deadlock_two, pair)

        first.join(timeout=WAIT_S)
        second.join(timeout=WAIT_S)

        assert first.is_alive()
        assert second.is_alive()
        assert pair.state() == {"lock_a": True, "lock_b": True}

    def test_one_alone_finishes_in_window(self) -> None:
        """The same harness with a single thread should finish quickly."""
        pair = LockPair()
        started = time.monotonic()
        thread = _start(deadlock_one, pair)
        thread.join(timeout=WAIT_S)
        assert not thread.is_alive()
        assert time.monotonic() - started < HOLD_S + 1.0


class TestDeadlockRoutes:
    """HTTP tests for the deadlock routes, one at a time."""

    def test_route_one(self, api_client: TestClient) -> None:
        """/deadlock/one alone should return 200 after the hold delay."""
        started = time.monotonic()
        response = api_client.get("/deadlock/one")
        elapsed = time.monotonic() - started

        assert response.status_code == 200
        data = response.json()
        assert data["acquired"] == ["lock_a", "lock_b"]
        assert data["held_seconds"] == 0.2
        assert 0.2 <= elapsed < 0.2 + 1.5

    def test_route_two(self, api_client: TestClient) -> None:
        """/deadlock/two alone should return 200."""
        response = api_client.get("/deadlock/two")
        assert response.status_code == 200
        assert response.json()["acquired"] == ["lock_b", "lock_a"]

    def test_locks_released_after_route(self, api_client: TestClient) -> None:
        """The process-wide pair should be free afterwards."""
        api_client.get("/deadlock/one")
        assert get_lock_pair().state() == {"lock_a": False, "lock_b": False}

    def test_route_uses_injected_pair(self, api_client: TestClient, overrider) -> None:
        """Routes should acquire the pair provided by the dependency."""
        pair = LockPair()
        overrider.override(get_lock_pair, lambda: pair)
        pair.lock_b.acquire()
        try:
            thread = threading.Thread(target=api_client.get, args=("/deadlock/two",), daemon=True)
            thread.start()
            time.sleep(0.1)
            # Route two is waiting on lock_b which the test holds
            assert pair.state()["lock_a"] is False
        finally:
            pair.lock_b.release()
        thread.join(timeout=WAIT_S)
        assert not thread.is_alive()
