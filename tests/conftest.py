"""
Pytest configuration and shared fixtures.
"""

import os
from collections.abc import Generator

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("CRASH_ENV", "development")
os.environ.setdefault("CRASH_LOG_LEVEL", "INFO")

# Import shared fixtures from api_fixtures
from tests.api_fixtures import *  # noqa: E402, F403


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure a local .env or shell cannot change timings under test."""
    for var in ("CRASH_DEADLOCK_HOLD_SECONDS", "CRASH_SHOW_ERROR_DETAILS", "CRASH_PORT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset module-level singletons between tests."""
    yield

    from crash_engine.failures import locks
    from crash_engine.logging import clear_in_memory_logs
    from crash_engine.runtime import failure_stats

    locks.reset_lock_pair()
    failure_stats.reset_failure_stats()
    clear_in_memory_logs()
