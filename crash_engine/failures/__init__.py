"""
Canned failure triggers and the lock-ordering deadlock.
"""

from crash_engine.failures.locks import (
    DeadlockOutcome,
    LockPair,
    deadlock_one,
    deadlock_two,
    get_lock_pair,
    reset_lock_pair,
)
from crash_engine.failures.triggers import parse_integer, param_variant, validate_input

__all__ = [
    "DeadlockOutcome",
    "LockPair",
    "deadlock_one",
    "deadlock_two",
    "get_lock_pair",
    "reset_lock_pair",
    "parse_integer",
    "param_variant",
    "validate_input",
]
