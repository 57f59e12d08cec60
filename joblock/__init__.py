"""
Distributed Job Lock

Guarantees at most one concurrent execution of a logically identical job
across independent worker processes, coordinated through a shared store
with an atomic set-if-absent operation.
"""

__version__ = "1.0.0"

from joblock.errors import LockError, StaleLockError, StoreCommunicationError
from joblock.lock import (
    LockGuard,
    LockInspector,
    LockKeyDeriver,
    LockResult,
    constant_key,
    default_lock_key,
)

__all__ = [
    "LockGuard",
    "LockInspector",
    "LockKeyDeriver",
    "LockResult",
    "constant_key",
    "default_lock_key",
    "LockError",
    "StoreCommunicationError",
    "StaleLockError",
]
