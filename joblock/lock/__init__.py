"""
Lock module.
Contains key derivation, the lock guard and the lock inspector.
"""

from joblock.lock.guard import LockGuard, LockResult
from joblock.lock.inspector import LockInspector
from joblock.lock.keys import (
    KeyDeriverFn,
    LockKeyDeriver,
    constant_key,
    default_lock_key,
    render_args,
)

__all__ = [
    "LockGuard",
    "LockResult",
    "LockInspector",
    "LockKeyDeriver",
    "KeyDeriverFn",
    "constant_key",
    "default_lock_key",
    "render_args",
]
