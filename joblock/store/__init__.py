"""
Lock store module.
Contains the store contract and its in-memory and Redis implementations.
"""

from joblock.store.base import LockStore
from joblock.store.factory import build_lock_store
from joblock.store.memory import MemoryLockStore
from joblock.store.redis import RedisLockStore

__all__ = [
    "LockStore",
    "MemoryLockStore",
    "RedisLockStore",
    "build_lock_store",
]
