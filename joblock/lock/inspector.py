"""
Read-only lock inspection for diagnostics and monitoring.
"""

from collections.abc import Sequence
from typing import Any

from joblock.lock.keys import LockKeyDeriver
from joblock.store.base import LockStore


class LockInspector:
    """
    Reports whether a job identity is currently locked.

    The answer can be stale by the time it is read. Do not use it to
    decide whether to acquire: only set-if-absent is atomic.
    """

    def __init__(self, store: LockStore, key_deriver: LockKeyDeriver | None = None):
        self.store = store
        self.key_deriver = key_deriver if key_deriver is not None else LockKeyDeriver()

    async def is_locked(self, job_type: str, args: Sequence[Any]) -> bool:
        """Check whether the lock key for this job identity exists."""
        return await self.store.exists(self.key_deriver.derive(job_type, args))
