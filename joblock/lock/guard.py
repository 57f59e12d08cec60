"""
Scoped lock acquisition around a unit of work.

The guard issues exactly one set-if-absent per run. When it wins the
lock it runs the work and releases the key on every exit path; when it
loses, the work is skipped. It does not wait, queue or retry.
"""

import inspect
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from joblock.config import Settings, get_settings
from joblock.constants import LOCK_MARKER, StoreOperation
from joblock.errors import StaleLockError
from joblock.lock.keys import LockKeyDeriver
from joblock.store.base import LockStore

R = TypeVar("R")

# Work may be a coroutine function or a plain callable
Work = Callable[[], Awaitable[R] | R]


@dataclass(frozen=True)
class LockResult(Generic[R]):
    """
    Outcome of a guarded run.

    A skipped run is a normal outcome: another holder owned the lock and
    the work was not executed.
    """

    key: str
    acquired: bool
    value: R | None = None

    @property
    def skipped(self) -> bool:
        return not self.acquired


class LockGuard:
    """
    Distributed mutex for jobs, coordinated through a lock store.

    By default the lock record never expires and is released with an
    unconditional delete. ``ttl_seconds`` adds expiry so a crashed worker
    cannot hold a key forever, at the cost of a long job possibly
    outliving its lock. ``owner_tokens`` stores a per-run token and
    releases with compare-and-delete, so a run never removes a lock it
    does not own.
    """

    def __init__(
        self,
        store: LockStore,
        key_deriver: LockKeyDeriver | None = None,
        *,
        ttl_seconds: int | None = None,
        owner_tokens: bool = False,
    ):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.store = store
        self.key_deriver = key_deriver if key_deriver is not None else LockKeyDeriver()
        self.ttl_seconds = ttl_seconds
        self.owner_tokens = owner_tokens

    @classmethod
    def from_settings(
        cls,
        store: LockStore,
        settings: Settings | None = None,
        key_deriver: LockKeyDeriver | None = None,
    ) -> "LockGuard":
        """Build a guard using the lock options from settings."""
        settings = settings or get_settings()
        return cls(
            store,
            key_deriver,
            ttl_seconds=settings.lock_ttl_seconds,
            owner_tokens=settings.lock_owner_tokens,
        )

    def derive_key(self, job_type: str, args: Sequence[Any]) -> str:
        return self.key_deriver.derive(job_type, args)

    def _marker(self) -> str:
        if self.owner_tokens:
            return uuid.uuid4().hex
        return LOCK_MARKER

    async def run(
        self,
        job_type: str,
        args: Sequence[Any],
        work: Work[R],
    ) -> LockResult[R]:
        """
        Run ``work`` while holding the lock for this job identity.

        Args:
            job_type: Stable job type name.
            args: The job arguments.
            work: Zero-argument callable; its awaitable result is awaited.

        Returns:
            LockResult carrying the work's value, or a skipped result when
            the lock was already held.

        Raises:
            StoreCommunicationError: If acquisition could not reach the store.
            StaleLockError: If the release failed after the work ran.
            TypeError: If the default key derivation cannot render an argument.
            Exception: Whatever ``work`` raised, after the lock was released.
        """
        key = self.derive_key(job_type, args)
        marker = self._marker()

        acquired = await self.store.set_if_absent(key, marker, self.ttl_seconds)
        if not acquired:
            return LockResult(key=key, acquired=False)

        try:
            value = work()
            if inspect.isawaitable(value):
                value = await value
        finally:
            await self._release(key, marker)

        return LockResult(key=key, acquired=True, value=value)

    async def _release(self, key: str, marker: str) -> None:
        if self.owner_tokens:
            operation = StoreOperation.DELETE_IF_VALUE
        else:
            operation = StoreOperation.DELETE

        try:
            if self.owner_tokens:
                await self.store.delete_if_value(key, marker)
            else:
                await self.store.delete(key)
        # Any release failure leaves the key possibly held, whatever the store raised
        except Exception as e:
            raise StaleLockError(operation, key) from e

    async def force_release(self, job_type: str, args: Sequence[Any]) -> None:
        """
        Delete the lock for a job identity regardless of who holds it.

        For manual intervention on a stale lock left by a crashed worker.
        Never called by ``run``.
        """
        await self.store.delete(self.derive_key(job_type, args))
