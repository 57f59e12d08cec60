"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from joblock.config import Settings
from joblock.errors import StoreCommunicationError
from joblock.lock import LockGuard, LockInspector, LockKeyDeriver
from joblock.store import MemoryLockStore


class FlakyLockStore(MemoryLockStore):
    """Memory store whose operations can be made to fail on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if operation in self.fail_on:
            raise StoreCommunicationError(operation, key)

    async def set_if_absent(self, key, value, ttl_seconds=None):
        self._check("set_if_absent", key)
        return await super().set_if_absent(key, value, ttl_seconds)

    async def delete(self, key):
        self._check("delete", key)
        await super().delete(key)

    async def delete_if_value(self, key, value):
        self._check("delete_if_value", key)
        return await super().delete_if_value(key, value)

    async def exists(self, key):
        self._check("exists", key)
        return await super().exists(key)


@pytest_asyncio.fixture
async def memory_store() -> AsyncGenerator[MemoryLockStore]:
    """Create an empty in-memory lock store."""
    store = MemoryLockStore()
    yield store
    await store.close()


@pytest.fixture
def flaky_store() -> FlakyLockStore:
    """Create a lock store that records calls and fails on request."""
    return FlakyLockStore()


@pytest.fixture
def key_deriver() -> LockKeyDeriver:
    return LockKeyDeriver()


@pytest.fixture
def guard(memory_store: MemoryLockStore, key_deriver: LockKeyDeriver) -> LockGuard:
    """Create a lock guard over the in-memory store."""
    return LockGuard(memory_store, key_deriver)


@pytest.fixture
def inspector(memory_store: MemoryLockStore, key_deriver: LockKeyDeriver) -> LockInspector:
    return LockInspector(memory_store, key_deriver)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        lock_backend="memory",
        log_level="DEBUG",
        log_format="console",
        worker_id="test-worker",
    )
