"""
In-process lock store.

Suitable for tests and single-process deployments. Each operation runs
without yielding to the event loop between its check and its write, so
set-if-absent is atomic for every coroutine sharing the loop.
"""

import time


class MemoryLockStore:
    """Dict-backed lock store with optional per-key expiry."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}

    def _purge_if_expired(self, key: str) -> None:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and time.monotonic() >= expires_at:
            self._values.pop(key, None)
            self._expires_at.pop(key, None)

    async def set_if_absent(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        self._purge_if_expired(key)
        if key in self._values:
            return False

        self._values[key] = value
        if ttl_seconds is not None:
            self._expires_at[key] = time.monotonic() + ttl_seconds
        return True

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._expires_at.pop(key, None)

    async def delete_if_value(self, key: str, value: str) -> bool:
        self._purge_if_expired(key)
        if self._values.get(key) != value:
            return False

        self._values.pop(key, None)
        self._expires_at.pop(key, None)
        return True

    async def exists(self, key: str) -> bool:
        self._purge_if_expired(key)
        return key in self._values

    async def get(self, key: str) -> str | None:
        """Return the stored value for ``key``, if held."""
        self._purge_if_expired(key)
        return self._values.get(key)

    async def close(self) -> None:
        self._values.clear()
        self._expires_at.clear()

    def __len__(self) -> int:
        return len(self._values)
