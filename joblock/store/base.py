"""
Lock store contract.

The store is the only shared resource between workers. It exclusively
owns the existence of lock keys; no ownership check is enforced on delete.
"""

from typing import Protocol


class LockStore(Protocol):
    """
    Async lock store.

    Implementations report transport failures as ``StoreCommunicationError``.
    """

    async def set_if_absent(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        """Atomically create ``key`` only if absent. True iff this call created it."""
        ...

    async def delete(self, key: str) -> None:
        """Delete ``key``. Deleting an absent key is not an error."""
        ...

    async def delete_if_value(self, key: str, value: str) -> bool:
        """Atomically delete ``key`` only if it holds ``value``."""
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def close(self) -> None:
        ...
