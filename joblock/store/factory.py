"""
Lock store construction from settings.
"""

import logging

from joblock.config import Settings, get_settings
from joblock.constants import LockBackend
from joblock.store.base import LockStore
from joblock.store.memory import MemoryLockStore
from joblock.store.redis import RedisLockStore

logger = logging.getLogger(__name__)


def build_lock_store(settings: Settings | None = None) -> LockStore:
    """
    Build the lock store configured for this process.

    Open it once per process and ``await store.close()`` at shutdown.

    Args:
        settings: Settings to read. Defaults to the cached settings.

    Returns:
        A Redis or in-memory lock store.

    Raises:
        RuntimeError: If the redis backend is selected without a URL.
        ValueError: If the backend is unknown.
    """
    settings = settings or get_settings()
    backend = settings.lock_backend.lower()

    if backend == LockBackend.REDIS:
        if not settings.redis_url:
            raise RuntimeError("REDIS_URL is required for the redis lock backend")
        store: LockStore = RedisLockStore(
            settings.redis_url,
            key_prefix=settings.lock_key_prefix,
        )
    elif backend == LockBackend.MEMORY:
        store = MemoryLockStore()
    else:
        raise ValueError(f"Unknown lock backend: {settings.lock_backend}")

    logger.info("Lock store initialized", extra={"backend": backend})
    return store
