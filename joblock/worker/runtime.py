"""
Per-process lock runtime.

Owns the lock store handle for a worker process: opened once at startup
and closed at shutdown. The dispatcher runs jobs through it.
"""

import logging
from types import TracebackType

from joblock.config import Settings, get_settings
from joblock.lock.guard import LockGuard
from joblock.lock.inspector import LockInspector
from joblock.observability.logging import setup_logging
from joblock.observability.metrics import setup_metrics
from joblock.store import LockStore, build_lock_store
from joblock.types.job import JobContext, JobResult
from joblock.worker.handlers import execute_job, get_key_deriver

logger = logging.getLogger(__name__)


class LockRuntime:
    """
    Lock store, guard and inspector for one worker process.

    Example:
        async with LockRuntime() as runtime:
            result = await runtime.execute(JobContext("update_network_graph", [42]))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: LockStore | None = None,
        configure_logging: bool = False,
    ):
        """
        Initialize the runtime.

        Args:
            settings: Settings to read. Defaults to the cached settings.
            store: Store handle to use instead of building one from settings.
            configure_logging: Set up structured logging for the process.
        """
        self.settings = settings or get_settings()
        if configure_logging:
            setup_logging(self.settings)
        self.metrics = setup_metrics()
        self.store = store if store is not None else build_lock_store(self.settings)
        self.guard = LockGuard.from_settings(
            self.store,
            self.settings,
            key_deriver=get_key_deriver(),
        )
        self.inspector = LockInspector(self.store, key_deriver=get_key_deriver())
        self._closed = False

    async def execute(self, context: JobContext) -> JobResult:
        """Execute a job, locking it when its handler is registered as locked."""
        if context.worker_id is None:
            context.worker_id = self.settings.worker_id
        return await execute_job(context, self.guard)

    async def close(self) -> None:
        """Close the store handle. Safe to call more than once."""
        if self._closed:
            return
        await self.store.close()
        self._closed = True
        logger.info("Lock runtime closed", extra={"worker_id": self.settings.worker_id})

    async def __aenter__(self) -> "LockRuntime":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
