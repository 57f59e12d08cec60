"""
Job handler registry and locked execution.

The dispatcher looks up a handler by job type and calls ``execute_job``.
Handlers registered with ``locked=True`` run under a ``LockGuard``: at
most one run per lock key at a time, and a run that finds the lock held
is skipped and reported as a successful, non-retryable completion.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from joblock.constants import SPAN_RUN_LOCKED_JOB
from joblock.errors import StaleLockError, StoreCommunicationError
from joblock.lock.guard import LockGuard
from joblock.lock.keys import KeyDeriverFn, LockKeyDeriver
from joblock.observability.logging import job_log_context
from joblock.observability.metrics import get_metrics
from joblock.observability.tracing import create_span
from joblock.types.job import JobContext, JobResult

logger = logging.getLogger(__name__)

# Type alias for job handler functions
JobHandler = Callable[[JobContext], Awaitable[Any]]

# Handler registry
_handlers: dict[str, JobHandler] = {}
_locked_job_types: set[str] = set()

# Key overrides declared through register_handler(lock_key=...)
_key_deriver = LockKeyDeriver()


def register_handler(
    job_type: str,
    *,
    locked: bool = False,
    lock_key: KeyDeriverFn | None = None,
) -> Callable[[JobHandler], JobHandler]:
    """
    Decorator to register a job handler.

    Args:
        job_type: The job type this handler processes.
        locked: Run at most one instance per lock key at a time.
        lock_key: Optional key override for this job type. Implies locked.

    Returns:
        Decorator function.

    Example:
        @register_handler("update_network_graph", lock_key=constant_key("network-graph"))
        async def handle_update_network_graph(context: JobContext) -> None:
            ...
    """
    def decorator(handler: JobHandler) -> JobHandler:
        _handlers[job_type] = handler
        if locked or lock_key is not None:
            _locked_job_types.add(job_type)
        if lock_key is not None:
            _key_deriver.register(job_type, lock_key)
        logger.info(
            f"Registered handler for job type: {job_type}",
            extra={"locked": job_type in _locked_job_types},
        )
        return handler
    return decorator


def unregister_handler(job_type: str) -> None:
    """Remove a handler and its lock options."""
    _handlers.pop(job_type, None)
    _locked_job_types.discard(job_type)
    _key_deriver.unregister(job_type)


def get_handler(job_type: str) -> JobHandler | None:
    return _handlers.get(job_type)


def list_handlers() -> list[str]:
    """List all registered job types."""
    return list(_handlers.keys())


def is_locked_job(job_type: str) -> bool:
    return job_type in _locked_job_types


def get_key_deriver() -> LockKeyDeriver:
    """
    Get the key deriver carrying the overrides declared by handlers.

    Guards used with ``execute_job`` must be built with this deriver for
    ``lock_key`` overrides to take effect.
    """
    return _key_deriver


async def _run_locked(
    context: JobContext,
    handler: JobHandler,
    guard: LockGuard,
) -> JobResult:
    metrics = get_metrics()
    job_type = context.job_type
    log_extra = {"job_id": context.job_id, "job_type": job_type}

    try:
        result = await guard.run(job_type, context.args, lambda: handler(context))
    except StaleLockError as e:
        metrics.record_release_failed(job_type)
        logger.error(
            "Failed to release job lock; the lock may be stale",
            extra={**log_extra, "lock_key": e.key},
            exc_info=True,
        )
        return JobResult(success=False, error=str(e), lock_key=e.key)
    except StoreCommunicationError as e:
        metrics.record_store_error(job_type, e.operation)
        logger.exception(
            "Lock store unavailable",
            extra={**log_extra, "lock_key": e.key, "operation": e.operation},
        )
        return JobResult(success=False, error=str(e), lock_key=e.key)

    if result.skipped:
        metrics.record_lock_skipped(job_type)
        logger.info(
            "Job lock held elsewhere, skipping",
            extra={**log_extra, "lock_key": result.key},
        )
        return JobResult(success=True, skipped=True, lock_key=result.key)

    metrics.record_lock_acquired(job_type)
    return JobResult(success=True, output=result.value, lock_key=result.key)


async def execute_job(context: JobContext, guard: LockGuard | None = None) -> JobResult:
    """
    Execute a job using the appropriate handler.

    Args:
        context: The job context.
        guard: Lock guard for locked job types.

    Returns:
        JobResult for the dispatcher. Skipped runs are successful results
        with ``skipped=True``.
    """
    job_type = context.job_type
    handler = get_handler(job_type)

    if handler is None:
        logger.error(
            f"No handler for job type: {job_type}",
            extra={"job_id": context.job_id}
        )
        return JobResult(
            success=False,
            error=f"No handler registered for job type: {job_type}",
        )

    locked = is_locked_job(job_type)
    if locked and guard is None:
        logger.error(
            f"Locked job type executed without a lock guard: {job_type}",
            extra={"job_id": context.job_id}
        )
        return JobResult(
            success=False,
            error=f"Job type {job_type} requires a lock guard",
        )

    start = time.perf_counter()
    with job_log_context(job_type, context.job_id, worker_id=context.worker_id), create_span(
        SPAN_RUN_LOCKED_JOB,
        job_type=job_type,
        job_id=context.job_id,
        locked=locked,
    ):
        try:
            if locked:
                result = await _run_locked(context, handler, guard)
            else:
                result = JobResult(success=True, output=await handler(context))
        except Exception as e:
            logger.exception(
                "Handler raised exception",
                extra={"job_id": context.job_id, "job_type": job_type, "error": str(e)}
            )
            result = JobResult(
                success=False,
                error=f"Handler exception: {e}",
            )

    duration = time.perf_counter() - start
    result.duration_ms = duration * 1000

    if locked and not result.skipped:
        status = "succeeded" if result.success else "failed"
        get_metrics().record_job_duration(job_type, status, duration)

    return result
