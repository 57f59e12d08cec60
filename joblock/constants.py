"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class LockBackend(StrEnum):
    """Supported lock store backends."""

    MEMORY = "memory"
    REDIS = "redis"


class StoreOperation(StrEnum):
    """Store operations issued by the lock primitives."""

    SET_IF_ABSENT = "set_if_absent"
    DELETE = "delete"
    DELETE_IF_VALUE = "delete_if_value"
    EXISTS = "exists"


# Lock keys
LOCK_KEY_PREFIX = "locked:"
LOCK_KEY_SEPARATOR = "-"
LOCK_MARKER = "1"

# Metrics names
METRIC_LOCK_ACQUIRED = "lock_acquired_total"
METRIC_LOCK_SKIPPED = "lock_skipped_total"
METRIC_LOCK_RELEASE_FAILED = "lock_release_failed_total"
METRIC_LOCK_STORE_ERRORS = "lock_store_errors_total"
METRIC_LOCKED_JOB_DURATION = "locked_job_duration_seconds"

# Trace span names
SPAN_RUN_LOCKED_JOB = "run_locked_job"
