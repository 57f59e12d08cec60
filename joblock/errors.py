"""
Lock error taxonomy.

A skipped run is not an error and never raises; see ``LockResult.skipped``.
Failures of the guarded work propagate unchanged and are not wrapped here.
"""


class LockError(Exception):
    """Base class for lock errors."""


class StoreCommunicationError(LockError):
    """
    A store operation could not complete.

    Raised for set-if-absent, delete, exists and compare-and-delete
    failures. Never retried by the lock primitives.
    """

    def __init__(self, operation: str, key: str, message: str | None = None):
        self.operation = operation
        self.key = key
        super().__init__(message or f"Lock store {operation} failed for key {key!r}")


class StaleLockError(StoreCommunicationError):
    """
    Releasing an acquired lock failed.

    The key may still be held in the store, so every future run with the
    same key is skipped until it is removed manually.
    """

    def __init__(self, operation: str, key: str):
        super().__init__(
            operation,
            key,
            f"Failed to release lock {key!r}; the key may remain held",
        )
