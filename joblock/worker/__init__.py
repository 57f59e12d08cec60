"""
Dispatcher integration.
Contains the job handler registry, locked execution and the process runtime.
"""

from joblock.worker.handlers import (
    execute_job,
    get_handler,
    get_key_deriver,
    is_locked_job,
    list_handlers,
    register_handler,
    unregister_handler,
)
from joblock.worker.runtime import LockRuntime

__all__ = [
    "register_handler",
    "unregister_handler",
    "get_handler",
    "list_handlers",
    "is_locked_job",
    "get_key_deriver",
    "execute_job",
    "LockRuntime",
]
