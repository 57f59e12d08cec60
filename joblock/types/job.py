"""
Job-related type definitions exchanged with the job dispatcher.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


class JobResult(BaseModel):
    """
    Result of job execution.
    Returned to the dispatcher after processing.

    A skipped job counts as a success: another worker held the lock, so
    the dispatcher must not retry or requeue it.
    """

    success: bool
    skipped: bool = False
    output: Any = None
    error: str | None = None
    lock_key: str | None = None
    duration_ms: float | None = None


@dataclass
class JobContext:
    """
    Context passed to job handlers during execution.
    Supplied by the dispatcher for every job it runs.
    """

    job_type: str
    args: list[Any] = field(default_factory=list)
    job_id: str | None = None
    attempt: int = 1
    max_attempts: int = 1
    worker_id: str | None = None
