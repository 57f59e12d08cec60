"""
Type definitions exchanged with the job dispatcher.
"""

from joblock.types.job import JobContext, JobResult

__all__ = [
    "JobContext",
    "JobResult",
]
