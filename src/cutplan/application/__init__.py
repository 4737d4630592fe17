"""Application layer - configuration handling and the job service."""

from .jobs import (
    JobActiveError,
    JobFailedError,
    JobManager,
    JobNotFoundError,
    JobRecord,
    JobStatus,
)

__all__ = [
    "JobActiveError",
    "JobFailedError",
    "JobManager",
    "JobNotFoundError",
    "JobRecord",
    "JobStatus",
]
