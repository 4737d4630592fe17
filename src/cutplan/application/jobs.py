"""Asynchronous job layer over the run coordinator.

A JobManager lets an asyncio application (the HTTP API) run several
optimizations at once. Each job gets its own RunCoordinator, cancellation
token and cache; jobs share nothing but the manager's bookkeeping. The
blocking search runs in a worker thread through ``asyncio.to_thread`` and
a semaphore bounds how many jobs search at the same time.
Finished jobs are kept for polling until they are removed, purged, or
pushed out by the retention limit on finished records.

Example:
    >>> manager = JobManager(max_concurrent_jobs=2)
    >>> job_id = await manager.submit(problem, OptimizerConfig(time_budget=5))
    >>> async for snapshot in manager.progress(job_id):
    ...     print(snapshot.states_explored)
    >>> solution = await manager.wait(job_id)
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import AsyncIterator

from cutplan.domain.errors import CutPlanError
from cutplan.domain.problem import OptimizerConfig, Problem
from cutplan.domain.solution import RunStatus, Solution
from cutplan.engine.control import CancellationToken, ProgressSnapshot
from cutplan.engine.coordinator import RunCoordinator

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_JOBS = 2
DEFAULT_MAX_FINISHED_JOBS = 100


class JobStatus(str, Enum):
    """Lifecycle state of an optimization job."""

    QUEUED = "queued"
    RUNNING = "running"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {JobStatus.FINISHED, JobStatus.CANCELLED, JobStatus.FAILED}
)


class JobNotFoundError(CutPlanError, KeyError):
    """Raised when a job id is unknown to the manager."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")

    def __str__(self) -> str:
        return f"Job not found: {self.job_id}"


class JobActiveError(CutPlanError):
    """Raised when removing a job that has not reached a terminal state."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} is still active; cancel it first")


class JobFailedError(CutPlanError):
    """Raised by ``JobManager.wait`` when the job's run raised."""

    def __init__(self, job_id: str, error: str) -> None:
        self.job_id = job_id
        self.error = error
        super().__init__(f"Job {job_id} failed: {error}")


@dataclass
class JobRecord:
    """Bookkeeping for one job.

    Attributes:
        id: Job identifier.
        status: Current lifecycle state.
        scale: Integer units per configuration unit, for reporting.
        created_at: Submission time (UTC).
        started_at: Time the search started, if it has.
        finished_at: Time the job reached a terminal state.
        progress: Latest progress snapshot.
        solution: Final solution once the run returned.
        error: Error message if the run raised.
    """

    id: str
    status: JobStatus = JobStatus.QUEUED
    scale: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    finished_at: datetime | None = None
    progress: ProgressSnapshot | None = None
    solution: Solution | None = None
    error: str | None = None
    token: CancellationToken = field(default_factory=CancellationToken, repr=False)
    task: asyncio.Task | None = field(default=None, repr=False)
    listeners: list[asyncio.Queue] = field(default_factory=list, repr=False)

    @property
    def done(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobManager:
    """Runs optimization jobs concurrently on the running event loop.

    Attributes:
        max_concurrent_jobs: Upper bound on jobs searching at once; further
            jobs wait in the ``queued`` state.
        max_finished_jobs: Finished records kept for polling; the oldest
            are dropped once more jobs have finished. None keeps them all.
    """

    def __init__(
        self,
        max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
        max_finished_jobs: int | None = DEFAULT_MAX_FINISHED_JOBS,
    ) -> None:
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")
        if max_finished_jobs is not None and max_finished_jobs < 0:
            raise ValueError("max_finished_jobs must not be negative")
        self.max_concurrent_jobs = max_concurrent_jobs
        self.max_finished_jobs = max_finished_jobs
        self._semaphore = asyncio.Semaphore(max_concurrent_jobs)
        self._jobs: dict[str, JobRecord] = {}

    async def submit(
        self,
        problem: Problem,
        config: OptimizerConfig | None = None,
        scale: int = 1,
    ) -> str:
        """Queue a problem for optimization.

        The problem is validated before the job is created, so malformed
        input fails the submission rather than the job.

        Returns:
            The new job's id.

        Raises:
            InvalidInputError: If the problem is malformed.
        """
        problem.validate()
        record = JobRecord(id=uuid.uuid4().hex, scale=scale)
        self._jobs[record.id] = record
        record.task = asyncio.create_task(
            self._run(record, problem, config or OptimizerConfig()),
            name=f"cutplan-job-{record.id}",
        )
        logger.info("Job %s queued (%d pieces)", record.id, len(problem.pieces))
        return record.id

    def get(self, job_id: str) -> JobRecord:
        """Look up a job.

        Raises:
            JobNotFoundError: If the id is unknown.
        """
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(job_id) from None

    def list_jobs(self) -> list[JobRecord]:
        """All known jobs, oldest first."""
        return sorted(self._jobs.values(), key=lambda record: record.created_at)

    def cancel(self, job_id: str) -> bool:
        """Request cancellation of a job.

        A queued job is cancelled before it starts searching; a running job
        stops within one search step and keeps its best plan so far.

        Returns:
            True if the request was accepted, False if the job had already
            finished.
        """
        record = self.get(job_id)
        if record.done:
            return False
        record.token.cancel()
        logger.info("Job %s cancellation requested", job_id)
        return True

    def remove(self, job_id: str) -> JobRecord:
        """Forget a finished job.

        Returns:
            The removed record.

        Raises:
            JobNotFoundError: If the id is unknown.
            JobActiveError: If the job is queued or running.
        """
        record = self.get(job_id)
        if not record.done:
            raise JobActiveError(job_id)
        del self._jobs[job_id]
        logger.info("Job %s removed", job_id)
        return record

    def purge_finished(self, older_than: timedelta | None = None) -> int:
        """Forget finished jobs, optionally only those finished long enough ago.

        Returns:
            Number of records removed.
        """
        cutoff = None
        if older_than is not None:
            cutoff = datetime.now(timezone.utc) - older_than
        expired = [
            record.id
            for record in self._jobs.values()
            if record.done
            and (cutoff is None or (record.finished_at or record.created_at) <= cutoff)
        ]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            logger.info("Purged %d finished jobs", len(expired))
        return len(expired)

    async def wait(self, job_id: str, timeout: float | None = None) -> Solution | None:
        """Wait for a job to reach a terminal state.

        Returns:
            The job's solution, or None if it was cancelled before starting.

        Raises:
            JobNotFoundError: If the id is unknown.
            JobFailedError: If the run raised.
            asyncio.TimeoutError: If the timeout elapsed first.
        """
        record = self.get(job_id)
        if record.task is not None:
            await asyncio.wait_for(asyncio.shield(record.task), timeout)
        if record.status is JobStatus.FAILED:
            raise JobFailedError(job_id, record.error or "unknown error")
        return record.solution

    async def progress(self, job_id: str) -> AsyncIterator[ProgressSnapshot]:
        """Yield progress snapshots until the job ends.

        A job that has already ended yields its last snapshot, if any.
        """
        record = self.get(job_id)
        if record.done:
            if record.progress is not None:
                yield record.progress
            return

        queue: asyncio.Queue[ProgressSnapshot | None] = asyncio.Queue()
        record.listeners.append(queue)
        try:
            while True:
                snapshot = await queue.get()
                if snapshot is None:
                    return
                yield snapshot
        finally:
            record.listeners.remove(queue)

    async def shutdown(self) -> None:
        """Cancel every unfinished job and wait for all of them."""
        tasks = []
        for record in self._jobs.values():
            if not record.done:
                record.token.cancel()
            if record.task is not None:
                tasks.append(record.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Job manager shut down (%d jobs)", len(self._jobs))

    async def _run(
        self, record: JobRecord, problem: Problem, config: OptimizerConfig
    ) -> None:
        async with self._semaphore:
            if record.token.cancelled:
                record.status = JobStatus.CANCELLED
                self._finish(record)
                logger.info("Job %s cancelled before start", record.id)
                return

            record.status = JobStatus.RUNNING
            record.started_at = datetime.now(timezone.utc)
            logger.info("Job %s running", record.id)

            loop = asyncio.get_running_loop()

            def on_progress(snapshot: ProgressSnapshot) -> None:
                loop.call_soon_threadsafe(self._publish, record, snapshot)

            coordinator = RunCoordinator(config, on_progress, record.token)
            try:
                solution = await asyncio.to_thread(coordinator.run, problem)
            except Exception as exc:
                record.status = JobStatus.FAILED
                record.error = str(exc)
                logger.exception("Job %s failed", record.id)
            else:
                record.solution = solution
                record.status = (
                    JobStatus.CANCELLED
                    if solution.status is RunStatus.CANCELLED
                    else JobStatus.FINISHED
                )
                logger.info(
                    "Job %s %s: %s",
                    record.id,
                    record.status.value,
                    solution.status.value,
                )
            finally:
                self._finish(record)

    def _publish(self, record: JobRecord, snapshot: ProgressSnapshot) -> None:
        record.progress = snapshot
        for queue in record.listeners:
            queue.put_nowait(snapshot)

    def _finish(self, record: JobRecord) -> None:
        record.finished_at = datetime.now(timezone.utc)
        for queue in record.listeners:
            queue.put_nowait(None)
        self._enforce_retention()

    def _enforce_retention(self) -> None:
        if self.max_finished_jobs is None:
            return
        finished = sorted(
            (record for record in self._jobs.values() if record.done),
            key=lambda record: record.finished_at or record.created_at,
        )
        excess = len(finished) - self.max_finished_jobs
        for record in finished[: max(excess, 0)]:
            del self._jobs[record.id]
            logger.debug("Job %s dropped by retention limit", record.id)
