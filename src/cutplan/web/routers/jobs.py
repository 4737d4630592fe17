"""Asynchronous optimization job endpoints."""

from dataclasses import asdict
from datetime import timedelta

from fastapi import APIRouter, Query, status

from cutplan.application.config import config_to_problem, load_config_from_dict
from cutplan.application.jobs import JobRecord
from cutplan.infrastructure import scale_area, solution_to_dict
from cutplan.web.dependencies import JobManagerDep
from cutplan.web.schemas.requests import JobSubmitRequest
from cutplan.web.schemas.responses import (
    JobCancelSchema,
    JobListSchema,
    JobPurgeSchema,
    JobStatusSchema,
    JobSubmittedSchema,
    ProgressSchema,
)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _record_to_schema(record: JobRecord) -> JobStatusSchema:
    """Convert a JobRecord to its response schema."""
    progress = None
    if record.progress is not None:
        fields = asdict(record.progress)
        if record.progress.best_waste_so_far is not None:
            fields["best_waste_so_far"] = scale_area(
                record.progress.best_waste_so_far, record.scale
            )
        progress = ProgressSchema(**fields)

    return JobStatusSchema(
        job_id=record.id,
        status=record.status.value,
        created_at=record.created_at,
        started_at=record.started_at,
        finished_at=record.finished_at,
        progress=progress,
        solution=(
            solution_to_dict(record.solution, record.scale)
            if record.solution is not None
            else None
        ),
        error=record.error,
    )


@router.post(
    "", response_model=JobSubmittedSchema, status_code=status.HTTP_202_ACCEPTED
)
async def submit_job(
    request: JobSubmitRequest, manager: JobManagerDep
) -> JobSubmittedSchema:
    """Queue a configuration for optimization.

    Returns:
        The new job's id; poll ``GET /jobs/{job_id}`` for its result.
    """
    config = load_config_from_dict(request.config)
    scaled = config_to_problem(config)
    job_id = await manager.submit(scaled.problem, scaled.config, scale=scaled.scale)
    return JobSubmittedSchema(job_id=job_id, status=manager.get(job_id).status.value)


@router.get("", response_model=JobListSchema)
async def list_jobs(manager: JobManagerDep) -> JobListSchema:
    """List all known jobs."""
    return JobListSchema(jobs=[_record_to_schema(r) for r in manager.list_jobs()])


@router.get("/{job_id}", response_model=JobStatusSchema)
async def get_job(job_id: str, manager: JobManagerDep) -> JobStatusSchema:
    """Get a job's status, latest progress and, once finished, its plan."""
    return _record_to_schema(manager.get(job_id))


@router.post("/{job_id}/cancel", response_model=JobCancelSchema)
async def cancel_job(job_id: str, manager: JobManagerDep) -> JobCancelSchema:
    """Request cancellation of a job.

    A running job stops within one search step and keeps its best plan.
    """
    accepted = manager.cancel(job_id)
    return JobCancelSchema(
        job_id=job_id,
        accepted=accepted,
        status=manager.get(job_id).status.value,
    )


@router.delete("", response_model=JobPurgeSchema)
async def purge_jobs(
    manager: JobManagerDep,
    older_than: float | None = Query(
        default=None,
        ge=0,
        description="Only purge jobs finished at least this many seconds ago",
    ),
) -> JobPurgeSchema:
    """Forget finished jobs. Queued and running jobs are kept."""
    removed = manager.purge_finished(
        timedelta(seconds=older_than) if older_than is not None else None
    )
    return JobPurgeSchema(removed=removed)


@router.delete("/{job_id}", response_model=JobStatusSchema)
async def delete_job(job_id: str, manager: JobManagerDep) -> JobStatusSchema:
    """Forget a finished job and return its last state.

    A queued or running job is refused with 409; cancel it first.
    """
    return _record_to_schema(manager.remove(job_id))
