"""Pydantic response schemas for the REST API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ProgressSchema(BaseModel):
    """Latest progress report of a running search."""

    states_explored: int = Field(..., description="Search states explored so far")
    cache_entries: int = Field(..., description="Entries in the memo cache")
    cache_hit_ratio: float = Field(..., description="Memo cache hit ratio")
    best_waste_so_far: float | None = Field(
        default=None, description="Waste of the best complete plan found so far"
    )
    elapsed_time: float = Field(..., description="Seconds since the search started")


class JobSubmittedSchema(BaseModel):
    """Response for job submission."""

    job_id: str = Field(..., description="Identifier of the new job")
    status: str = Field(..., description="Initial job status")


class JobStatusSchema(BaseModel):
    """Status of one optimization job."""

    job_id: str = Field(..., description="Job identifier")
    status: str = Field(..., description="Job lifecycle status")
    created_at: datetime = Field(..., description="Submission time")
    started_at: datetime | None = Field(default=None, description="Search start time")
    finished_at: datetime | None = Field(default=None, description="Completion time")
    progress: ProgressSchema | None = Field(
        default=None, description="Latest progress report"
    )
    solution: dict[str, Any] | None = Field(
        default=None, description="Cutting plan once the job has finished"
    )
    error: str | None = Field(default=None, description="Error message if it failed")


class JobListSchema(BaseModel):
    """Response for job listing."""

    jobs: list[JobStatusSchema] = Field(..., description="Known jobs, oldest first")


class JobCancelSchema(BaseModel):
    """Response for a cancellation request."""

    job_id: str = Field(..., description="Job identifier")
    accepted: bool = Field(
        ..., description="False when the job had already finished"
    )
    status: str = Field(..., description="Job status after the request")


class ValidationResultSchema(BaseModel):
    """Response for configuration validation."""

    is_valid: bool = Field(..., description="Whether configuration is valid")
    errors: list[dict[str, Any]] = Field(
        default_factory=list, description="Validation errors"
    )
    warnings: list[dict[str, Any]] = Field(
        default_factory=list, description="Validation warnings"
    )
    materials: list[dict[str, Any]] = Field(
        default_factory=list, description="Demanded and stocked area per material"
    )


class ErrorResponseSchema(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    error_type: str = Field(..., description="Error category")
    details: Any = Field(default=None, description="Additional error details")


class JobPurgeSchema(BaseModel):
    """Response for purging finished jobs."""

    removed: int = Field(..., description="Number of finished jobs forgotten")
