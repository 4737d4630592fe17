"""Pydantic schemas for the REST API."""

from cutplan.web.schemas.requests import (
    ConfigValidateRequest,
    JobSubmitRequest,
    OptimizeRequest,
)
from cutplan.web.schemas.responses import (
    ErrorResponseSchema,
    JobCancelSchema,
    JobListSchema,
    JobPurgeSchema,
    JobStatusSchema,
    JobSubmittedSchema,
    ProgressSchema,
    ValidationResultSchema,
)

__all__ = [
    # Requests
    "ConfigValidateRequest",
    "JobSubmitRequest",
    "OptimizeRequest",
    # Responses
    "ErrorResponseSchema",
    "JobCancelSchema",
    "JobListSchema",
    "JobPurgeSchema",
    "JobStatusSchema",
    "JobSubmittedSchema",
    "ProgressSchema",
    "ValidationResultSchema",
]
