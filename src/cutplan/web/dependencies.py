"""FastAPI dependency injection for cut plan services."""

from typing import Annotated

from fastapi import Depends, Request

from cutplan.application.jobs import JobManager


def get_job_manager(request: Request) -> JobManager:
    """Dependency for the application's JobManager."""
    return request.app.state.job_manager


# Type aliases for cleaner endpoint signatures
JobManagerDep = Annotated[JobManager, Depends(get_job_manager)]
