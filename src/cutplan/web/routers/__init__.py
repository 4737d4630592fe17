"""API routers for the REST API."""

from cutplan.web.routers.jobs import router as jobs_router
from cutplan.web.routers.optimize import router as optimize_router
from cutplan.web.routers.validate import router as validate_router

__all__ = [
    "jobs_router",
    "optimize_router",
    "validate_router",
]
