"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cutplan.application.jobs import (
    DEFAULT_MAX_CONCURRENT_JOBS,
    DEFAULT_MAX_FINISHED_JOBS,
    JobManager,
)
from cutplan.web.exceptions import register_exception_handlers
from cutplan.web.routers import jobs_router, optimize_router, validate_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.job_manager.shutdown()


def create_app(
    max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
    max_finished_jobs: int | None = DEFAULT_MAX_FINISHED_JOBS,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        max_concurrent_jobs: Jobs allowed to search at the same time.
        max_finished_jobs: Finished jobs kept for polling before the oldest
            are dropped.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Cut Plan API",
        description="REST API for guillotine cutting plan optimization",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.job_manager = JobManager(
        max_concurrent_jobs=max_concurrent_jobs,
        max_finished_jobs=max_finished_jobs,
    )

    # CORS middleware for browser access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure as needed for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(optimize_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")
    app.include_router(validate_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Application instance for ASGI servers (uvicorn)
app = create_app()
