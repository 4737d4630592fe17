"""Synchronous cutting plan endpoint."""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter

from cutplan.application.config import config_to_problem, load_config_from_dict
from cutplan.engine import RunCoordinator
from cutplan.infrastructure import solution_to_dict
from cutplan.web.schemas.requests import OptimizeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/optimize", tags=["optimize"])


@router.post("")
async def optimize_configuration(request: OptimizeRequest) -> dict[str, Any]:
    """Compute a cutting plan and return it when the search ends.

    The search runs in a worker thread and is bounded by the configuration's
    time budget. Use the jobs endpoints for long searches.

    Args:
        request: Request containing the configuration to optimize.

    Returns:
        The cutting plan document.
    """
    config = load_config_from_dict(request.config)
    scaled = config_to_problem(config)
    coordinator = RunCoordinator(scaled.config)
    solution = await asyncio.to_thread(coordinator.run, scaled.problem)
    logger.info("Optimize request finished: %s", solution.status.value)
    return solution_to_dict(solution, scaled.scale)
