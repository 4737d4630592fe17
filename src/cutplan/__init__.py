"""Guillotine cutting-stock optimizer.

Cuts rectangular pieces from stock panels with straight edge-to-edge cuts,
minimizing waste under a time budget.

Example:
    >>> from cutplan import OptimizerConfig, Panel, Piece, Problem, optimize
    >>> problem = Problem.of(
    ...     panels=[Panel(id="sheet", width=2000, height=1000)],
    ...     pieces=[Piece(id="door", width=1000, height=1000, quantity=2)],
    ... )
    >>> solution = optimize(problem, OptimizerConfig(kerf=0))
    >>> solution.total_waste
    0
"""

from cutplan.domain import (
    CutPlanError,
    GrainDirection,
    InvalidInputError,
    OptimizerConfig,
    Panel,
    Piece,
    Problem,
    RunStatus,
    Solution,
)
from cutplan.engine import CancellationToken, RunCoordinator, optimize

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "CutPlanError",
    "GrainDirection",
    "InvalidInputError",
    "OptimizerConfig",
    "Panel",
    "Piece",
    "Problem",
    "RunCoordinator",
    "RunStatus",
    "Solution",
    "optimize",
]
