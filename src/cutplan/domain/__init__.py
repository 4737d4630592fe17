"""Domain layer - geometry model, problem and solution types."""

from .errors import CutPlanError, InvalidInputError, InvariantViolationError
from .geometry import (
    can_rotate,
    dimension_fits,
    effective_dimensions,
    effective_grain,
    fits,
    grain_compatible,
    orientations,
    overlaps,
)
from .problem import OptimizationPriority, OptimizerConfig, PieceOrder, Problem
from .solution import RunStatus, SheetLayout, Solution, edge_banding_lengths
from .value_objects import (
    DEFAULT_MATERIAL,
    Cut,
    EdgeBanding,
    GrainDirection,
    OriginKind,
    Panel,
    Piece,
    Placement,
    SplitAxis,
)

__all__ = [
    "Cut",
    "CutPlanError",
    "DEFAULT_MATERIAL",
    "EdgeBanding",
    "GrainDirection",
    "InvalidInputError",
    "InvariantViolationError",
    "OptimizationPriority",
    "OptimizerConfig",
    "OriginKind",
    "Panel",
    "Piece",
    "PieceOrder",
    "Placement",
    "Problem",
    "RunStatus",
    "SheetLayout",
    "Solution",
    "SplitAxis",
    "can_rotate",
    "dimension_fits",
    "effective_dimensions",
    "edge_banding_lengths",
    "effective_grain",
    "fits",
    "grain_compatible",
    "orientations",
    "overlaps",
]
