"""Normalized optimization problem and run configuration."""

from __future__ import annotations

import os
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from cutplan.domain.errors import InvalidInputError
from cutplan.domain.value_objects import OriginKind, Panel, Piece


class PieceOrder(str, Enum):
    """Heuristic used to pick the next piece to place.

    Every heuristic places bigger pieces first; ties are broken by piece id
    so the order is reproducible.

    Attributes:
        AREA: Largest area first.
        LONGEST_SIDE: Longest side first, then area.
        PERIMETER: Largest perimeter first, then area.
    """

    AREA = "area"
    LONGEST_SIDE = "longest_side"
    PERIMETER = "perimeter"


class OptimizationPriority(str, Enum):
    """What a plan is ranked on first.

    Plans compare by a two-part key; lower is better. A plan that ties
    another on both parts does not replace it.

    Attributes:
        LEAST_WASTE: Lowest total waste, then fewest cuts.
        FEWEST_CUTS: Fewest cuts, then lowest total waste.
    """

    LEAST_WASTE = "least_waste"
    FEWEST_CUTS = "fewest_cuts"

    def rank(self, waste: int, cuts: int) -> tuple[int, int]:
        """Ranking key of a plan with the given waste and cut count."""
        if self is OptimizationPriority.FEWEST_CUTS:
            return (cuts, waste)
        return (waste, cuts)


@dataclass(frozen=True)
class OptimizerConfig:
    """Configuration for a single optimization run.

    Attributes:
        kerf: Saw blade width in length units.
        allow_rotation: Default rotation policy for pieces that do not set
            ``rotatable`` explicitly.
        time_budget: Wall-clock budget in seconds.
        step_budget: Optional cap on the number of search states explored.
        parallelism: Worker threads; ``None`` uses the hardware parallelism.
        min_useful_area: Offcuts with a smaller area are scrapped.
        split_depth: Number of top search levels expanded before the
            frontier is handed to the worker pool.
        use_cache: Whether the shared memo cache is consulted.
        cache_max_entries: Optional cap on memo entries (LRU drop).
        cache_shards: Number of independently locked cache shards.
        piece_order: Piece selection heuristic.
        optimization_priority: How complete plans are ranked.
        progress_interval: Minimum seconds between progress snapshots.
    """

    kerf: int = 0
    allow_rotation: bool = True
    time_budget: float = 10.0
    step_budget: int | None = None
    parallelism: int | None = None
    min_useful_area: int = 0
    split_depth: int = 1
    use_cache: bool = True
    cache_max_entries: int | None = None
    cache_shards: int = 64
    piece_order: PieceOrder = PieceOrder.AREA
    optimization_priority: OptimizationPriority = OptimizationPriority.LEAST_WASTE
    progress_interval: float = 0.5

    def __post_init__(self) -> None:
        if self.kerf < 0:
            raise InvalidInputError("Kerf must be non-negative", field="kerf")
        if self.time_budget <= 0:
            raise InvalidInputError("Time budget must be positive", field="time_budget")
        if self.step_budget is not None and self.step_budget < 1:
            raise InvalidInputError("Step budget must be at least 1", field="step_budget")
        if self.parallelism is not None and self.parallelism < 1:
            raise InvalidInputError("Parallelism must be at least 1", field="parallelism")
        if self.min_useful_area < 0:
            raise InvalidInputError(
                "Minimum useful area must be non-negative", field="min_useful_area"
            )
        if self.split_depth < 0:
            raise InvalidInputError("Split depth must be non-negative", field="split_depth")
        if self.cache_max_entries is not None and self.cache_max_entries < 1:
            raise InvalidInputError(
                "Cache entry cap must be at least 1", field="cache_max_entries"
            )
        if self.cache_shards < 1:
            raise InvalidInputError("Cache shards must be at least 1", field="cache_shards")
        if self.progress_interval <= 0:
            raise InvalidInputError(
                "Progress interval must be positive", field="progress_interval"
            )

    @property
    def workers(self) -> int:
        """Effective worker count."""
        return self.parallelism or os.cpu_count() or 1


@dataclass(frozen=True)
class Problem:
    """A normalized cutting problem: stock inventory and required pieces.

    Attributes:
        panels: Stock panels, each carrying the number of units available.
        pieces: Required pieces, each carrying the number of units needed.
    """

    panels: tuple[Panel, ...]
    pieces: tuple[Piece, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "panels", tuple(self.panels))
        object.__setattr__(self, "pieces", tuple(self.pieces))

    @classmethod
    def of(cls, panels: Sequence[Panel], pieces: Sequence[Piece]) -> "Problem":
        """Build a problem from any sequences of panels and pieces."""
        return cls(panels=tuple(panels), pieces=tuple(pieces))

    def validate(self) -> None:
        """Reject problems that cannot be searched.

        Raises:
            InvalidInputError: If there are no pieces or no panels, if ids
                repeat, or if an input panel is not stock.
        """
        if not self.pieces:
            raise InvalidInputError("Problem has no pieces", field="pieces")
        if not self.panels:
            raise InvalidInputError("Problem has no panels", field="panels")

        for kind, ids in (
            ("panel", [panel.id for panel in self.panels]),
            ("piece", [piece.id for piece in self.pieces]),
        ):
            duplicates = sorted(i for i, n in Counter(ids).items() if n > 1)
            if duplicates:
                raise InvalidInputError(
                    f"Duplicate {kind} ids: {', '.join(duplicates)}", field=f"{kind}s"
                )

        for panel in self.panels:
            if panel.origin is not OriginKind.STOCK:
                raise InvalidInputError(
                    f"Input panel '{panel.id}' must be stock", field="panels"
                )

    @property
    def requested(self) -> dict[str, int]:
        """Requested quantity per piece id."""
        return {piece.id: piece.quantity for piece in self.pieces}

    @property
    def total_piece_area(self) -> int:
        return sum(piece.total_area for piece in self.pieces)

    @property
    def total_stock_area(self) -> int:
        return sum(panel.area * panel.quantity for panel in self.panels)
