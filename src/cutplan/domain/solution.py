"""Solution model: the cutting plan produced by a run.

A Solution is an immutable snapshot of one candidate plan. Search workers
build them from their private branch state and hand them to the result
aggregator; the run coordinator stamps the final one with its status.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Sequence

from cutplan.domain.errors import InvariantViolationError
from cutplan.domain.geometry import overlaps
from cutplan.domain.value_objects import Cut, Panel, Piece, Placement

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Outcome of an optimization run.

    Attributes:
        COMPLETE: Every requested piece was placed.
        INFEASIBLE: Some pieces cannot be placed with the available stock.
        TIMEOUT_PARTIAL: The budget ran out before a complete plan was found.
        CANCELLED: The caller cancelled the run before a complete plan was
            found.
    """

    COMPLETE = "complete"
    INFEASIBLE = "infeasible"
    TIMEOUT_PARTIAL = "timeout_partial"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SheetLayout:
    """Placements, cuts and leftovers on a single stock sheet.

    Attributes:
        sheet: The stock sheet instance.
        placements: Pieces placed on the sheet.
        cuts: Cuts made on the sheet, in execution order.
        offcuts: Leftover panels (reusable and scrap).
    """

    sheet: Panel
    placements: tuple[Placement, ...]
    cuts: tuple[Cut, ...]
    offcuts: tuple[Panel, ...]

    @property
    def used_area(self) -> int:
        """Area covered by placed pieces."""
        return sum(p.area for p in self.placements)

    @property
    def kerf_loss(self) -> int:
        return sum(c.kerf_loss for c in self.cuts)

    @property
    def offcut_area(self) -> int:
        return sum(o.area for o in self.offcuts)

    @property
    def waste_area(self) -> int:
        """Sheet area not covered by pieces."""
        return self.sheet.area - self.used_area

    @property
    def waste_percentage(self) -> float:
        return self.waste_area / self.sheet.area * 100

    @property
    def piece_count(self) -> int:
        return len(self.placements)


@dataclass(frozen=True)
class Solution:
    """A complete or partial cutting plan.

    Attributes:
        placements: Placed piece units in placement order.
        cuts: All cuts in execution order.
        sheets: Stock sheet instances consumed by the plan.
        offcuts: Leftover panels on the consumed sheets.
        unplaced: Units not placed, per piece id.
        no_fit: Ids of pieces that fit no panel in any orientation.
        status: Outcome of the run that produced the plan.
        exhaustive: True if the search space was fully explored.
        states_explored: Number of search states expanded by the run.
        elapsed: Wall-clock duration of the run in seconds.
        edge_banding: Banding length needed per banding material for the
            placed units.
    """

    placements: tuple[Placement, ...] = ()
    cuts: tuple[Cut, ...] = ()
    sheets: tuple[Panel, ...] = ()
    offcuts: tuple[Panel, ...] = ()
    unplaced: dict[str, int] = field(default_factory=dict)
    no_fit: tuple[str, ...] = ()
    status: RunStatus = RunStatus.COMPLETE
    exhaustive: bool = False
    states_explored: int = 0
    elapsed: float = 0.0
    edge_banding: dict[str, int] = field(default_factory=dict)

    @property
    def feasible(self) -> bool:
        """True when every requested unit was placed."""
        return not self.unplaced and not self.no_fit

    @property
    def placed_area(self) -> int:
        return sum(p.area for p in self.placements)

    @property
    def stock_area(self) -> int:
        """Total area of the consumed sheets."""
        return sum(s.area for s in self.sheets)

    @property
    def total_waste(self) -> int:
        """Consumed stock area not covered by pieces.

        Includes kerf loss, scrap and leftover offcuts.
        """
        return self.stock_area - self.placed_area

    @property
    def total_kerf_loss(self) -> int:
        return sum(c.kerf_loss for c in self.cuts)

    @property
    def total_cuts(self) -> int:
        return len(self.cuts)

    @property
    def panel_usage(self) -> dict[str, int]:
        """Number of sheets consumed per material group."""
        return dict(Counter(sheet.material for sheet in self.sheets))

    @property
    def utilization(self) -> float:
        """Share of the consumed stock area covered by pieces (0 to 1)."""
        if not self.stock_area:
            return 0.0
        return self.placed_area / self.stock_area

    @property
    def biggest_offcut_area(self) -> int:
        """Area of the largest reusable leftover."""
        return max((o.area for o in self.offcuts if o.reusable), default=0)

    @property
    def placement_counts(self) -> dict[str, int]:
        """Placed units per piece id."""
        return dict(Counter(p.piece_id for p in self.placements))

    def layouts(self) -> tuple[SheetLayout, ...]:
        """Group the plan by stock sheet, in the order sheets were opened."""
        placements: dict[str, list[Placement]] = defaultdict(list)
        cuts: dict[str, list[Cut]] = defaultdict(list)
        offcuts: dict[str, list[Panel]] = defaultdict(list)
        for placement in self.placements:
            placements[placement.panel_id].append(placement)
        for cut in self.cuts:
            cuts[cut.sheet_id].append(cut)
        for offcut in self.offcuts:
            offcuts[offcut.sheet_id or offcut.id].append(offcut)

        return tuple(
            SheetLayout(
                sheet=sheet,
                placements=tuple(placements[sheet.id]),
                cuts=tuple(cuts[sheet.id]),
                offcuts=tuple(offcuts[sheet.id]),
            )
            for sheet in self.sheets
        )

    def with_outcome(self, status: RunStatus, **changes: object) -> "Solution":
        """Copy of this solution stamped with a run outcome."""
        return replace(self, status=status, **changes)

    def verify(self, pieces: Sequence[Piece] | None = None) -> None:
        """Check the plan's geometric and quantity invariants.

        Checks area conservation on every sheet, that no two placements on
        a sheet overlap and, when the piece catalog is given, that placed
        plus unplaced units equal the requested quantity of every piece.

        Raises:
            InvariantViolationError: If any invariant is broken.
        """
        for layout in self.layouts():
            accounted = layout.used_area + layout.kerf_loss + layout.offcut_area
            if accounted != layout.sheet.area:
                raise InvariantViolationError(
                    f"Area not conserved on sheet '{layout.sheet.id}': "
                    f"pieces {layout.used_area} + kerf {layout.kerf_loss} + "
                    f"offcuts {layout.offcut_area} != {layout.sheet.area}"
                )
            items = layout.placements
            for i, first in enumerate(items):
                for second in items[i + 1 :]:
                    if overlaps(first, second):
                        raise InvariantViolationError(
                            f"Placements of '{first.piece_id}' and "
                            f"'{second.piece_id}' overlap on sheet "
                            f"'{layout.sheet.id}'"
                        )

        if pieces is None:
            return

        counts = self.placement_counts
        for piece in pieces:
            placed = counts.get(piece.id, 0)
            missing = self.unplaced.get(piece.id, 0)
            if missing < 0 or placed + missing != piece.quantity:
                raise InvariantViolationError(
                    f"Piece '{piece.id}': {placed} placed + {missing} unplaced "
                    f"!= {piece.quantity} requested"
                )
        logger.debug("Solution verified: %d placements", len(self.placements))


def edge_banding_lengths(
    placements: Sequence[Placement], pieces: Sequence[Piece]
) -> dict[str, int]:
    """Total banding length per banding material for placed piece units.

    Lengths follow the piece's own edges, so rotation on the sheet does not
    change them.
    """
    banding = {piece.id: piece for piece in pieces if piece.edge_banding}
    totals: dict[str, int] = {}
    for placement in placements:
        piece = banding.get(placement.piece_id)
        if piece is None:
            continue
        for material, length in piece.edge_banding.lengths(
            piece.width, piece.height
        ).items():
            totals[material] = totals.get(material, 0) + length
    return dict(sorted(totals.items()))
