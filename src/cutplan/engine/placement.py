"""Placement engine: guillotine splits of a panel around one piece.

Given a piece and a panel, the engine enumerates every admissible way to
carve the piece out of the panel's bottom-left corner with full-length
guillotine cuts. Each way is returned as a CutCandidate carrying the
placement, the cuts in execution order and the resulting offcuts.

Two split strategies exist when both dimensions need a cut:

- Horizontal first: cut across the full width just above the piece, then
  cut the bottom strip just right of the piece.
- Vertical first: cut across the full height just right of the piece, then
  cut the left strip just above the piece.

When only one dimension differs a single cut suffices, and an exact fit
needs no cut at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cutplan.domain.errors import InvariantViolationError
from cutplan.domain.geometry import effective_dimensions, orientations
from cutplan.domain.value_objects import (
    Cut,
    OriginKind,
    Panel,
    Piece,
    Placement,
    SplitAxis,
)


class SplitStrategy(str, Enum):
    """How a panel is split around a placed piece."""

    EXACT = "exact"
    SINGLE = "single"
    HORIZONTAL_FIRST = "horizontal_first"
    VERTICAL_FIRST = "vertical_first"


@dataclass(frozen=True)
class CutCandidate:
    """One admissible way to place a piece on a panel.

    Attributes:
        source: The panel the piece is cut from.
        placement: Where the piece ends up on its sheet.
        cuts: Cuts in execution order.
        offcuts: Leftover panels, reusable ones and scrap alike.
        strategy: Split strategy that produced the candidate.
    """

    source: Panel
    placement: Placement
    cuts: tuple[Cut, ...]
    offcuts: tuple[Panel, ...]
    strategy: SplitStrategy

    @property
    def kerf_loss(self) -> int:
        return sum(cut.kerf_loss for cut in self.cuts)

    @property
    def reusable_offcuts(self) -> tuple[Panel, ...]:
        return tuple(o for o in self.offcuts if o.reusable)

    @property
    def scrap(self) -> tuple[Panel, ...]:
        return tuple(o for o in self.offcuts if not o.reusable)

    @property
    def waste_area(self) -> int:
        """Area lost for good by this placement: kerf plus scrapped offcuts."""
        return self.kerf_loss + sum(o.area for o in self.scrap)

    @property
    def leftover_area(self) -> int:
        """Area returned to the pool of reusable panels."""
        return sum(o.area for o in self.reusable_offcuts)


class PlacementEngine:
    """Enumerates guillotine placements of pieces on panels.

    The engine is stateless apart from its settings and is shared by all
    search workers.

    Attributes:
        kerf: Saw blade width.
        min_useful_area: Offcuts smaller than this are marked as scrap.
        default_rotatable: Rotation policy for pieces that do not set one.
    """

    def __init__(
        self,
        kerf: int = 0,
        min_useful_area: int = 0,
        default_rotatable: bool = True,
    ) -> None:
        """Initialize the engine.

        Args:
            kerf: Saw blade width, non-negative.
            min_useful_area: Minimum area of a reusable offcut.
            default_rotatable: Whether pieces without an explicit rotation
                flag may be rotated.
        """
        if kerf < 0:
            raise ValueError("Kerf must be non-negative")
        self.kerf = kerf
        self.min_useful_area = min_useful_area
        self.default_rotatable = default_rotatable

    def place(self, piece: Piece, panel: Panel) -> tuple[CutCandidate, ...]:
        """Enumerate every admissible placement of a piece on a panel.

        Candidates come out in a fixed order: unrotated before rotated, and
        within an orientation horizontal-first before vertical-first.

        Args:
            piece: The piece to place.
            panel: A free panel (stock sheet instance or offcut).

        Returns:
            Tuple of candidates, empty if the piece does not fit.

        Raises:
            InvariantViolationError: If a split does not conserve area.
        """
        candidates: list[CutCandidate] = []
        for rotated in orientations(piece, panel, self.kerf, self.default_rotatable):
            width, height = effective_dimensions(piece, rotated)
            for strategy in self._strategies(width, height, panel):
                candidates.append(
                    self._split(piece, panel, width, height, rotated, strategy)
                )
        return tuple(candidates)

    def _strategies(
        self, width: int, height: int, panel: Panel
    ) -> tuple[SplitStrategy, ...]:
        needs_vertical = width < panel.width
        needs_horizontal = height < panel.height
        if needs_vertical and needs_horizontal:
            return (SplitStrategy.HORIZONTAL_FIRST, SplitStrategy.VERTICAL_FIRST)
        if needs_vertical or needs_horizontal:
            return (SplitStrategy.SINGLE,)
        return (SplitStrategy.EXACT,)

    def _split(
        self,
        piece: Piece,
        panel: Panel,
        width: int,
        height: int,
        rotated: bool,
        strategy: SplitStrategy,
    ) -> CutCandidate:
        cuts: list[Cut] = []
        offcuts: list[Panel | None] = []

        if strategy is SplitStrategy.SINGLE:
            if width < panel.width:
                cut = self._cut(panel, SplitAxis.VERTICAL, width)
            else:
                cut = self._cut(panel, SplitAxis.HORIZONTAL, height)
            cuts.append(cut)
            offcuts.append(cut.second)
        elif strategy is SplitStrategy.HORIZONTAL_FIRST:
            across = self._cut(panel, SplitAxis.HORIZONTAL, height)
            strip = _require(across.first, panel)
            inner = self._cut(strip, SplitAxis.VERTICAL, width)
            cuts.extend((across, inner))
            offcuts.extend((inner.second, across.second))
        elif strategy is SplitStrategy.VERTICAL_FIRST:
            across = self._cut(panel, SplitAxis.VERTICAL, width)
            strip = _require(across.first, panel)
            inner = self._cut(strip, SplitAxis.HORIZONTAL, height)
            cuts.extend((across, inner))
            offcuts.extend((inner.second, across.second))

        kerf_right = self.kerf if width < panel.width else 0
        kerf_top = self.kerf if height < panel.height else 0
        placement = Placement(
            piece_id=piece.id,
            panel_id=panel.sheet_id or panel.id,
            x=panel.x,
            y=panel.y,
            width=width,
            height=height,
            rotated=rotated,
            kerf_right=kerf_right,
            kerf_top=kerf_top,
        )
        candidate = CutCandidate(
            source=panel,
            placement=placement,
            cuts=tuple(cuts),
            offcuts=tuple(o for o in offcuts if o is not None),
            strategy=strategy,
        )

        accounted = placement.area + candidate.kerf_loss + sum(
            o.area for o in candidate.offcuts
        )
        if accounted != panel.area:
            raise InvariantViolationError(
                f"Split of panel '{panel.id}' for piece '{piece.id}' "
                f"({strategy.value}) accounts for {accounted} of {panel.area}"
            )
        return candidate

    def _cut(self, panel: Panel, axis: SplitAxis, offset: int) -> Cut:
        """Cut a panel at ``offset`` from its bottom (or left) edge."""
        kerf = self.kerf
        if axis is SplitAxis.HORIZONTAL:
            first = self._child(panel, "b", panel.x, panel.y, panel.width, offset)
            second = self._child(
                panel,
                "t",
                panel.x,
                panel.y + offset + kerf,
                panel.width,
                panel.height - offset - kerf,
            )
            position, length = panel.y + offset, panel.width
        else:
            first = self._child(panel, "l", panel.x, panel.y, offset, panel.height)
            second = self._child(
                panel,
                "r",
                panel.x + offset + kerf,
                panel.y,
                panel.width - offset - kerf,
                panel.height,
            )
            position, length = panel.x + offset, panel.height

        return Cut(
            panel_id=panel.id,
            sheet_id=panel.sheet_id or panel.id,
            axis=axis,
            position=position,
            length=length,
            kerf=kerf,
            first=first,
            second=second,
        )

    def _child(
        self, parent: Panel, suffix: str, x: int, y: int, width: int, height: int
    ) -> Panel | None:
        if width <= 0 or height <= 0:
            return None
        return Panel(
            id=f"{parent.id}/{suffix}",
            width=width,
            height=height,
            material=parent.material,
            grain=parent.grain,
            origin=OriginKind.OFFCUT,
            parent_id=parent.id,
            sheet_id=parent.sheet_id or parent.id,
            x=x,
            y=y,
            reusable=width * height >= self.min_useful_area,
        )


def _require(child: Panel | None, parent: Panel) -> Panel:
    if child is None:
        raise InvariantViolationError(f"Cut of panel '{parent.id}' lost the piece side")
    return child
