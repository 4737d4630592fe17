"""Search state and the immutable catalog it refers to.

A SearchState is one node of the search tree: what is still to be placed,
which panels are free, how much stock is still unopened and the partial
plan built so far. States are immutable; expanding a state builds new
ones, so a worker owns its states outright and never shares them.

The SearchCatalog holds everything that does not change during a run
(pieces, stock, orderings, per-material indexes) and knows how to derive
per-state facts: the next piece to place, the canonical signature used by
the memo cache and a lower bound on the final waste.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from cutplan.domain.geometry import can_rotate
from cutplan.domain.problem import PieceOrder
from cutplan.domain.solution import RunStatus, Solution
from cutplan.domain.value_objects import Cut, OriginKind, Panel, Piece, Placement

Signature = tuple


@dataclass(frozen=True)
class SearchState:
    """One node of the search tree.

    Attributes:
        demand: Units still to place, per piece index.
        free: Reusable free panels, in canonical order.
        stock: Unopened units, per stock index.
        sheets: Stock sheet instances opened so far.
        placements: Placements made so far.
        cuts: Cuts made so far.
        scrap: Offcuts too small to reuse.
        waste: Committed waste: kerf loss plus scrap area.
        placed_area: Area covered by placements.
    """

    demand: tuple[int, ...]
    free: tuple[Panel, ...]
    stock: tuple[int, ...]
    sheets: tuple[Panel, ...] = ()
    placements: tuple[Placement, ...] = ()
    cuts: tuple[Cut, ...] = ()
    scrap: tuple[Panel, ...] = ()
    waste: int = 0
    placed_area: int = 0

    @property
    def is_complete(self) -> bool:
        return not any(self.demand)

    @property
    def depth(self) -> int:
        return len(self.placements)

    @property
    def free_area(self) -> int:
        return sum(panel.area for panel in self.free)


def free_panel_order(panel: Panel) -> tuple:
    """Canonical order of free panels: smallest first, then by identity."""
    return (panel.area, panel.width, panel.height, panel.material, panel.id)


class SearchCatalog:
    """Run-wide immutable data shared by all search workers.

    Attributes:
        pieces: Pieces to place, indexed by position.
        stock: Stock panels, indexed by position.
        default_rotatable: Rotation policy for pieces without a flag.
        order: Piece indices in selection order.
        materials: Material groups present among pieces.
    """

    def __init__(
        self,
        pieces: Sequence[Piece],
        stock: Sequence[Panel],
        default_rotatable: bool = True,
        piece_order: PieceOrder = PieceOrder.AREA,
    ) -> None:
        self.pieces = tuple(pieces)
        self.stock = tuple(stock)
        self.default_rotatable = default_rotatable
        self.order = tuple(
            sorted(
                range(len(self.pieces)),
                key=lambda i: _order_key(self.pieces[i], piece_order),
            )
        )
        self.piece_keys = tuple(
            (
                piece.width,
                piece.height,
                piece.grain.value,
                can_rotate(piece, default_rotatable),
            )
            for piece in self.pieces
        )
        self.materials = tuple(sorted({piece.material for piece in self.pieces}))
        self._pieces_by_material = {
            material: tuple(
                i for i, piece in enumerate(self.pieces) if piece.material == material
            )
            for material in self.materials
        }
        self._stock_by_material = {
            material: tuple(
                i for i, panel in enumerate(self.stock) if panel.material == material
            )
            for material in self.materials
        }

    def root(self) -> SearchState:
        """The empty plan: nothing placed, all stock unopened."""
        return SearchState(
            demand=tuple(piece.quantity for piece in self.pieces),
            free=(),
            stock=tuple(panel.quantity for panel in self.stock),
        )

    def select_piece(self, state: SearchState) -> int | None:
        """Index of the next piece to place, or None if nothing remains."""
        for index in self.order:
            if state.demand[index]:
                return index
        return None

    def open_sheet(self, stock_index: int, remaining: int) -> Panel:
        """Materialize the next unopened unit of a stock panel as a sheet."""
        stock = self.stock[stock_index]
        number = stock.quantity - remaining + 1
        sheet_id = f"{stock.id}#{number}"
        return Panel(
            id=sheet_id,
            width=stock.width,
            height=stock.height,
            material=stock.material,
            grain=stock.grain,
            origin=OriginKind.STOCK,
            sheet_id=sheet_id,
        )

    def signature(self, state: SearchState) -> Signature:
        """Canonical, identity-free description of what is left to solve.

        Two states with equal signatures have identical remaining problems:
        the same multiset of pieces to place, of free panel shapes and of
        unopened stock, per material group. Placement history and panel ids
        are deliberately left out.
        """
        groups = []
        for material in self.materials:
            demand: Counter[tuple] = Counter()
            for i in self._pieces_by_material[material]:
                if state.demand[i]:
                    demand[self.piece_keys[i]] += state.demand[i]
            free = tuple(
                sorted(
                    Counter(
                        panel.shape_key
                        for panel in state.free
                        if panel.material == material
                    ).items()
                )
            )
            stock = tuple(
                sorted(
                    (self.stock[i].shape_key, state.stock[i])
                    for i in self._stock_by_material[material]
                    if state.stock[i]
                )
            )
            groups.append((material, tuple(sorted(demand.items())), free, stock))
        return tuple(groups)

    def lower_bound(self, state: SearchState) -> int | None:
        """Lower bound on the waste still to be added to ``state.waste``.

        Per material group, let R be the remaining piece area and F the
        free panel area. If R fits in F by area, at least F - R is left
        over. Otherwise a new sheet must be opened, and at least the
        smallest remaining sheet's area minus the shortfall is left over.

        Returns:
            The bound, or None if some group's remaining demand exceeds all
            the area still available to it.
        """
        bound = 0
        for material in self.materials:
            remaining = sum(
                state.demand[i] * self.pieces[i].area
                for i in self._pieces_by_material[material]
            )
            free = sum(p.area for p in state.free if p.material == material)
            if remaining <= free:
                bound += free - remaining
                continue
            sizes = [
                self.stock[i].area
                for i in self._stock_by_material[material]
                if state.stock[i]
            ]
            unopened = sum(
                self.stock[i].area * state.stock[i]
                for i in self._stock_by_material[material]
            )
            if not sizes or free + unopened < remaining:
                return None
            bound += max(0, free + min(sizes) - remaining)
        return bound

    def to_solution(self, state: SearchState) -> Solution:
        """Snapshot a state as a plan.

        The status is provisional; the run coordinator stamps the final one.
        """
        unplaced = {
            self.pieces[i].id: count for i, count in enumerate(state.demand) if count
        }
        return Solution(
            placements=state.placements,
            cuts=state.cuts,
            sheets=state.sheets,
            offcuts=state.free + state.scrap,
            unplaced=unplaced,
            status=RunStatus.COMPLETE if not unplaced else RunStatus.INFEASIBLE,
        )


def _order_key(piece: Piece, order: PieceOrder) -> tuple:
    if order is PieceOrder.LONGEST_SIDE:
        return (-max(piece.width, piece.height), -piece.area, piece.id)
    if order is PieceOrder.PERIMETER:
        return (-(piece.width + piece.height), -piece.area, piece.id)
    return (-piece.area, piece.id)
