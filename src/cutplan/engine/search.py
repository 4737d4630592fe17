"""Search orchestrator: depth-first branch and bound over placements.

Each search step picks the next piece (largest first), enumerates every
panel it could go on (free offcuts of its material, then one fresh sheet per
stock type with units left) and every placement the engine offers there,
and pushes the resulting states best-first onto an explicit stack.

Plans are compared by the ranking key of the run's optimization priority
(waste and cut count in either order). Before a state is expanded it is
pruned when

- its lower bound key cannot beat the best complete plan found so far, or
- the shared cache already holds the same remaining problem reached with
  an equal or lower key.

The top ``split_depth`` levels of the tree are expanded up front, up to a
few states per worker, and the resulting frontier is handed to a thread
pool; every worker then runs its own depth-first search over one frontier
state. Frontier expansions are search steps like any other, so the
deadline, the step budget and cancellation apply to them too. Workers
share only the placement engine, the memo cache, the result aggregator
and the run control.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from cutplan.domain.errors import InvariantViolationError
from cutplan.engine.aggregator import ResultAggregator
from cutplan.engine.cache import SharedCache
from cutplan.engine.control import RunControl, StopReason
from cutplan.engine.placement import CutCandidate, PlacementEngine
from cutplan.engine.state import SearchCatalog, SearchState, free_panel_order

logger = logging.getLogger(__name__)

# Frontier states handed out per worker before expansion stops
FRONTIER_STATES_PER_WORKER = 4


@dataclass
class SearchStats:
    """Counters accumulated across workers.

    Attributes:
        tasks: Frontier states handed to workers.
        expanded: States whose children were generated.
        pruned_bound: States cut off by the lower bound.
        pruned_cache: States cut off by the memo cache.
        dead_ends: States with no admissible placement for the next piece.
        complete: Complete plans reached.
    """

    tasks: int = 0
    expanded: int = 0
    pruned_bound: int = 0
    pruned_cache: int = 0
    dead_ends: int = 0
    complete: int = 0

    def merge(self, other: "SearchStats") -> None:
        self.expanded += other.expanded
        self.pruned_bound += other.pruned_bound
        self.pruned_cache += other.pruned_cache
        self.dead_ends += other.dead_ends
        self.complete += other.complete


@dataclass(frozen=True)
class _Option:
    rank: tuple
    candidate: CutCandidate
    free_index: int | None
    stock_index: int | None


class SearchOrchestrator:
    """Runs the branch-and-bound search on a pool of worker threads.

    Attributes:
        catalog: Run-wide pieces, stock and derived indexes.
        engine: Placement engine shared by all workers.
        cache: Shared memo cache.
        aggregator: Receives complete and partial plans.
        control: Shared stop state and step accounting.
        workers: Number of worker threads.
        split_depth: Tree levels expanded before parallel fan-out.
        stats: Counters merged from every finished worker task.
    """

    def __init__(
        self,
        catalog: SearchCatalog,
        engine: PlacementEngine,
        cache: SharedCache,
        aggregator: ResultAggregator,
        control: RunControl,
        workers: int = 1,
        split_depth: int = 1,
    ) -> None:
        if workers < 1:
            raise ValueError("Search needs at least one worker")
        self.catalog = catalog
        self.engine = engine
        self.cache = cache
        self.aggregator = aggregator
        self.control = control
        self.workers = workers
        self.split_depth = split_depth
        self.stats = SearchStats()
        self._stats_lock = threading.Lock()
        self._completable = True

    def run(self) -> bool:
        """Search until the space is exhausted or the run is stopped.

        Returns:
            True if the whole search space was explored.

        Raises:
            InvariantViolationError: If a worker detects a broken invariant.
                The remaining workers are stopped before it propagates.
        """
        root = self.catalog.root()
        # When no branch can complete, keep searching for the fullest partial plan.
        self._completable = self.catalog.lower_bound(root) is not None
        frontier = self._frontier(root)
        self.stats.tasks = len(frontier)
        logger.info(
            "Searching %d frontier states on %d workers", len(frontier), self.workers
        )

        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="cutplan-search"
        ) as executor:
            futures = [executor.submit(self._explore, state) for state in frontier]
            try:
                for future in as_completed(futures):
                    future.result()
            except BaseException:
                self.control.halt(StopReason.ABORTED)
                raise

        logger.debug("Search finished: %s", self.stats)
        return not self.control.stopped

    def _frontier(self, root: SearchState) -> list[SearchState]:
        """Expand the top of the tree breadth-first.

        Expansion ends after ``split_depth`` levels, once the frontier holds
        ``FRONTIER_STATES_PER_WORKER`` states per worker, or as soon as the
        run is stopped. Each expansion counts as one search step.

        States without children (complete plans and dead ends) and states
        left unexpanded stay in the frontier so a worker still reports them.
        """
        limit = FRONTIER_STATES_PER_WORKER * self.workers
        frontier = [root]
        for _ in range(self.split_depth):
            if len(frontier) >= limit or self.control.stopped:
                break
            next_level: list[SearchState] = []
            for position, state in enumerate(frontier):
                index = self.catalog.select_piece(state)
                if index is None:
                    next_level.append(state)
                    continue
                if not self.control.begin_step():
                    next_level.extend(frontier[position:])
                    break
                next_level.extend(self.expand(state, index) or [state])
            if next_level == frontier:
                break
            frontier = next_level
        return frontier

    def _explore(self, start: SearchState) -> None:
        stats = SearchStats()
        # A task stopped before its first step still reports where it started.
        best_partial: SearchState | None = None if start.is_complete else start
        stack = [start]
        rank = self.aggregator.priority.rank
        try:
            while stack:
                if not self.control.begin_step():
                    break
                state = stack.pop()

                if state.is_complete:
                    stats.complete += 1
                    self.aggregator.propose(self.catalog.to_solution(state))
                    continue

                if best_partial is None or (state.placed_area, -state.waste) > (
                    best_partial.placed_area,
                    -best_partial.waste,
                ):
                    best_partial = state

                bound = self.catalog.lower_bound(state)
                best = self.aggregator.best_key
                if bound is None:
                    if self._completable:
                        stats.pruned_bound += 1
                        continue
                elif (
                    best is not None
                    and rank(state.waste + bound, len(state.cuts)) >= best
                ):
                    stats.pruned_bound += 1
                    continue

                cost = rank(state.waste, len(state.cuts))
                if not self.cache.visit(self.catalog.signature(state), cost):
                    stats.pruned_cache += 1
                    continue

                index = self.catalog.select_piece(state)
                if index is None:
                    raise InvariantViolationError("Incomplete state has no piece left")
                children = self.expand(state, index)
                if not children:
                    stats.dead_ends += 1
                    continue
                stats.expanded += 1
                stack.extend(reversed(children))
        finally:
            if best_partial is not None:
                self.aggregator.propose_partial(self.catalog.to_solution(best_partial))
            with self._stats_lock:
                self.stats.merge(stats)

    def expand(self, state: SearchState, index: int) -> list[SearchState]:
        """Children of a state obtained by placing one unit of a piece.

        Children come out best first: reusing a free panel before opening
        a new sheet, then least immediate waste, then the smallest host
        panel, then the engine's own candidate order.
        """
        piece = self.catalog.pieces[index]
        options: list[_Option] = []

        seen: set[tuple] = set()
        for position, panel in enumerate(state.free):
            if panel.material != piece.material or panel.shape_key in seen:
                continue
            seen.add(panel.shape_key)
            for candidate in self.engine.place(piece, panel):
                rank = (0, candidate.waste_area, panel.area, len(options))
                options.append(_Option(rank, candidate, position, None))

        seen.clear()
        for stock_index, remaining in enumerate(state.stock):
            stock = self.catalog.stock[stock_index]
            if not remaining or stock.material != piece.material:
                continue
            if stock.shape_key in seen:
                continue
            seen.add(stock.shape_key)
            sheet = self.catalog.open_sheet(stock_index, remaining)
            for candidate in self.engine.place(piece, sheet):
                rank = (1, candidate.waste_area, sheet.area, len(options))
                options.append(_Option(rank, candidate, None, stock_index))

        options.sort(key=lambda option: option.rank)
        return [self._apply(state, index, option) for option in options]

    def _apply(self, state: SearchState, index: int, option: _Option) -> SearchState:
        candidate = option.candidate
        demand = list(state.demand)
        demand[index] -= 1
        if demand[index] < 0:
            raise InvariantViolationError(
                f"Piece '{self.catalog.pieces[index].id}' placed more often "
                "than requested"
            )

        free = list(state.free)
        if option.free_index is not None:
            del free[option.free_index]
        free.extend(candidate.reusable_offcuts)
        free.sort(key=free_panel_order)

        stock = state.stock
        sheets = state.sheets
        if option.stock_index is not None:
            counts = list(stock)
            counts[option.stock_index] -= 1
            stock = tuple(counts)
            sheets = sheets + (candidate.source,)

        return SearchState(
            demand=tuple(demand),
            free=tuple(free),
            stock=stock,
            sheets=sheets,
            placements=state.placements + (candidate.placement,),
            cuts=state.cuts + candidate.cuts,
            scrap=state.scrap + candidate.scrap,
            waste=state.waste + candidate.waste_area,
            placed_area=state.placed_area + candidate.placement.area,
        )
