"""Run coordinator: the entry point of one optimization run.

The coordinator validates the problem, sets aside pieces that fit no stock
panel, wires up the shared collaborators (placement engine, memo cache,
result aggregator, run control, progress reporter), runs the search and
turns the aggregator's best plan into the final Solution.

The cache lives for exactly one run and is cleared when the run ends. The
aggregator of the last run stays reachable as ``coordinator.aggregator``.
"""

from __future__ import annotations

import contextlib
import logging

from cutplan.domain.geometry import fits
from cutplan.domain.problem import OptimizerConfig, Problem
from cutplan.domain.solution import RunStatus, Solution, edge_banding_lengths
from cutplan.domain.value_objects import Panel, Piece
from cutplan.engine.aggregator import ResultAggregator
from cutplan.engine.cache import SharedCache
from cutplan.engine.control import (
    CancellationToken,
    ProgressCallback,
    ProgressReporter,
    ProgressSnapshot,
    RunControl,
    StopReason,
)
from cutplan.engine.placement import PlacementEngine
from cutplan.engine.search import SearchOrchestrator, SearchStats
from cutplan.engine.state import SearchCatalog

logger = logging.getLogger(__name__)


class RunCoordinator:
    """Orchestrates a single optimization run.

    Attributes:
        config: Run configuration.
        progress_callback: Optional callback receiving progress snapshots.
        token: Cancellation token; cancel it from any thread to stop the run.
        aggregator: Result aggregator of the most recent run.
        search_stats: Search counters of the most recent run.
    """

    def __init__(
        self,
        config: OptimizerConfig | None = None,
        progress_callback: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        self.config = config or OptimizerConfig()
        self.progress_callback = progress_callback
        self.token = token or CancellationToken()
        self.aggregator: ResultAggregator | None = None
        self.search_stats: SearchStats | None = None

    def cancel(self) -> None:
        """Request cancellation of the run in progress."""
        self.token.cancel()

    def run(self, problem: Problem) -> Solution:
        """Optimize a problem.

        Args:
            problem: Stock panels and required pieces.

        Returns:
            The best plan found, stamped with the run outcome. Infeasible
            pieces, exhausted budgets and cancellation are reported through
            ``Solution.status``; they are not errors.

        Raises:
            InvalidInputError: If the problem is malformed.
            InvariantViolationError: If a geometric invariant breaks during
                the search.
        """
        problem.validate()
        config = self.config

        placeable, no_fit = self._partition(problem.pieces, problem.panels)
        for piece in no_fit:
            logger.warning(
                "Piece '%s' (%dx%d, %s) fits no stock panel",
                piece.id,
                piece.width,
                piece.height,
                piece.material,
            )

        engine = PlacementEngine(
            kerf=config.kerf,
            min_useful_area=config.min_useful_area,
            default_rotatable=config.allow_rotation,
        )
        catalog = SearchCatalog(
            placeable,
            problem.panels,
            default_rotatable=config.allow_rotation,
            piece_order=config.piece_order,
        )
        cache = SharedCache(
            enabled=config.use_cache,
            shards=config.cache_shards,
            max_entries=config.cache_max_entries,
        )
        aggregator = ResultAggregator(config.optimization_priority)
        control = RunControl(self.token, config.time_budget, config.step_budget)
        self.aggregator = aggregator

        logger.info(
            "Optimizing %d pieces (%d units) on %d stock panels with %d workers",
            len(problem.pieces),
            sum(piece.quantity for piece in problem.pieces),
            len(problem.panels),
            config.workers,
        )

        def sample() -> ProgressSnapshot:
            stats = cache.stats()
            return ProgressSnapshot(
                states_explored=control.steps,
                cache_entries=stats.entries,
                cache_hit_ratio=stats.hit_ratio,
                best_waste_so_far=aggregator.best_waste,
                elapsed_time=control.elapsed,
            )

        exhaustive = True
        reporter = (
            ProgressReporter(self.progress_callback, sample, config.progress_interval)
            if self.progress_callback is not None
            else contextlib.nullcontext()
        )
        try:
            with reporter:
                if placeable:
                    orchestrator = SearchOrchestrator(
                        catalog,
                        engine,
                        cache,
                        aggregator,
                        control,
                        workers=config.workers,
                        split_depth=config.split_depth,
                    )
                    exhaustive = orchestrator.run()
                    self.search_stats = orchestrator.stats
        finally:
            cache_stats = cache.stats()
            cache.clear()

        best = aggregator.result() or catalog.to_solution(catalog.root())
        unplaced = dict(best.unplaced)
        for piece in no_fit:
            unplaced[piece.id] = piece.quantity

        status = self._status(unplaced, control)
        solution = best.with_outcome(
            status,
            unplaced=unplaced,
            no_fit=tuple(piece.id for piece in no_fit),
            exhaustive=exhaustive,
            states_explored=control.steps,
            elapsed=control.elapsed,
            edge_banding=edge_banding_lengths(best.placements, problem.pieces),
        )
        solution.verify(problem.pieces)

        logger.info(
            "Run finished: %s, waste %d, %d sheets, %d states, "
            "cache hit ratio %.2f, %.2fs",
            status.value,
            solution.total_waste,
            len(solution.sheets),
            control.steps,
            cache_stats.hit_ratio,
            solution.elapsed,
        )
        return solution

    def _partition(
        self, pieces: tuple[Piece, ...], panels: tuple[Panel, ...]
    ) -> tuple[list[Piece], list[Piece]]:
        """Split pieces into those that fit some stock panel and those that don't."""
        placeable: list[Piece] = []
        no_fit: list[Piece] = []
        for piece in pieces:
            if any(
                fits(piece, panel, self.config.kerf, self.config.allow_rotation)
                for panel in panels
            ):
                placeable.append(piece)
            else:
                no_fit.append(piece)
        return placeable, no_fit

    @staticmethod
    def _status(unplaced: dict[str, int], control: RunControl) -> RunStatus:
        if not unplaced:
            return RunStatus.COMPLETE
        if control.stop_reason is StopReason.CANCELLED:
            return RunStatus.CANCELLED
        if control.stop_reason in (StopReason.DEADLINE, StopReason.STEP_BUDGET):
            return RunStatus.TIMEOUT_PARTIAL
        return RunStatus.INFEASIBLE


def optimize(
    problem: Problem,
    config: OptimizerConfig | None = None,
    progress_callback: ProgressCallback | None = None,
    token: CancellationToken | None = None,
) -> Solution:
    """Run one optimization with a fresh coordinator."""
    return RunCoordinator(config, progress_callback, token).run(problem)
