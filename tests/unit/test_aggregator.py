"""Tests for the ResultAggregator."""

from __future__ import annotations

import threading

import pytest

from cutplan.domain import (
    Cut,
    OptimizationPriority,
    Panel,
    Placement,
    Solution,
    SplitAxis,
)
from cutplan.engine import ResultAggregator


def _solution(
    waste: int, unplaced: dict[str, int] | None = None, cuts: int = 0
) -> Solution:
    """A one-sheet plan whose total waste is ``waste``, with ``cuts`` cuts."""
    sheet = Panel(id="s#1", width=100, height=100, sheet_id="s#1")
    placed = 10_000 - waste
    placements = ()
    if placed:
        placements = (
            Placement(
                piece_id="p", panel_id="s#1", x=0, y=0, width=100, height=placed // 100
            ),
        )
    cut_list = tuple(
        Cut("s#1", "s#1", SplitAxis.VERTICAL, 10 * i, 100, 0, None, None)
        for i in range(cuts)
    )
    return Solution(
        placements=placements,
        cuts=cut_list,
        sheets=(sheet,),
        unplaced=unplaced or {},
    )


class TestResultAggregator:
    """Tests for best plan selection."""

    def test_starts_empty(self) -> None:
        aggregator = ResultAggregator()
        assert aggregator.best is None
        assert aggregator.best_waste is None
        assert aggregator.result() is None
        assert aggregator.history == ()

    def test_accepts_strictly_better(self) -> None:
        aggregator = ResultAggregator()
        assert aggregator.propose(_solution(3000)) is True
        assert aggregator.propose(_solution(1000)) is True
        assert aggregator.best_waste == 1000

    def test_equal_waste_keeps_first(self) -> None:
        aggregator = ResultAggregator()
        first = _solution(2000)
        aggregator.propose(first)
        assert aggregator.propose(_solution(2000)) is False
        assert aggregator.best is first

    def test_worse_rejected(self) -> None:
        aggregator = ResultAggregator()
        aggregator.propose(_solution(1000))
        assert aggregator.propose(_solution(5000)) is False
        assert aggregator.history == ((1000, 0),)

    def test_incomplete_plan_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResultAggregator().propose(_solution(0, unplaced={"p": 1}))

    def test_partial_ranking(self) -> None:
        aggregator = ResultAggregator()
        assert aggregator.propose_partial(_solution(5000, {"x": 1})) is True
        assert aggregator.propose_partial(_solution(8000, {"x": 1})) is False
        assert aggregator.propose_partial(_solution(2000, {"x": 1})) is True
        assert aggregator.best_partial.total_waste == 2000
        assert aggregator.result() is aggregator.best_partial

    def test_complete_beats_partial(self) -> None:
        aggregator = ResultAggregator()
        aggregator.propose_partial(_solution(0, {"x": 1}))
        complete = _solution(4000)
        aggregator.propose(complete)
        assert aggregator.result() is complete

    def test_history_is_strictly_decreasing_under_contention(self) -> None:
        aggregator = ResultAggregator()
        wastes = list(range(9900, 0, -100))

        def worker(offset: int) -> None:
            for waste in wastes[offset::4]:
                aggregator.propose(_solution(waste))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        history = aggregator.history
        assert all(a > b for a, b in zip(history, history[1:]))
        assert aggregator.best_waste == 100


class TestOptimizationPriority:
    """Tests for ranking complete plans by waste and cut count."""

    def test_least_waste_breaks_ties_on_cuts(self) -> None:
        aggregator = ResultAggregator(OptimizationPriority.LEAST_WASTE)
        aggregator.propose(_solution(2000, cuts=5))
        fewer_cuts = _solution(2000, cuts=3)
        assert aggregator.propose(fewer_cuts) is True
        assert aggregator.best is fewer_cuts
        assert aggregator.propose(_solution(2500, cuts=1)) is False
        assert aggregator.best_key == (2000, 3)

    def test_fewest_cuts_accepts_more_waste(self) -> None:
        aggregator = ResultAggregator(OptimizationPriority.FEWEST_CUTS)
        aggregator.propose(_solution(1000, cuts=4))
        assert aggregator.propose(_solution(3000, cuts=2)) is True
        assert aggregator.propose(_solution(500, cuts=3)) is False
        assert aggregator.propose(_solution(2000, cuts=2)) is True
        assert aggregator.best_key == (2, 2000)
        assert aggregator.best_waste == 2000
        assert aggregator.history == ((4, 1000), (2, 3000), (2, 2000))

    @pytest.mark.parametrize("priority", list(OptimizationPriority))
    def test_full_tie_keeps_first(self, priority: OptimizationPriority) -> None:
        aggregator = ResultAggregator(priority)
        first = _solution(1500, cuts=2)
        aggregator.propose(first)
        assert aggregator.propose(_solution(1500, cuts=2)) is False
        assert aggregator.best is first

    def test_rank(self) -> None:
        assert OptimizationPriority.LEAST_WASTE.rank(100, 3) == (100, 3)
        assert OptimizationPriority.FEWEST_CUTS.rank(100, 3) == (3, 100)
