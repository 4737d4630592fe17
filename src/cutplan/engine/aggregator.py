"""Result aggregator: the single best plan of a run.

Workers propose plans as they find them. Complete plans are ranked by the
run's optimization priority (waste then cuts, or cuts then waste). A plan
replaces the current best only with a strictly lower ranking key, so among
fully tied plans the one discovered first is kept.
"""

from __future__ import annotations

import logging
import threading

from cutplan.domain.problem import OptimizationPriority
from cutplan.domain.solution import Solution

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Thread-safe holder of the best complete and best partial plans.

    ``best_key`` is read by workers on every bound check without taking
    the lock; the value only ever decreases, so a stale read just prunes a
    little less.

    Attributes:
        priority: How complete plans are ranked.
    """

    def __init__(
        self, priority: OptimizationPriority = OptimizationPriority.LEAST_WASTE
    ) -> None:
        self.priority = priority
        self._lock = threading.Lock()
        self._best: Solution | None = None
        self._best_key: tuple[int, int] | None = None
        self._best_waste: int | None = None
        self._partial: Solution | None = None
        self._partial_key: tuple[int, int] | None = None
        self._history: list[tuple[int, int]] = []

    @property
    def best(self) -> Solution | None:
        """Best complete plan so far."""
        return self._best

    @property
    def best_key(self) -> tuple[int, int] | None:
        """Ranking key of the best complete plan, or None."""
        return self._best_key

    @property
    def best_waste(self) -> int | None:
        """Total waste of the best complete plan, or None."""
        return self._best_waste

    @property
    def best_partial(self) -> Solution | None:
        """Plan placing the most area so far, among incomplete ones."""
        return self._partial

    @property
    def history(self) -> tuple[tuple[int, int], ...]:
        """Ranking key of every accepted complete plan, in acceptance order."""
        with self._lock:
            return tuple(self._history)

    def rank(self, candidate: Solution) -> tuple[int, int]:
        return self.priority.rank(candidate.total_waste, candidate.total_cuts)

    def propose(self, candidate: Solution) -> bool:
        """Offer a complete plan.

        Args:
            candidate: A plan with no unplaced units.

        Returns:
            True if the candidate became the new best.

        Raises:
            ValueError: If the candidate leaves units unplaced.
        """
        if candidate.unplaced:
            raise ValueError("Only complete plans can be proposed as best")
        key = self.rank(candidate)
        current = self._best_key
        if current is not None and key >= current:
            return False
        with self._lock:
            if self._best_key is not None and key >= self._best_key:
                return False
            self._best = candidate
            self._best_key = key
            self._best_waste = candidate.total_waste
            self._history.append(key)
        logger.debug(
            "New best plan: waste %d, %d cuts",
            candidate.total_waste,
            candidate.total_cuts,
        )
        return True

    def propose_partial(self, candidate: Solution) -> bool:
        """Offer an incomplete plan.

        Partial plans rank by placed area (more is better), then by waste.

        Returns:
            True if the candidate became the new best partial plan.
        """
        key = (candidate.placed_area, -candidate.total_waste)
        with self._lock:
            if self._partial_key is not None and key <= self._partial_key:
                return False
            self._partial = candidate
            self._partial_key = key
        return True

    def result(self) -> Solution | None:
        """The complete plan if one was found, else the best partial one."""
        return self._best or self._partial
