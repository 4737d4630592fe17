"""Run control: cancellation, budgets and progress reporting.

A RunControl is shared by every search worker of one run. Workers call
``begin_step`` each time they are about to select the next piece; it is the
single point where cancellation, the wall-clock deadline and the step budget
are observed.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class StopReason(str, Enum):
    """Why a run stopped before exhausting its search space."""

    CANCELLED = "cancelled"
    DEADLINE = "deadline"
    STEP_BUDGET = "step_budget"
    ABORTED = "aborted"


class CancellationToken:
    """Thread-safe cancellation flag the caller can set at any time."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or the timeout elapses."""
        return self._event.wait(timeout)


class RunControl:
    """Shared stop state and step accounting for one run.

    Attributes:
        token: Cancellation token observed by the run.
        time_budget: Wall-clock budget in seconds.
        step_budget: Optional cap on explored states.
    """

    def __init__(
        self,
        token: CancellationToken | None = None,
        time_budget: float = 10.0,
        step_budget: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.token = token or CancellationToken()
        self.time_budget = time_budget
        self.step_budget = step_budget
        self._clock = clock
        self._started = clock()
        self._deadline = self._started + time_budget
        self._lock = threading.Lock()
        self._steps = 0
        self._reason: StopReason | None = None

    def begin_step(self) -> bool:
        """Account for one search step.

        Returns:
            True if the caller may proceed, False if the run must stop.
        """
        if self._reason is not None:
            return False
        if self.token.cancelled:
            self.halt(StopReason.CANCELLED)
            return False
        if self._clock() >= self._deadline:
            self.halt(StopReason.DEADLINE)
            return False
        with self._lock:
            if self.step_budget is not None and self._steps >= self.step_budget:
                stop = True
            else:
                self._steps += 1
                stop = False
        if stop:
            self.halt(StopReason.STEP_BUDGET)
            return False
        return True

    def halt(self, reason: StopReason) -> None:
        """Stop the run. The first reason recorded wins."""
        with self._lock:
            if self._reason is None:
                self._reason = reason
                logger.info("Search stopping: %s", reason.value)

    @property
    def stopped(self) -> bool:
        return self._reason is not None

    @property
    def stop_reason(self) -> StopReason | None:
        return self._reason

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started


@dataclass(frozen=True)
class ProgressSnapshot:
    """Read-only view of a run in flight.

    Attributes:
        states_explored: Search states expanded so far.
        cache_entries: Signatures stored in the memo cache.
        cache_hit_ratio: Share of cache visits that pruned a branch.
        best_waste_so_far: Waste of the best complete plan, or None.
        elapsed_time: Seconds since the run started.
    """

    states_explored: int
    cache_entries: int
    cache_hit_ratio: float
    best_waste_so_far: int | None
    elapsed_time: float


ProgressCallback = Callable[[ProgressSnapshot], None]


class ProgressReporter:
    """Background thread delivering snapshots at a bounded rate.

    Snapshots are taken every ``interval`` seconds while the reporter is
    running, and once more when it stops, so the final state of the run is
    always delivered. Usable as a context manager.
    """

    def __init__(
        self,
        callback: ProgressCallback,
        sample: Callable[[], ProgressSnapshot],
        interval: float = 0.5,
    ) -> None:
        if interval <= 0:
            raise ValueError("Progress interval must be positive")
        self._callback = callback
        self._sample = sample
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, name="cutplan-progress", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the ticker and deliver the final snapshot."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._emit()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._emit()

    def _emit(self) -> None:
        try:
            self._callback(self._sample())
        except Exception:
            # Observer failures never reach the search.
            logger.exception("Progress callback failed")

    def __enter__(self) -> "ProgressReporter":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
