"""Search engine - placement, shared cache, search and run coordination."""

from .aggregator import ResultAggregator
from .cache import CacheStats, SharedCache
from .control import (
    CancellationToken,
    ProgressCallback,
    ProgressReporter,
    ProgressSnapshot,
    RunControl,
    StopReason,
)
from .coordinator import RunCoordinator, optimize
from .placement import CutCandidate, PlacementEngine, SplitStrategy
from .search import SearchOrchestrator, SearchStats
from .state import SearchCatalog, SearchState

__all__ = [
    "CacheStats",
    "CancellationToken",
    "CutCandidate",
    "PlacementEngine",
    "ProgressCallback",
    "ProgressReporter",
    "ProgressSnapshot",
    "ResultAggregator",
    "RunControl",
    "RunCoordinator",
    "SearchCatalog",
    "SearchOrchestrator",
    "SearchState",
    "SearchStats",
    "SharedCache",
    "SplitStrategy",
    "StopReason",
    "optimize",
]
