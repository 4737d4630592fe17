"""Shared memo cache of search state signatures.

Maps a canonical state signature to the lowest committed cost with which
that state has been reached. A cost is any ordered value; the search uses
the run's ranking key of the partial plan (waste and cut count). A worker
arriving at a known state with no better cost can abandon the branch:
everything below it was, or is being, explored from the cheaper visit.

The table is split into independently locked shards so workers touching
different signatures do not contend on a single lock.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_SHARDS = 64

Cost = int | tuple[int, ...]


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache counters.

    Attributes:
        hits: Lookups that found a signature with equal or lower cost.
        misses: Lookups that found nothing, or only a worse entry.
        entries: Signatures currently stored.
        evictions: Entries dropped to honor the size cap.
    """

    hits: int = 0
    misses: int = 0
    entries: int = 0
    evictions: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class _Shard:
    __slots__ = ("lock", "entries", "hits", "misses", "evictions")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: OrderedDict[Hashable, Cost] = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0


class SharedCache:
    """Concurrent signature-to-cost memo table.

    Attributes:
        enabled: When False every visit is a miss and nothing is stored.
        max_entries: Optional cap on stored entries. The cap is split
            evenly across shards and the least recently used entry of a
            full shard is dropped first.
    """

    def __init__(
        self,
        enabled: bool = True,
        shards: int = DEFAULT_SHARDS,
        max_entries: int | None = None,
    ) -> None:
        if shards < 1:
            raise ValueError("Cache needs at least one shard")
        if max_entries is not None and max_entries < 1:
            raise ValueError("Cache entry cap must be at least 1")
        self.enabled = enabled
        self.max_entries = max_entries
        self._shards = [_Shard() for _ in range(shards)]
        self._shard_cap = (
            None if max_entries is None else max(1, max_entries // shards)
        )

    def _shard(self, signature: Hashable) -> _Shard:
        return self._shards[hash(signature) % len(self._shards)]

    def lookup(self, signature: Hashable) -> Cost | None:
        """Return the stored cost for a signature, or None."""
        if not self.enabled:
            return None
        shard = self._shard(signature)
        with shard.lock:
            return shard.entries.get(signature)

    def update(self, signature: Hashable, bound: Cost) -> bool:
        """Store ``bound`` unless an equal or lower value is already stored.

        Returns:
            True if the entry changed.
        """
        if not self.enabled:
            return False
        shard = self._shard(signature)
        with shard.lock:
            current = shard.entries.get(signature)
            if current is not None and current <= bound:
                return False
            self._store(shard, signature, bound)
            return True

    def visit(self, signature: Hashable, cost: Cost) -> bool:
        """Record a visit to a state and decide whether to explore it.

        Lookup and update happen under one lock, so two workers reaching
        the same state concurrently cannot both believe they are first.

        Args:
            signature: Canonical state signature.
            cost: Committed cost with which the state was reached.

        Returns:
            True if the state is new or improves on the stored cost (the
            entry now holds ``cost``). False if an equal or better visit is
            already recorded; the caller should prune.
        """
        if not self.enabled:
            return True
        shard = self._shard(signature)
        with shard.lock:
            current = shard.entries.get(signature)
            if current is not None and current <= cost:
                shard.hits += 1
                if self._shard_cap is not None:
                    shard.entries.move_to_end(signature)
                return False
            shard.misses += 1
            self._store(shard, signature, cost)
            return True

    def _store(self, shard: _Shard, signature: Hashable, value: Cost) -> None:
        # Caller holds shard.lock.
        shard.entries[signature] = value
        if self._shard_cap is not None:
            shard.entries.move_to_end(signature)
            while len(shard.entries) > self._shard_cap:
                shard.entries.popitem(last=False)
                shard.evictions += 1

    def stats(self) -> CacheStats:
        """Aggregate counters across shards.

        Counters are read shard by shard, so the snapshot is consistent per
        shard but not across the whole table.
        """
        hits = misses = entries = evictions = 0
        for shard in self._shards:
            with shard.lock:
                hits += shard.hits
                misses += shard.misses
                entries += len(shard.entries)
                evictions += shard.evictions
        return CacheStats(hits=hits, misses=misses, entries=entries, evictions=evictions)

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()
                shard.hits = shard.misses = shard.evictions = 0
        logger.debug("Cache cleared")
