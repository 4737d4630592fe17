"""Tests for the sharded SharedCache memo table."""

from __future__ import annotations

import threading

import pytest

from cutplan.engine import CacheStats, SharedCache


class TestSharedCacheVisit:
    """Tests for visit semantics."""

    def test_first_visit_explores(self) -> None:
        cache = SharedCache()
        assert cache.visit(("a",), 10) is True
        assert cache.lookup(("a",)) == 10

    def test_equal_or_worse_visit_prunes(self) -> None:
        cache = SharedCache()
        cache.visit(("a",), 10)
        assert cache.visit(("a",), 10) is False
        assert cache.visit(("a",), 12) is False
        assert cache.lookup(("a",)) == 10

    def test_better_visit_explores_and_updates(self) -> None:
        cache = SharedCache()
        cache.visit(("a",), 10)
        assert cache.visit(("a",), 7) is True
        assert cache.lookup(("a",)) == 7

    def test_disabled_cache_never_prunes(self) -> None:
        cache = SharedCache(enabled=False)
        assert cache.visit(("a",), 10) is True
        assert cache.visit(("a",), 10) is True
        assert cache.lookup(("a",)) is None
        assert len(cache) == 0


class TestSharedCacheUpdate:
    """Tests for update."""

    def test_keeps_minimum(self) -> None:
        cache = SharedCache()
        assert cache.update("sig", 5) is True
        assert cache.update("sig", 9) is False
        assert cache.update("sig", 3) is True
        assert cache.lookup("sig") == 3


class TestSharedCacheStats:
    """Tests for counters, eviction and clearing."""

    def test_hit_ratio(self) -> None:
        cache = SharedCache()
        cache.visit("a", 1)
        cache.visit("a", 1)
        cache.visit("b", 1)
        cache.visit("a", 2)
        stats = cache.stats()
        assert stats == CacheStats(hits=2, misses=2, entries=2, evictions=0)
        assert stats.hit_ratio == pytest.approx(0.5)

    def test_empty_hit_ratio(self) -> None:
        assert CacheStats().hit_ratio == 0.0

    def test_entry_cap_evicts_least_recent(self) -> None:
        cache = SharedCache(shards=1, max_entries=2)
        cache.visit("a", 1)
        cache.visit("b", 1)
        cache.visit("a", 1)  # hit refreshes "a"
        cache.visit("c", 1)
        assert cache.lookup("b") is None
        assert cache.lookup("a") == 1
        assert cache.stats().evictions == 1
        assert len(cache) == 2

    def test_clear(self) -> None:
        cache = SharedCache()
        cache.visit("a", 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.stats() == CacheStats()

    @pytest.mark.parametrize("kwargs", [{"shards": 0}, {"max_entries": 0}])
    def test_invalid_settings(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            SharedCache(**kwargs)


class TestSharedCacheConcurrency:
    """Tests for concurrent visits."""

    def test_only_one_thread_claims_a_new_signature(self) -> None:
        """Concurrent first visits with equal waste: exactly one explores."""
        cache = SharedCache(shards=4)
        barrier = threading.Barrier(8)
        results: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            outcome = cache.visit(("shared",), 42)
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert cache.lookup(("shared",)) == 42
