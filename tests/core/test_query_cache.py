"""
Test suite for the bounded query cache.

System role: Verification of TTL expiry and insertion-order eviction
"""

import pytest

from rag_backend.core.retrieval.query_cache import QueryCache, cache_key, normalize_question


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestCacheKey:
    def test_normalize_should_fold_case_and_whitespace(self) -> None:
        assert normalize_question("  What IS\n the  U-value? ") == "what is the u-value?"

    def test_key_should_use_global_partition_without_scope(self) -> None:
        assert cache_key(None, "q") == ("global", "q")
        assert cache_key("p1", "Q") == ("p1", "q")


class TestQueryCache:
    def test_get_should_return_stored_value_until_ttl(self) -> None:
        # Arrange
        clock = FakeClock()
        cache = QueryCache(capacity=10, ttl_seconds=60, clock=clock)
        cache.put(("p", "q"), "answer")

        # Act / Assert
        clock.now += 59
        assert cache.get(("p", "q")) == "answer"
        clock.now += 1
        assert cache.get(("p", "q")) is None
        assert ("p", "q") not in cache

    def test_put_should_evict_oldest_insert_when_full(self) -> None:
        # Arrange
        cache = QueryCache(capacity=2, ttl_seconds=60, clock=FakeClock())
        cache.put(("p", "a"), "1")
        cache.put(("p", "b"), "2")

        # Act: reading "a" does not protect it
        cache.get(("p", "a"))
        cache.put(("p", "c"), "3")

        # Assert
        assert ("p", "a") not in cache
        assert ("p", "b") in cache
        assert ("p", "c") in cache
        assert len(cache) == 2

    def test_clear_should_report_removed_entries(self) -> None:
        cache = QueryCache(capacity=5)
        cache.put(("p", "a"), "1")
        cache.put(("p", "b"), "2")

        assert cache.clear() == 2
        assert len(cache) == 0

    def test_stats_should_count_hits_and_misses(self) -> None:
        cache = QueryCache(capacity=5)
        cache.put(("p", "a"), "1")
        cache.get(("p", "a"))
        cache.get(("p", "missing"))

        stats = cache.stats()

        assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)

    def test_init_should_reject_zero_capacity(self) -> None:
        with pytest.raises(ValueError):
            QueryCache(capacity=0)
