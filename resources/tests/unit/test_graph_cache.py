"""
Unit tests for the graph cache.
"""

import pytest

from tuberank.services.graphrag.cache import DEFAULT_TTL_SECONDS, GraphCache, GraphCacheKey
from tuberank.services.graphrag.graph import build_graph

from resources.tests.helpers.content import DIMENSION


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingBuilder:
    def __init__(self, items):
        self.items = items
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return build_graph(self.items, dimension=DIMENSION)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return GraphCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def builder(cluster_items):
    return CountingBuilder(cluster_items)


class TestGraphCache:
    """Test GraphCache functionality."""

    def test_default_ttl_is_thirty_minutes(self):
        assert GraphCache().ttl_seconds == DEFAULT_TTL_SECONDS == 1800

    def test_key_is_collection_and_threshold(self):
        key = GraphCache.make_key("videos", 0.7)
        assert key == GraphCacheKey("videos", 0.7)
        assert str(key) == "videos_0.7"

    def test_miss_then_hit_returns_same_graph(self, cache, builder):
        key = cache.make_key("videos", 0.7)

        first = cache.get_or_build(key, builder)
        assert first.cache_hit is False
        assert first.build_time_ms is not None

        second = cache.get_or_build(key, builder)
        assert second.cache_hit is True
        assert second.build_time_ms is None
        assert second.graph is first.graph
        assert builder.calls == 1

    def test_entries_expire_after_ttl(self, cache, clock, builder):
        key = cache.make_key("videos", 0.7)
        cache.get_or_build(key, builder)

        clock.advance(59)
        assert cache.get_or_build(key, builder).cache_hit is True

        clock.advance(1)
        lookup = cache.get_or_build(key, builder)
        assert lookup.cache_hit is False
        assert builder.calls == 2
        assert cache.get_stats()["expirations"] == 1

    def test_force_rebuild_replaces_entry(self, cache, builder):
        key = cache.make_key("videos", 0.7)
        original = cache.get_or_build(key, builder).graph

        rebuilt = cache.get_or_build(key, builder, force_rebuild=True)
        assert rebuilt.cache_hit is False
        assert rebuilt.graph is not original
        assert cache.get(key).graph is rebuilt.graph

    def test_builder_failure_leaves_no_entry(self, cache):
        key = cache.make_key("videos", 0.7)

        def explode():
            raise RuntimeError("store offline")

        with pytest.raises(RuntimeError, match="store offline"):
            cache.get_or_build(key, explode)
        assert key not in cache
        assert len(cache) == 0

    def test_empty_build_is_not_cached(self, cache, builder):
        key = cache.make_key("empty", 0.7)
        lookup = cache.get_or_build(key, lambda: None)

        assert lookup.graph is None
        assert lookup.cache_hit is False
        assert key not in cache

        assert cache.get_or_build(key, builder).cache_hit is False

    def test_thresholds_are_cached_separately(self, cache, builder):
        cache.get_or_build(cache.make_key("videos", 0.7), builder)
        cache.get_or_build(cache.make_key("videos", 0.8), builder)
        assert builder.calls == 2
        assert len(cache) == 2

    def test_invalidate_matches_collection_exactly(self, cache, builder):
        for collection in ("videos", "videos_v2"):
            cache.get_or_build(cache.make_key(collection, 0.7), builder)

        assert cache.invalidate("videos") == 1
        assert cache.make_key("videos", 0.7) not in cache
        assert cache.make_key("videos_v2", 0.7) in cache

    def test_invalidate_single_threshold(self, cache, builder):
        for threshold in (0.7, 0.8):
            cache.get_or_build(cache.make_key("videos", threshold), builder)

        assert cache.invalidate("videos", threshold=0.8) == 1
        assert cache.make_key("videos", 0.7) in cache

    def test_invalidate_everything(self, cache, builder):
        for collection in ("a", "b", "c"):
            cache.get_or_build(cache.make_key(collection, 0.7), builder)

        assert cache.invalidate() == 3
        assert len(cache) == 0

        cache.get_or_build(cache.make_key("a", 0.7), builder)
        cache.clear()
        assert len(cache) == 0

    def test_cleanup_expired(self, cache, clock, builder):
        cache.get_or_build(cache.make_key("old", 0.7), builder)
        clock.advance(30)
        cache.get_or_build(cache.make_key("new", 0.7), builder)
        clock.advance(40)

        assert cache.cleanup_expired() == 1
        assert cache.make_key("new", 0.7) in cache

    def test_stats(self, cache, builder):
        key = cache.make_key("videos", 0.7)
        cache.get_or_build(key, builder)
        cache.get_or_build(key, builder)
        cache.get_or_build(key, builder)

        stats = cache.get_stats()
        assert stats["size"] == 1
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["builds"] == 1
        assert stats["hit_rate"] == pytest.approx(2 / 3)
