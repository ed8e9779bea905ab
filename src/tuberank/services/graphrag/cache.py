"""
Time-bounded cache of built semantic graphs.

Entries are keyed by (collection, similarity threshold) and expire lazily at
lookup time. Builders run outside the lock and their results replace any
previous entry as a whole, so concurrent rebuilds of one key are redundant
but never corrupt.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, NamedTuple

from .graph import SemanticGraph
import logging

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


class GraphCacheKey(NamedTuple):
    collection: str
    threshold: float

    def __str__(self) -> str:
        return f"{self.collection}_{self.threshold}"


@dataclass(frozen=True)
class GraphCacheEntry:
    graph: SemanticGraph
    collection: str
    threshold: float
    created_at: float
    node_count: int

    def age(self, now: float) -> float:
        return now - self.created_at


class GraphLookup(NamedTuple):
    graph: SemanticGraph | None
    cache_hit: bool
    build_time_ms: float | None = None


class GraphCache:
    """Process-wide cache of semantic graphs with TTL and manual invalidation."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        """Initialize the graph cache.

        Args:
            ttl_seconds: Lifetime of a cached graph in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[GraphCacheKey, GraphCacheEntry] = {}
        self._lock = threading.Lock()
        self._stats = {
            'hits': 0,
            'misses': 0,
            'builds': 0,
            'expirations': 0,
            'invalidations': 0,
        }

        logger.info(f"Graph cache initialized: ttl={ttl_seconds}s")

    @staticmethod
    def make_key(collection: str, threshold: float) -> GraphCacheKey:
        return GraphCacheKey(collection, float(threshold))

    def _is_valid(self, entry: GraphCacheEntry, now: float) -> bool:
        return entry.age(now) < self.ttl_seconds

    def get(self, key: GraphCacheKey) -> GraphCacheEntry | None:
        """Return the live entry for a key, dropping it if it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_valid(entry, self._clock()):
                del self._entries[key]
                self._stats['expirations'] += 1
                logger.debug(f"Graph cache entry expired: {key}")
                return None
            return entry

    def put(self, key: GraphCacheKey, graph: SemanticGraph) -> GraphCacheEntry:
        entry = GraphCacheEntry(
            graph=graph,
            collection=key.collection,
            threshold=key.threshold,
            created_at=self._clock(),
            node_count=graph.node_count,
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def get_or_build(
        self,
        key: GraphCacheKey,
        builder: Callable[[], SemanticGraph | None],
        force_rebuild: bool = False,
    ) -> GraphLookup:
        """Return the cached graph for ``key`` or build and store a new one.

        The builder may return None when there is nothing to build; nothing
        is cached in that case. Builder exceptions propagate and leave the
        cache without an entry for the key.
        """
        if not force_rebuild:
            entry = self.get(key)
            if entry is not None:
                with self._lock:
                    self._stats['hits'] += 1
                logger.debug(
                    f"Using cached graph {key}: {entry.node_count} nodes, "
                    f"age {round(entry.age(self._clock()))}s"
                )
                return GraphLookup(entry.graph, True, None)

        with self._lock:
            self._stats['misses'] += 1
            if force_rebuild:
                self._entries.pop(key, None)

        start = time.perf_counter()
        graph = builder()
        build_time_ms = (time.perf_counter() - start) * 1000.0

        if graph is None:
            logger.debug(f"Graph builder for {key} produced nothing; not cached")
            return GraphLookup(None, False, build_time_ms)

        self.put(key, graph)
        with self._lock:
            self._stats['builds'] += 1
        logger.info(
            f"Built graph {key}: {graph.node_count} nodes, {graph.edge_count} edges in {build_time_ms:.1f}ms"
        )
        return GraphLookup(graph, False, build_time_ms)

    def invalidate(self, collection: str | None = None, threshold: float | None = None) -> int:
        """Remove entries for a collection (optionally one threshold), or everything.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if collection is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                doomed = [
                    key for key in self._entries
                    if key.collection == collection
                    and (threshold is None or key.threshold == float(threshold))
                ]
                for key in doomed:
                    del self._entries[key]
                removed = len(doomed)
            self._stats['invalidations'] += removed

        if removed:
            logger.info(f"Invalidated {removed} cached graphs (collection={collection or '*'})")
        return removed

    def clear(self) -> None:
        """Clear all cached graphs."""
        self.invalidate()

    def cleanup_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if not self._is_valid(entry, now)]
            for key in expired:
                del self._entries[key]
            self._stats['expirations'] += len(expired)

        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired graphs")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: GraphCacheKey) -> bool:
        return self.get(key) is not None

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            lookups = self._stats['hits'] + self._stats['misses']
            return {
                'size': len(self._entries),
                'ttl_seconds': self.ttl_seconds,
                'hits': self._stats['hits'],
                'misses': self._stats['misses'],
                'builds': self._stats['builds'],
                'expirations': self._stats['expirations'],
                'invalidations': self._stats['invalidations'],
                'hit_rate': self._stats['hits'] / lookups if lookups else 0.0,
            }
