"""
Pre-configured search strategies for common content discovery patterns.

Each preset is a metadata filter plus a set of scoring weights run through
the hybrid search service.
"""

from collections.abc import Mapping
from typing import Any

from tuberank.models.content import HybridSearchResult, ScoringWeights
from tuberank.utils.errors import ValidationError

from .service import HybridSearchService


class SearchPresets:
    """Named hybrid-search recipes."""

    def __init__(self, service: HybridSearchService):
        self.service = service

    def _run(
        self,
        query: str,
        collection: str,
        top_k: int,
        filter: Mapping[str, Any] | None,
        weights: ScoringWeights,
    ) -> HybridSearchResult:
        return self.service.search(
            query, collection, top_k=top_k, filter=filter, weights=weights, include_score=True
        )

    def trending(self, query: str, collection: str, top_k: int = 10, min_views: int = 10000) -> HybridSearchResult:
        """Recent uploads with high view counts."""
        return self._run(query, collection, top_k, {"viewCount": {"$gte": min_views}},
                         ScoringWeights(vector=0.4, freshness=0.3, popularity=0.25, tags=0.05))

    def educational(
        self, query: str, collection: str, top_k: int = 10, min_engagement_rate: float = 5
    ) -> HybridSearchResult:
        """Well-engaged content, favouring relevance and popularity."""
        return self._run(query, collection, top_k, {"engagementRate": {"$gte": min_engagement_rate}},
                         ScoringWeights(vector=0.6, freshness=0.1, popularity=0.25, tags=0.05))

    def quick_tips(
        self, query: str, collection: str, top_k: int = 10, max_duration_seconds: int = 120
    ) -> HybridSearchResult:
        """Short, focused chapters."""
        return self._run(query, collection, top_k, {"chapterDurationSeconds": {"$lte": max_duration_seconds}},
                         ScoringWeights(vector=0.7, freshness=0.05, popularity=0.2, tags=0.05))

    def by_tags(self, query: str, collection: str, tags: list[str], top_k: int = 10) -> HybridSearchResult:
        """Items sharing at least one of ``tags``."""
        return self._run(query, collection, top_k, {"tags": {"$in": list(tags)}},
                         ScoringWeights(vector=0.5, freshness=0.1, popularity=0.2, tags=0.2))

    def channel(self, query: str, collection: str, channel_id: str, top_k: int = 10) -> HybridSearchResult:
        return self._run(query, collection, top_k, {"channelId": {"$eq": channel_id}},
                         ScoringWeights(vector=0.7, freshness=0.15, popularity=0.1, tags=0.05))

    def in_depth(
        self, query: str, collection: str, top_k: int = 10, min_duration_minutes: float = 20
    ) -> HybridSearchResult:
        """Longer, comprehensive videos."""
        return self._run(query, collection, top_k, {"videoLengthMinutes": {"$gte": min_duration_minutes}},
                         ScoringWeights(vector=0.8, freshness=0.05, popularity=0.1, tags=0.05))

    def viral(
        self,
        query: str,
        collection: str,
        top_k: int = 10,
        min_views: int = 100000,
        min_engagement_rate: float = 10,
    ) -> HybridSearchResult:
        return self._run(
            query, collection, top_k,
            {"viewCount": {"$gte": min_views}, "engagementRate": {"$gte": min_engagement_rate}},
            ScoringWeights(vector=0.5, freshness=0.05, popularity=0.4, tags=0.05),
        )

    def recent(self, query: str, collection: str, top_k: int = 10, min_views: int = 50000) -> HybridSearchResult:
        """Fresh content on a topic."""
        return self._run(query, collection, top_k, {"viewCount": {"$gte": min_views}},
                         ScoringWeights(vector=0.5, freshness=0.35, popularity=0.1, tags=0.05))

    def custom(
        self,
        query: str,
        collection: str,
        top_k: int = 10,
        filters: Mapping[str, Any] | None = None,
        weights: Mapping[str, float] | None = None,
    ) -> HybridSearchResult:
        """Caller-defined filter; weights not supplied fall back to the defaults."""
        return self._run(query, collection, top_k, filters or None, ScoringWeights(**(weights or {})))

    def run(self, name: str, query: str, collection: str, **options: Any) -> HybridSearchResult:
        """Dispatch to a preset by name."""
        preset = PRESETS.get(name)
        if preset is None:
            raise ValidationError(f"Unknown search preset: {name}", suggestions=sorted(PRESETS))
        return getattr(self, preset)(query, collection, **options)


PRESETS = {
    "trending": "trending",
    "educational": "educational",
    "quickTips": "quick_tips",
    "byTags": "by_tags",
    "channel": "channel",
    "inDepth": "in_depth",
    "viral": "viral",
    "recent": "recent",
    "custom": "custom",
}
