"""Data models shared across the retrieval services."""

from .content import (
    ContentItem,
    GraphSearchResult,
    GraphStats,
    HybridSearchResult,
    QueryMetadata,
    RankedNode,
    ScoringWeights,
    SearchSource,
    StoreMatch,
    extract_text,
)

__all__ = [
    "ContentItem",
    "GraphSearchResult",
    "GraphStats",
    "HybridSearchResult",
    "QueryMetadata",
    "RankedNode",
    "ScoringWeights",
    "SearchSource",
    "StoreMatch",
    "extract_text",
]
