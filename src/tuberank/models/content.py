"""
Content models for TubeRank.

This module defines the transient records that flow between the vector
store, the scorers and the graph ranker. None of them are persisted by the
retrieval core.
"""

from typing import Any

from pydantic import BaseModel, Field


def extract_text(metadata: dict[str, Any] | None) -> str:
    """Return the chunk text stored in metadata (``text``, then ``chapterText``)."""
    if not metadata:
        return ""
    return metadata.get("text") or metadata.get("chapterText") or ""


class StoreMatch(BaseModel):
    """A single row returned by a vector store query."""

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
    vector: list[float] | None = None


class ContentItem(BaseModel):
    """A retrieved chunk together with its embedding."""

    id: str
    text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float]

    @classmethod
    def from_match(cls, match: StoreMatch) -> "ContentItem":
        return cls(
            id=match.id,
            text=extract_text(match.metadata),
            metadata=dict(match.metadata),
            embedding=list(match.vector or []),
        )


class ScoringWeights(BaseModel):
    """Weights for the four hybrid scoring signals. They need not sum to 1."""

    vector: float = Field(default=0.6, ge=0.0)
    freshness: float = Field(default=0.2, ge=0.0)
    popularity: float = Field(default=0.15, ge=0.0)
    tags: float = Field(default=0.05, ge=0.0)


class RankedNode(BaseModel):
    """A graph node with its fused random-walk score."""

    id: str
    item_id: str | None = None
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    score: float


class SearchSource(BaseModel):
    """One formatted result of a retrieval request."""

    id: str
    score: float
    hybrid_score: float | None = None
    graph_score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    text: str = ""
    matched_filters: list[str] | None = None


class QueryMetadata(BaseModel):
    collection: str
    total_results: int
    filters_applied: int
    scoring_method: str = "hybrid"


class HybridSearchResult(BaseModel):
    relevant_context: list[dict[str, Any]]
    sources: list[SearchSource]
    query_metadata: QueryMetadata


class GraphStats(BaseModel):
    node_count: int
    edge_count: int
    cache_hit: bool
    build_time_ms: float | None = None


class GraphSearchResult(BaseModel):
    relevant_context: list[dict[str, Any]]
    sources: list[SearchSource]
    graph_stats: GraphStats

    @classmethod
    def empty(cls) -> "GraphSearchResult":
        return cls(
            relevant_context=[],
            sources=[],
            graph_stats=GraphStats(node_count=0, edge_count=0, cache_hit=False, build_time_ms=0.0),
        )
