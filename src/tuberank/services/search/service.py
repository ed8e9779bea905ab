"""
Hybrid search: vector retrieval re-ranked by freshness, popularity and tags.
"""

import time
from collections.abc import Mapping
from typing import Any

from tuberank.core.interfaces import IEmbeddingProvider, IVectorStore
from tuberank.models.content import (
    HybridSearchResult,
    QueryMetadata,
    ScoringWeights,
    SearchSource,
    extract_text,
)
from tuberank.services.filters.compiler import FilterCompiler
from tuberank.utils.config import TubeRankSettings, get_settings
from tuberank.utils.errors import ValidationError
import logging

from .scoring import HybridScorer

logger = logging.getLogger(__name__)


def embed_query(embedder: IEmbeddingProvider, query_text: str, dimension: int) -> list[float]:
    """Embed query text and check the embedding dimension.

    Provider failures propagate unchanged.
    """
    if not query_text or not query_text.strip():
        raise ValidationError("Query text must not be empty")

    try:
        embedding = list(embedder.embed(query_text))
    except Exception as e:
        logger.error(f"Embedding failed for query '{query_text[:50]}': {e}")
        raise

    if len(embedding) != dimension:
        raise ValidationError(
            f"Query embedding dimension mismatch: expected {dimension}, got {len(embedding)}"
        )
    return embedding


class HybridSearchService:
    """Non-graph retrieval path with multi-criteria scoring."""

    def __init__(
        self,
        store: IVectorStore,
        embedder: IEmbeddingProvider,
        scorer: HybridScorer | None = None,
        compiler: FilterCompiler | None = None,
        settings: TubeRankSettings | None = None,
    ):
        self.store = store
        self.embedder = embedder
        self.scorer = scorer or HybridScorer()
        self.compiler = compiler or FilterCompiler()
        self.settings = settings or get_settings()

        logger.info("Hybrid search service initialized")

    def search(
        self,
        query_text: str,
        collection: str,
        top_k: int | None = None,
        filter: Mapping[str, Any] | None = None,
        weights: ScoringWeights | None = None,
        include_score: bool = True,
    ) -> HybridSearchResult:
        """Search a collection and re-rank by hybrid score.

        Args:
            query_text: Free-text query
            collection: Vector store collection name
            top_k: Number of results (settings default when None)
            filter: Metadata filter DSL mapping
            weights: Scoring weights (settings default when None)
            include_score: When False, raw and hybrid scores are withheld

        Raises:
            ValidationError: on invalid input or a malformed filter
            UpstreamError: if the store or embedder fails
        """
        start_time = time.time()
        top_k = self.settings.search_default_top_k if top_k is None else top_k
        if top_k < 1:
            raise ValidationError(f"top_k must be at least 1, got {top_k}")
        weights = weights or self.settings.get_default_weights()

        compiled = self.compiler.compile(filter)
        embedding = embed_query(self.embedder, query_text, self.settings.embedding_dimension)

        logger.debug(
            f"Hybrid search on {collection}: top_k={top_k}, filters={compiled.applied_count}"
        )
        matches = self.store.query(
            collection,
            embedding,
            compiled,
            top_k * self.settings.search_candidate_multiplier,
            False,
        )
        logger.debug(f"Hybrid search fetched {len(matches)} candidates")

        ranked = self.scorer.rank(matches, query_text, weights)[:top_k]
        matched_filters = list(filter.keys()) if filter else None

        sources = [
            SearchSource(
                id=match.id,
                score=match.score if include_score else 0.0,
                hybrid_score=hybrid if include_score else None,
                metadata=match.metadata,
                text=extract_text(match.metadata),
                matched_filters=matched_filters,
            )
            for match, hybrid in ranked
        ]

        logger.info(
            f"Hybrid search completed in {int((time.time() - start_time) * 1000)}ms, "
            f"found {len(sources)} sources"
        )
        return HybridSearchResult(
            relevant_context=[match.metadata for match, _ in ranked],
            sources=sources,
            query_metadata=QueryMetadata(
                collection=collection,
                total_results=len(sources),
                filters_applied=compiled.applied_count,
                scoring_method="hybrid",
            ),
        )
