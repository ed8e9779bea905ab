"""
GraphRAG Service Implementation.

Builds (or reuses) a semantic graph over the top candidates of a collection
and re-ranks it with random walks seeded by the query.
"""

import time
from collections.abc import Mapping
from typing import Any

from tuberank.core.interfaces import IEmbeddingProvider, IVectorStore
from tuberank.models.content import ContentItem, GraphSearchResult, GraphStats, SearchSource
from tuberank.services.filters.compiler import CompiledFilter, FilterCompiler
from tuberank.services.search.service import embed_query
from tuberank.utils.config import TubeRankSettings, get_settings
from tuberank.utils.errors import ValidationError
import logging

from .cache import GraphCache
from .graph import SemanticGraph, build_graph
from .ranker import GraphRanker

logger = logging.getLogger(__name__)


class GraphRAGService:
    """Graph retrieval path: fetch candidates, build/reuse graph, random-walk rank."""

    def __init__(
        self,
        store: IVectorStore,
        embedder: IEmbeddingProvider,
        cache: GraphCache,
        ranker: GraphRanker | None = None,
        compiler: FilterCompiler | None = None,
        settings: TubeRankSettings | None = None,
    ):
        self.store = store
        self.embedder = embedder
        self.cache = cache
        self.ranker = ranker or GraphRanker()
        self.compiler = compiler or FilterCompiler()
        self.settings = settings or get_settings()

        logger.info("GraphRAG service initialized")

    def _graph_builder(
        self,
        collection: str,
        embedding: list[float],
        compiled: CompiledFilter,
        threshold: float,
        max_graph_nodes: int,
    ):
        def build() -> SemanticGraph | None:
            logger.debug(f"Building new graph for {collection}: max_graph_nodes={max_graph_nodes}")
            matches = self.store.query(collection, embedding, compiled, max_graph_nodes, True)
            if not matches:
                logger.warning(f"No results found for graph construction in {collection}")
                return None
            items = [ContentItem.from_match(match) for match in matches]
            return build_graph(items, self.settings.embedding_dimension, threshold)

        return build

    def search(
        self,
        query_text: str,
        collection: str,
        top_k: int | None = None,
        filter: Mapping[str, Any] | None = None,
        random_walk_steps: int | None = None,
        restart_probability: float | None = None,
        threshold: float | None = None,
        max_graph_nodes: int | None = None,
        rebuild_graph: bool = False,
    ) -> GraphSearchResult:
        """Run a GraphRAG search.

        Unset options fall back to the graph settings (100 steps, 0.15
        restart probability, 0.7 threshold, 500 graph nodes).

        Raises:
            ValidationError: on invalid input or a malformed filter
            UpstreamError: if the store or embedder fails
        """
        start_time = time.time()
        s = self.settings
        top_k = s.search_default_top_k if top_k is None else top_k
        random_walk_steps = s.graph_random_walk_steps if random_walk_steps is None else random_walk_steps
        restart_probability = s.graph_restart_probability if restart_probability is None else restart_probability
        threshold = s.graph_similarity_threshold if threshold is None else threshold
        max_graph_nodes = s.graph_max_nodes if max_graph_nodes is None else max_graph_nodes

        if top_k < 1:
            raise ValidationError(f"top_k must be at least 1, got {top_k}")
        if max_graph_nodes < 1:
            raise ValidationError(f"max_graph_nodes must be at least 1, got {max_graph_nodes}")

        compiled = self.compiler.compile(filter)
        embedding = embed_query(self.embedder, query_text, s.embedding_dimension)

        logger.debug(
            f"GraphRAG search on {collection}: top_k={top_k}, threshold={threshold}, "
            f"steps={random_walk_steps}, restart={restart_probability}"
        )

        key = self.cache.make_key(collection, threshold)
        lookup = self.cache.get_or_build(
            key,
            self._graph_builder(collection, embedding, compiled, threshold, max_graph_nodes),
            force_rebuild=rebuild_graph,
        )
        if lookup.graph is None:
            return GraphSearchResult.empty()

        graph = lookup.graph
        ranked = self.ranker.query(graph, embedding, top_k, random_walk_steps, restart_probability)
        logger.debug(f"Graph query complete: {len(ranked)} results")

        sources = [
            SearchSource(
                id=node.item_id or node.id,
                score=node.score,
                graph_score=node.score,
                metadata=node.metadata,
                text=node.content,
            )
            for node in ranked
        ]

        logger.info(
            f"GraphRAG search completed in {int((time.time() - start_time) * 1000)}ms, "
            f"found {len(sources)} sources (cache_hit={lookup.cache_hit})"
        )
        return GraphSearchResult(
            relevant_context=[node.metadata for node in ranked],
            sources=sources,
            graph_stats=GraphStats(
                node_count=graph.node_count,
                edge_count=graph.edge_count,
                cache_hit=lookup.cache_hit,
                build_time_ms=lookup.build_time_ms,
            ),
        )

    def clear_graph_cache(self, collection: str | None = None) -> int:
        """Drop cached graphs for a collection, or all of them."""
        return self.cache.invalidate(collection)
