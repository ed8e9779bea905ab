"""GraphRAG services: semantic graph, random-walk ranker, graph cache."""

from .cache import GraphCache, GraphCacheEntry, GraphCacheKey, GraphLookup
from .graph import GraphNode, SemanticGraph, build_graph, cosine_similarity
from .ranker import GraphRanker
from .service import GraphRAGService

__all__ = [
    "GraphCache",
    "GraphCacheEntry",
    "GraphCacheKey",
    "GraphLookup",
    "GraphNode",
    "GraphRAGService",
    "GraphRanker",
    "SemanticGraph",
    "build_graph",
    "cosine_similarity",
]
