"""
In-memory semantic graph over a candidate set of embedded chunks.

Nodes live in a list and are addressed by position; each node keeps a list
of ``(neighbour_index, weight)`` pairs. Every undirected edge is stored as
two directed entries with the same weight.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from tuberank.models.content import ContentItem
from tuberank.utils.errors import ValidationError
import logging

logger = logging.getLogger(__name__)


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity clamped to [-1, 1]; 0 when either vector is all zeros."""
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    if a.shape != b.shape:
        raise ValidationError(f"Vector dimensions must match: {a.shape[0]} != {b.shape[0]}")

    magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / magnitude, -1.0, 1.0))


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Scale rows to unit length, leaving zero rows at zero."""
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    safe = np.where(norms == 0.0, 1.0, norms)
    return matrix / safe


@dataclass(frozen=True)
class GraphNode:
    id: str
    content: str
    embedding: np.ndarray = field(repr=False)
    metadata: dict[str, Any] = field(default_factory=dict)
    item_id: str | None = None


class SemanticGraph:
    """Undirected weighted graph connecting semantically similar chunks."""

    def __init__(self, dimension: int = 1536, threshold: float = 0.7):
        if dimension < 1:
            raise ValidationError(f"Graph dimension must be positive, got {dimension}")
        self.dimension = dimension
        self.threshold = threshold
        self._nodes: list[GraphNode] = []
        self._index: dict[str, int] = {}
        self._adjacency: list[list[tuple[int, float]]] = []
        self._pairs: set[tuple[int, int]] = set()
        self._frozen = False
        self._unit_embeddings: np.ndarray | None = None

    def add_node(self, node: GraphNode) -> int:
        """Add a node and return its position."""
        if self._frozen:
            raise ValidationError("Graph is frozen; nodes cannot be added after build")
        if node.embedding.shape != (self.dimension,):
            raise ValidationError(
                f"Embedding dimension mismatch for node {node.id}: "
                f"expected {self.dimension}, got {node.embedding.size}"
            )
        if node.id in self._index:
            raise ValidationError(f"Duplicate node id: {node.id}")

        position = len(self._nodes)
        self._nodes.append(node)
        self._index[node.id] = position
        self._adjacency.append([])
        return position

    def add_edge(self, source_id: str, target_id: str, weight: float) -> None:
        """Insert an undirected edge as two directed entries."""
        if self._frozen:
            raise ValidationError("Graph is frozen; edges cannot be added after build")
        if source_id not in self._index or target_id not in self._index:
            raise ValidationError(
                f"Both source and target nodes must exist: {source_id} -> {target_id}"
            )

        source = self._index[source_id]
        target = self._index[target_id]
        if source == target:
            raise ValidationError(f"Self-edges are not allowed: {source_id}")

        pair = (min(source, target), max(source, target))
        if pair in self._pairs:
            raise ValidationError(f"Duplicate edge between {source_id} and {target_id}")

        self._pairs.add(pair)
        self._adjacency[source].append((target, weight))
        self._adjacency[target].append((source, weight))

    def freeze(self) -> None:
        self._frozen = True
        self._unit_embeddings = None

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._pairs)

    @property
    def nodes(self) -> tuple[GraphNode, ...]:
        return tuple(self._nodes)

    def node_at(self, position: int) -> GraphNode:
        return self._nodes[position]

    def position_of(self, node_id: str) -> int:
        try:
            return self._index[node_id]
        except KeyError:
            raise ValidationError(f"Unknown node id: {node_id}") from None

    def get_node(self, node_id: str) -> GraphNode:
        return self._nodes[self.position_of(node_id)]

    def neighbors(self, position: int) -> list[tuple[int, float]]:
        return self._adjacency[position]

    def has_edge(self, source_id: str, target_id: str) -> bool:
        source = self.position_of(source_id)
        target = self.position_of(target_id)
        return (min(source, target), max(source, target)) in self._pairs

    def edge_weight(self, source_id: str, target_id: str) -> float | None:
        target = self.position_of(target_id)
        for neighbour, weight in self._adjacency[self.position_of(source_id)]:
            if neighbour == target:
                return weight
        return None

    def unit_embeddings(self) -> np.ndarray:
        """Row-normalised embedding matrix, cached once the graph is frozen."""
        if self._unit_embeddings is not None:
            return self._unit_embeddings

        if not self._nodes:
            matrix = np.zeros((0, self.dimension), dtype=np.float64)
        else:
            matrix = normalize_rows(np.vstack([node.embedding for node in self._nodes]))
        if self._frozen:
            self._unit_embeddings = matrix
        return matrix

    def get_stats(self) -> dict[str, Any]:
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "dimension": self.dimension,
            "threshold": self.threshold,
        }


def build_graph(items: Sequence[ContentItem], dimension: int = 1536, threshold: float = 0.7) -> SemanticGraph:
    """Build a semantic graph from embedded content items.

    One node per item (id is the item's position as a string); an edge joins
    every pair whose cosine similarity is strictly above ``threshold``.
    Cost is O(n^2) pairwise comparisons, so callers should cap the candidate
    set (500 items is the recommended ceiling).

    Raises:
        ValidationError: on empty input or an embedding of the wrong dimension
    """
    if not items:
        raise ValidationError("Cannot build graph from empty input")

    graph = SemanticGraph(dimension=dimension, threshold=threshold)
    for position, item in enumerate(items):
        if len(item.embedding) != dimension:
            raise ValidationError(
                f"Embedding dimension mismatch for item {item.id}: "
                f"expected {dimension}, got {len(item.embedding)}",
                context={"item_id": item.id, "position": position},
            )
        graph.add_node(GraphNode(
            id=str(position),
            content=item.text,
            embedding=np.asarray(item.embedding, dtype=np.float64),
            metadata=dict(item.metadata),
            item_id=item.id,
        ))

    unit = graph.unit_embeddings()
    similarities = np.clip(unit @ unit.T, -1.0, 1.0)
    rows, cols = np.triu_indices(len(items), k=1)
    above = similarities[rows, cols] > threshold
    for i, j in zip(rows[above].tolist(), cols[above].tolist()):
        graph.add_edge(str(i), str(j), float(similarities[i, j]))

    graph.freeze()
    logger.debug(
        f"Built semantic graph: {graph.node_count} nodes, {graph.edge_count} edges (threshold={threshold})"
    )
    return graph
