"""
Graph re-ranking by random walk with restart.

Seeds are the nodes most similar to the query. From each seed a walker
moves to weighted-random neighbours and jumps back to that seed with the
restart probability. Visit frequencies, scaled by the seed's similarity,
are summed into the final node scores.
"""

import random
from collections import Counter
from collections.abc import Sequence
from itertools import accumulate

import numpy as np

from tuberank.models.content import RankedNode
from tuberank.utils.errors import ValidationError
import logging

from .graph import SemanticGraph

logger = logging.getLogger(__name__)


class GraphRanker:
    """Random-walk-with-restart re-ranker over a SemanticGraph.

    Pass a seeded ``random.Random`` for reproducible walks.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def seed_similarities(self, graph: SemanticGraph, query_embedding: Sequence[float]) -> np.ndarray:
        query = np.asarray(query_embedding, dtype=np.float64)
        if query.shape != (graph.dimension,):
            raise ValidationError(
                f"Query embedding must have dimension {graph.dimension}, got {query.size}"
            )

        norm = float(np.linalg.norm(query))
        if graph.node_count == 0 or norm == 0.0:
            return np.zeros(graph.node_count, dtype=np.float64)
        return np.clip(graph.unit_embeddings() @ (query / norm), -1.0, 1.0)

    def select_seeds(self, similarities: np.ndarray, top_k: int) -> list[tuple[int, float]]:
        """Top ``top_k`` positions by similarity; ties keep candidate order."""
        order = sorted(range(len(similarities)), key=lambda position: -similarities[position])
        return [(position, float(similarities[position])) for position in order[:top_k]]

    def random_walk(
        self,
        graph: SemanticGraph,
        start: int,
        steps: int,
        restart_probability: float,
        transitions: dict[int, tuple[list[int], list[float]] | None] | None = None,
    ) -> dict[int, float]:
        """Walk ``steps`` times from ``start`` and return normalised visit frequencies."""
        if transitions is None:
            transitions = {}

        visits: Counter[int] = Counter()
        current = start
        for _ in range(steps):
            visits[current] += 1

            if self._rng.random() < restart_probability:
                current = start
                continue

            if current not in transitions:
                transitions[current] = self._transition_table(graph, current)
            table = transitions[current]
            if table is None:
                # Dead end: forced restart
                current = start
                continue

            targets, cumulative = table
            current = self._rng.choices(targets, cum_weights=cumulative, k=1)[0]

        total = sum(visits.values())
        return {position: count / total for position, count in visits.items()}

    @staticmethod
    def _transition_table(graph: SemanticGraph, position: int) -> tuple[list[int], list[float]] | None:
        neighbours = [(target, weight) for target, weight in graph.neighbors(position) if weight > 0.0]
        if not neighbours:
            return None
        targets = [target for target, _ in neighbours]
        cumulative = list(accumulate(weight for _, weight in neighbours))
        return targets, cumulative

    def query(
        self,
        graph: SemanticGraph,
        query_embedding: Sequence[float],
        top_k: int = 10,
        random_walk_steps: int = 100,
        restart_probability: float = 0.15,
    ) -> list[RankedNode]:
        """Rank graph nodes for a query embedding.

        Args:
            graph: Built semantic graph
            query_embedding: Query vector of the graph's dimension
            top_k: Number of seeds and of returned nodes
            random_walk_steps: Steps per seed walk
            restart_probability: Chance of jumping back to the seed each step

        Returns:
            Nodes sorted by fused score, highest first; empty for an empty graph

        Raises:
            ValidationError: on a dimension mismatch or invalid walk parameters
        """
        if top_k < 0:
            raise ValidationError(f"top_k must not be negative, got {top_k}")
        if random_walk_steps < 1:
            raise ValidationError(f"random_walk_steps must be at least 1, got {random_walk_steps}")
        if not 0.0 <= restart_probability <= 1.0:
            raise ValidationError(f"restart_probability must be in [0, 1], got {restart_probability}")

        similarities = self.seed_similarities(graph, query_embedding)
        if graph.node_count == 0 or top_k == 0:
            return []

        seeds = self.select_seeds(similarities, top_k)
        transitions: dict[int, tuple[list[int], list[float]] | None] = {}
        scores: dict[int, float] = {}
        for seed, seed_similarity in seeds:
            walk = self.random_walk(graph, seed, random_walk_steps, restart_probability, transitions)
            for position, probability in walk.items():
                scores[position] = scores.get(position, 0.0) + seed_similarity * probability

        ranked = sorted(scores.items(), key=lambda entry: (-entry[1], entry[0]))[:top_k]
        logger.debug(f"Random walk over {len(seeds)} seeds scored {len(scores)} nodes")

        results = []
        for position, score in ranked:
            node = graph.node_at(position)
            results.append(RankedNode(
                id=node.id,
                item_id=node.item_id,
                content=node.content,
                metadata=dict(node.metadata),
                score=score,
            ))
        return results
