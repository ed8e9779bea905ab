"""
Unit tests for semantic graph construction.
"""

import numpy as np
import pytest

from tuberank.models.content import ContentItem
from tuberank.services.graphrag.graph import (
    GraphNode,
    SemanticGraph,
    build_graph,
    cosine_similarity,
)
from tuberank.utils.errors import ValidationError

from resources.tests.helpers.content import DIMENSION, make_item


def node(node_id: str, vector: list[float]) -> GraphNode:
    return GraphNode(id=node_id, content=f"content {node_id}", embedding=np.asarray(vector, dtype=float))


class TestCosineSimilarity:

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        a, b = [0.3, -1.0, 2.0], [1.5, 0.2, -0.7]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_orthogonal_and_opposite(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 0.0], [-2.0, 0.0]) == pytest.approx(-1.0)

    def test_zero_vector_is_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(ValidationError, match="dimensions must match"):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestSemanticGraph:

    @pytest.fixture
    def graph(self):
        graph = SemanticGraph(dimension=2, threshold=0.5)
        graph.add_node(node("a", [1.0, 0.0]))
        graph.add_node(node("b", [0.0, 1.0]))
        return graph

    def test_edges_are_bidirectional(self, graph):
        graph.add_edge("a", "b", 0.8)
        assert graph.edge_weight("a", "b") == 0.8
        assert graph.edge_weight("b", "a") == 0.8
        assert graph.edge_count == 1
        assert graph.neighbors(0) == [(1, 0.8)]
        assert graph.neighbors(1) == [(0, 0.8)]

    def test_edge_to_unknown_node(self, graph):
        with pytest.raises(ValidationError, match="Both source and target nodes must exist"):
            graph.add_edge("a", "zzz", 0.9)

    def test_self_and_duplicate_edges_rejected(self, graph):
        with pytest.raises(ValidationError):
            graph.add_edge("a", "a", 1.0)
        graph.add_edge("a", "b", 0.8)
        with pytest.raises(ValidationError, match="Duplicate edge"):
            graph.add_edge("b", "a", 0.8)

    def test_node_dimension_checked(self, graph):
        with pytest.raises(ValidationError, match="dimension mismatch"):
            graph.add_node(node("c", [1.0, 0.0, 0.0]))

    def test_duplicate_node_rejected(self, graph):
        with pytest.raises(ValidationError, match="Duplicate node id"):
            graph.add_node(node("a", [1.0, 1.0]))

    def test_frozen_graph_is_immutable(self, graph):
        graph.freeze()
        assert graph.frozen
        with pytest.raises(ValidationError, match="frozen"):
            graph.add_node(node("c", [1.0, 1.0]))
        with pytest.raises(ValidationError, match="frozen"):
            graph.add_edge("a", "b", 0.9)

    def test_unknown_node_lookup(self, graph):
        with pytest.raises(ValidationError, match="Unknown node id"):
            graph.get_node("missing")

    def test_stats(self, graph):
        graph.add_edge("a", "b", 0.6)
        assert graph.get_stats() == {"node_count": 2, "edge_count": 1, "dimension": 2, "threshold": 0.5}


class TestBuildGraph:

    def test_empty_input_rejected(self):
        with pytest.raises(ValidationError, match="Cannot build graph from empty input"):
            build_graph([], dimension=DIMENSION)

    def test_wrong_dimension_rejected(self):
        items = [make_item("ok", [1.0, 0.0, 0.0, 0.0]), make_item("bad", [1.0, 0.0])]
        with pytest.raises(ValidationError, match="Embedding dimension mismatch"):
            build_graph(items, dimension=DIMENSION)

    def test_nodes_follow_input_order(self, cluster_items):
        graph = build_graph(cluster_items, dimension=DIMENSION)
        assert graph.node_count == len(cluster_items)
        assert [n.id for n in graph.nodes] == ["0", "1", "2", "3", "4"]
        assert [n.item_id for n in graph.nodes] == [item.id for item in cluster_items]
        assert graph.frozen

    def test_clusters_are_not_connected(self, cluster_items):
        graph = build_graph(cluster_items, dimension=DIMENSION, threshold=0.7)

        assert graph.edge_count == 4
        expected = {("0", "1"), ("0", "2"), ("1", "2"), ("3", "4")}
        for i in range(5):
            for j in range(i + 1, 5):
                assert graph.has_edge(str(i), str(j)) == ((str(i), str(j)) in expected)

    def test_edge_iff_similarity_above_threshold(self, cluster_items):
        threshold = 0.995
        graph = build_graph(cluster_items, dimension=DIMENSION, threshold=threshold)

        for i, a in enumerate(cluster_items):
            for j, b in enumerate(cluster_items):
                if i >= j:
                    continue
                similarity = cosine_similarity(a.embedding, b.embedding)
                assert graph.has_edge(str(i), str(j)) == (similarity > threshold)
                if similarity > threshold:
                    assert graph.edge_weight(str(i), str(j)) == pytest.approx(similarity)

    def test_threshold_is_strict(self):
        items = [make_item("a", [1.0, 0.0, 0.0, 0.0]), make_item("b", [1.0, 0.0, 0.0, 0.0])]
        assert build_graph(items, dimension=DIMENSION, threshold=1.0).edge_count == 0
        assert build_graph(items, dimension=DIMENSION, threshold=0.99).edge_count == 1

    def test_zero_embeddings_never_connect(self):
        items = [
            make_item("zero", [0.0, 0.0, 0.0, 0.0]),
            make_item("one", [1.0, 0.0, 0.0, 0.0]),
        ]
        assert build_graph(items, dimension=DIMENSION, threshold=-0.5).edge_count == 1
        assert build_graph(items, dimension=DIMENSION, threshold=0.0).edge_count == 0

    def test_node_carries_item_content(self):
        item = ContentItem(id="v1", text="hello", metadata={"text": "hello", "channelId": "c"}, embedding=[0.0, 0.0, 1.0, 0.0])
        graph = build_graph([item], dimension=DIMENSION)
        built = graph.get_node("0")
        assert built.content == "hello"
        assert built.metadata["channelId"] == "c"
        assert graph.edge_count == 0
