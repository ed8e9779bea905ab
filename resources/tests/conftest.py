"""Pytest configuration for resources/tests.

Ensures the repository root is on sys.path so tests can import
helpers via absolute package path like `resources.tests.helpers`.
"""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from resources.tests.helpers.content import CLUSTER_EMBEDDINGS, DIMENSION, FakeEmbedder, make_item
from tuberank.services.vector.database import VectorStore
from tuberank.utils.config import TubeRankSettings


@pytest.fixture
def settings():
    return TubeRankSettings(_env_file=None, embedding_dimension=DIMENSION)


@pytest.fixture
def cluster_items():
    return [make_item(f"chunk-{i}", vector) for i, vector in enumerate(CLUSTER_EMBEDDINGS)]


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_store():
    store = VectorStore(":memory:", dimension=DIMENSION)
    yield store
    store.close()
