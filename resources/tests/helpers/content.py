"""
Shared test data for the retrieval services.

Usage:
    from resources.tests.helpers.content import FakeEmbedder, make_item
"""

from datetime import datetime, timezone

from tuberank.core.interfaces import IEmbeddingProvider
from tuberank.models.content import ContentItem

DIMENSION = 4
FIXED_NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)

# Two tight clusters: three items near e1, two near e4.
CLUSTER_EMBEDDINGS = [
    [1.0, 0.1, 0.0, 0.0],
    [1.0, 0.0, 0.1, 0.0],
    [1.0, 0.05, 0.05, 0.0],
    [0.0, 0.0, 0.1, 1.0],
    [0.0, 0.1, 0.0, 1.0],
]


class FakeEmbedder(IEmbeddingProvider):
    """Returns canned vectors per query text."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, default: list[float] | None = None):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0, 0.0, 0.0]
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


def make_item(item_id: str, embedding: list[float], **metadata) -> ContentItem:
    text = metadata.pop("text", f"chunk {item_id}")
    return ContentItem(id=item_id, text=text, metadata={"text": text, **metadata}, embedding=embedding)
