"""
Service interfaces for the collaborators the retrieval core depends on.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from tuberank.models.content import StoreMatch


class IVectorStore(ABC):
    """Abstract interface for a nearest-neighbour vector store."""

    @abstractmethod
    def query(
        self,
        collection: str,
        query_embedding: Sequence[float],
        filter_predicate: Any = None,
        top_k: int = 10,
        include_vector: bool = False,
    ) -> list[StoreMatch]:
        """Return the ``top_k`` closest rows, optionally with their raw vectors."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the store connection."""
        pass


class IEmbeddingProvider(ABC):
    """Abstract interface for turning query text into an embedding."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a single piece of text."""
        pass
