"""Core abstractions for external collaborators."""

from .interfaces import IEmbeddingProvider, IVectorStore

__all__ = ["IEmbeddingProvider", "IVectorStore"]
