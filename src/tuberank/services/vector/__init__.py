"""DuckDB-backed vector store adapter."""

from .database import VectorStore

__all__ = ["VectorStore"]
