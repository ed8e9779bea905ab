"""
Vector store implementation using DuckDB.

This module stores chunk embeddings with their JSON metadata and answers
nearest-neighbour queries by cosine similarity, optionally restricted by a
compiled metadata filter.
"""

import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from textwrap import dedent
from typing import Any

import duckdb

from tuberank.core.interfaces import IVectorStore
from tuberank.models.content import ContentItem, StoreMatch
from tuberank.services.filters.compiler import CompiledFilter
from tuberank.utils.errors import UpstreamError, ValidationError
import logging

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


class VectorStore(IVectorStore):
    """DuckDB-based vector store for chunk embeddings."""

    def __init__(self, database_path: Path | str = IN_MEMORY, read_only: bool = False, dimension: int = 1536):
        """Initialize the vector store.

        Args:
            database_path: Path to the DuckDB database file, or ":memory:"
            read_only: Whether to open in read-only mode
            dimension: Embedding dimension enforced on every insert and query
        """
        self.database_path = database_path
        self.read_only = read_only
        self.dimension = dimension

        target = str(database_path)
        if target != IN_MEMORY:
            Path(target).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.ddb_connection = duckdb.connect(target, read_only=read_only)
            logger.info(f"Connected to vector store: {target}")
        except duckdb.Error as e:
            raise UpstreamError(f"Failed to connect to DuckDB database at {target}: {e}") from e

        if not self.read_only:
            self.initialize()

    @classmethod
    def from_settings(cls, settings) -> "VectorStore":
        """Create a VectorStore from TubeRankSettings."""
        return cls(
            database_path=settings.get_vector_db_path(),
            read_only=settings.vector_db_read_only,
            dimension=settings.embedding_dimension,
        )

    def initialize(self) -> None:
        """Initialize the database schema."""
        try:
            self.ddb_connection.execute(
                dedent("""
                CREATE TABLE IF NOT EXISTS chunks (
                    collection VARCHAR NOT NULL,
                    id VARCHAR NOT NULL,
                    text VARCHAR,
                    metadata JSON,
                    embedding DOUBLE[] NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (collection, id)
                )
            """)
            )
            logger.debug("Vector store schema initialized")
        except duckdb.Error as e:
            logger.error(f"Failed to initialize vector store schema: {e}")
            raise UpstreamError(f"Failed to initialize vector store schema: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        if hasattr(self, 'ddb_connection'):
            self.ddb_connection.close()
            logger.info("Vector store connection closed")

    def _check_dimension(self, embedding: Sequence[float], what: str) -> list[float]:
        if len(embedding) != self.dimension:
            raise ValidationError(
                f"Embedding dimension mismatch for {what}: expected {self.dimension}, got {len(embedding)}"
            )
        return [float(x) for x in embedding]

    def store_chunk(
        self,
        collection: str,
        chunk_id: str,
        text: str,
        metadata: dict[str, Any],
        embedding: Sequence[float],
    ) -> bool:
        """Store (or replace) a chunk.

        Returns:
            True if stored, False in read-only mode

        Raises:
            ValidationError: if the embedding has the wrong dimension
            UpstreamError: if DuckDB rejects the write
        """
        vector = self._check_dimension(embedding, f"chunk {chunk_id}")
        if self.read_only:
            logger.warning("Cannot store chunk in read-only vector store")
            return False

        try:
            # DuckDB list update limitation: delete first, then insert
            self.ddb_connection.execute(
                "DELETE FROM chunks WHERE collection = ? AND id = ?",
                (collection, chunk_id)
            )
            self.ddb_connection.execute(
                "INSERT INTO chunks (collection, id, text, metadata, embedding) VALUES (?, ?, ?, ?, ?)",
                (collection, chunk_id, text, json.dumps(metadata, default=str), vector),
            )
            logger.debug(f"Stored chunk: {collection}/{chunk_id}")
            return True
        except duckdb.Error as e:
            logger.error(f"Failed to store chunk {collection}/{chunk_id}: {e}")
            raise UpstreamError(f"Failed to store chunk {collection}/{chunk_id}: {e}") from e

    def store_items(self, collection: str, items: Iterable[ContentItem]) -> int:
        """Store content items; their text is also kept in metadata['text'] when absent."""
        stored = 0
        for item in items:
            metadata = dict(item.metadata)
            metadata.setdefault("text", item.text)
            if self.store_chunk(collection, item.id, item.text, metadata, item.embedding):
                stored += 1
        return stored

    def query(
        self,
        collection: str,
        query_embedding: Sequence[float],
        filter_predicate: CompiledFilter | None = None,
        top_k: int = 10,
        include_vector: bool = False,
    ) -> list[StoreMatch]:
        """Return the chunks most similar to a query embedding.

        Args:
            collection: Collection to search
            query_embedding: Query vector of the store's dimension
            filter_predicate: Compiled metadata filter, or None
            top_k: Maximum number of matches
            include_vector: Whether to return raw embeddings

        Raises:
            ValidationError: on a dimension mismatch
            UpstreamError: if the query fails
        """
        vector = self._check_dimension(query_embedding, "query")
        if top_k <= 0:
            return []

        # A zero vector on either side has similarity 0 by definition.
        if any(vector):
            score_sql = (
                "CASE WHEN list_dot_product(embedding, embedding) = 0 THEN 0.0 "
                "ELSE list_cosine_similarity(embedding, ?::DOUBLE[]) END"
            )
            params: list[Any] = [vector]
        else:
            score_sql = "0.0"
            params = []

        columns = f"id, {score_sql} AS score, metadata"
        if include_vector:
            columns += ", embedding"

        sql = f"SELECT {columns} FROM chunks WHERE collection = ?"
        params.append(collection)
        if filter_predicate is not None and not filter_predicate.is_empty:
            sql += f" AND ({filter_predicate.sql})"
            params.extend(filter_predicate.params)
        sql += " ORDER BY score DESC, created_at, id LIMIT ?"
        params.append(top_k)

        try:
            rows = self.ddb_connection.execute(sql, params).fetchall()
        except duckdb.Error as e:
            logger.error(f"Vector query failed on {collection}: {e}")
            raise UpstreamError(f"Vector query failed on {collection}: {e}") from e

        matches = []
        for row in rows:
            metadata = json.loads(row[2]) if isinstance(row[2], str) else (row[2] or {})
            matches.append(StoreMatch(
                id=row[0],
                score=float(row[1]),
                metadata=metadata,
                vector=list(row[3]) if include_vector else None,
            ))
        logger.debug(f"Vector query on {collection} returned {len(matches)} matches")
        return matches

    def count(self, collection: str | None = None) -> int:
        """Count chunks, optionally within one collection."""
        try:
            if collection is None:
                result = self.ddb_connection.execute("SELECT COUNT(*) FROM chunks").fetchone()
            else:
                result = self.ddb_connection.execute(
                    "SELECT COUNT(*) FROM chunks WHERE collection = ?", (collection,)
                ).fetchone()
            return result[0] if result else 0
        except duckdb.Error as e:
            raise UpstreamError(f"Failed to count chunks: {e}") from e

    def delete_collection(self, collection: str) -> int:
        """Delete every chunk of a collection and return how many were removed."""
        if self.read_only:
            logger.warning("Cannot delete collection in read-only vector store")
            return 0

        removed = self.count(collection)
        try:
            self.ddb_connection.execute("DELETE FROM chunks WHERE collection = ?", (collection,))
        except duckdb.Error as e:
            raise UpstreamError(f"Failed to delete collection {collection}: {e}") from e
        logger.info(f"Deleted {removed} chunks from collection {collection}")
        return removed

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
