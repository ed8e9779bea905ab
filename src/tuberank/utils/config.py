"""
Configuration management for TubeRank.

This module provides centralized configuration using Pydantic settings
with support for environment variables and .env files.
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tuberank.models.content import ScoringWeights

# Graph construction is O(n^2) in the candidate count.
RECOMMENDED_MAX_GRAPH_NODES = 500


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = []
    warnings: list[str] = []


class TubeRankSettings(BaseSettings):
    """TubeRank configuration settings."""

    # Application
    app_name: str = "tuberank"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)

    # Embedding settings
    embedding_dimension: int = Field(default=1536, description="Dimension of every stored and query embedding")

    # Vector store settings
    vector_db_path: str = Field(default="~/.tuberank/tuberank-vector.duckdb", description="Path to DuckDB vector store file")
    vector_db_read_only: bool = Field(default=False)

    # Graph settings
    graph_similarity_threshold: float = Field(default=0.7, description="Minimum cosine similarity for a graph edge")
    graph_random_walk_steps: int = Field(default=100, description="Steps per random walk")
    graph_restart_probability: float = Field(default=0.15, description="Probability of jumping back to the seed on each step")
    graph_max_nodes: int = Field(default=RECOMMENDED_MAX_GRAPH_NODES, description="Candidates fetched for graph construction")
    graph_cache_ttl_minutes: int = Field(default=30, description="Lifetime of a cached graph in minutes")

    # Search settings
    search_default_top_k: int = Field(default=10, description="Default limit for search results")
    search_candidate_multiplier: int = Field(default=2, description="Over-fetch factor before hybrid re-ranking")

    # Hybrid scoring weights
    scoring_weight_vector: float = Field(default=0.6)
    scoring_weight_freshness: float = Field(default=0.2)
    scoring_weight_popularity: float = Field(default=0.15)
    scoring_weight_tags: float = Field(default=0.05)

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_structured: bool = Field(default=False, description="Emit JSON log records")
    log_file: str | None = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="TUBERANK_",
        extra="ignore",
    )

    def get_vector_db_path(self) -> Path:
        """Get vector store path as Path object."""
        path = Path(self.vector_db_path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def get_log_file_path(self) -> Path | None:
        """Get log file path as Path object, if one is configured."""
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser().resolve()

    def get_default_weights(self) -> ScoringWeights:
        return ScoringWeights(
            vector=self.scoring_weight_vector,
            freshness=self.scoring_weight_freshness,
            popularity=self.scoring_weight_popularity,
            tags=self.scoring_weight_tags,
        )

    @property
    def graph_cache_ttl_seconds(self) -> float:
        return self.graph_cache_ttl_minutes * 60.0

    def validate_settings(self) -> ValidationResult:
        """Validate settings and return status information."""
        status = ValidationResult()

        if self.embedding_dimension < 1:
            status.errors.append("Embedding dimension must be at least 1")
            status.valid = False

        if not (-1.0 <= self.graph_similarity_threshold <= 1.0):
            status.errors.append("Graph similarity threshold must be between -1.0 and 1.0")
            status.valid = False

        if not (0.0 <= self.graph_restart_probability <= 1.0):
            status.errors.append("Restart probability must be between 0.0 and 1.0")
            status.valid = False

        if self.graph_random_walk_steps < 1:
            status.errors.append("Random walk steps must be at least 1")
            status.valid = False

        if self.graph_max_nodes < 1:
            status.errors.append("Graph max nodes must be at least 1")
            status.valid = False
        elif self.graph_max_nodes > RECOMMENDED_MAX_GRAPH_NODES:
            status.warnings.append(
                f"Graph max nodes {self.graph_max_nodes} exceeds {RECOMMENDED_MAX_GRAPH_NODES}; "
                "graph builds grow quadratically"
            )

        if self.graph_cache_ttl_minutes < 0:
            status.errors.append("Graph cache TTL must not be negative")
            status.valid = False

        weights = {
            "vector": self.scoring_weight_vector,
            "freshness": self.scoring_weight_freshness,
            "popularity": self.scoring_weight_popularity,
            "tags": self.scoring_weight_tags,
        }
        negative = [name for name, value in weights.items() if value < 0]
        if negative:
            status.errors.append(f"Scoring weights must not be negative: {', '.join(negative)}")
            status.valid = False

        total_weight = sum(weights.values())
        if abs(total_weight - 1.0) > 0.01:
            status.warnings.append(f"Scoring weights sum to {total_weight:.2f}; scores will not be in [0, 1]")

        return status


# Global settings instance
settings = TubeRankSettings()


def get_settings() -> TubeRankSettings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> TubeRankSettings:
    """Reload settings from environment and return new instance."""
    global settings
    settings = TubeRankSettings()
    return settings
