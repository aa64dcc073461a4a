"""
Vector index configuration settings.

Embedding dimension, retrieval defaults and clustered index tuning.

Dependencies: pydantic, pydantic_settings
System role: Retrieval and ANN index configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorIndexSettings(BaseSettings):
    """Embedding, search and clustered index configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_INDEX_",
        case_sensitive=False,
        extra="ignore",
    )

    embedding_dimension: int = Field(
        default=1536,
        description="Embedding vector dimension (1536 for text-embedding-ada-002)",
        ge=1,
    )

    similarity_threshold: float = Field(
        default=0.7,
        description="Default minimum similarity score (0.0-1.0)",
        ge=0.0,
        le=1.0,
    )
    default_limit: int = Field(default=10, description="Default number of results", ge=1)
    max_limit: int = Field(default=50, description="Hard cap on results per query", ge=1)
    overfetch_factor: int = Field(
        default=4,
        description="Candidates fetched per requested result before post-filtering",
        ge=1,
    )

    # Clustered (inverted-file) index
    target_cluster_size: int = Field(
        default=100,
        description="Average vectors per cluster used to derive the cluster count",
        ge=1,
    )
    n_clusters: int | None = Field(
        default=None,
        description="Fixed cluster count; derived from target_cluster_size when unset",
    )
    n_probe: int = Field(default=4, description="Clusters probed per query", ge=1)
    kmeans_iterations: int = Field(default=20, description="Maximum k-means iterations", ge=1)
    kmeans_seed: int = Field(default=42, description="Seed for centroid initialisation")

    embedding_batch_size: int = Field(
        default=100,
        description="Recommended number of embeddings per applied batch",
        ge=1,
    )
