"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the engine
"""

from functools import lru_cache

from pydantic import Field

from segment_index.configs.base import BaseSettings
from segment_index.configs.database import DatabaseSettings
from segment_index.configs.vector_index import VectorIndexSettings


class Settings(BaseSettings):
    """Unified settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    vector_index: VectorIndexSettings = Field(default_factory=VectorIndexSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get settings singleton.

    Environment variables are loaded once; pass an explicit Settings
    instance to SegmentEngine when different values are needed.

    Returns:
        Settings: Application settings instance

    Usage:
        from segment_index.configs import get_settings
        settings = get_settings()
    """
    return Settings()
