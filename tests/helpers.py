"""
Plain helpers shared by test modules.

System role: Settings, vector and record builders for tests
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import numpy as np

from segment_index.boundary.vdb.vector_store import EmbeddingRecord
from segment_index.configs.database import DatabaseSettings
from segment_index.configs.settings import Settings
from segment_index.configs.vector_index import VectorIndexSettings

TEST_DIMENSION = 4
MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(url: str = MEMORY_URL, **index_overrides: Any) -> Settings:
    """Settings for a 4-dimensional index unless overridden."""
    index_values: dict[str, Any] = {"embedding_dimension": TEST_DIMENSION}
    index_values.update(index_overrides)
    return Settings(
        database=DatabaseSettings(url=url),
        vector_index=VectorIndexSettings(**index_values),
    )


def vec(*components: float) -> list[float]:
    """Readable vector literal."""
    return [float(c) for c in components]


def make_record(
    vector: list[float],
    parent_id: uuid.UUID | None = None,
    seq: int = 0,
) -> EmbeddingRecord:
    """Embedding record with a fresh id and a created_at ordered by seq."""
    return EmbeddingRecord(
        segment_id=uuid.uuid4(),
        parent_id=parent_id or uuid.uuid4(),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seq),
        seq=seq,
        vector=np.asarray(vector, dtype=np.float32),
    )
