"""
Shared test fixtures and configuration for entire test suite.

Provides: Small-dimension settings, in-memory SQLite engines, session factories
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from typing import Any

import pytest

from segment_index.configs.settings import Settings
from segment_index.engine import SegmentEngine
from tests.helpers import MEMORY_URL, make_settings


@pytest.fixture
def settings() -> Settings:
    """Provide settings for a 4-dimensional in-memory engine."""
    return make_settings()


@pytest.fixture
async def engine(settings: Settings):
    """
    Create a SegmentEngine over an in-memory SQLite database.

    Yields:
        SegmentEngine: Engine with schema created, closed after the test
    """
    segment_engine = SegmentEngine.from_settings(settings)
    await segment_engine.create_schema()
    yield segment_engine
    await segment_engine.close()


@pytest.fixture
async def engine_factory():
    """
    Build engines with custom settings; all are closed after the test.

    Yields:
        Callable: async (url=..., **index_overrides) -> SegmentEngine
    """
    created: list[SegmentEngine] = []

    async def factory(url: str = MEMORY_URL, **index_overrides: Any) -> SegmentEngine:
        segment_engine = SegmentEngine.from_settings(make_settings(url, **index_overrides))
        await segment_engine.create_schema()
        created.append(segment_engine)
        return segment_engine

    yield factory
    for segment_engine in created:
        await segment_engine.close()


@pytest.fixture
def session_factory(engine: SegmentEngine):
    """Provide the engine's session factory for direct table access."""
    return engine._session_factory


@pytest.fixture
def parent_id() -> uuid.UUID:
    """Provide sample parent document UUID."""
    return uuid.uuid4()
