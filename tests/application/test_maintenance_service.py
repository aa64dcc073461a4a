"""
Test suite for MaintenanceService through the engine facade.

Tests statistics, invalid-vector cleanup and health reporting.

System role: Verification of maintenance and health operations
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import update

from segment_index.boundary.db.models.segment_model import SegmentModel
from segment_index.boundary.vdb import vector_codec
from segment_index.boundary.vdb.vector_schemas import IndexState
from segment_index.engine import SegmentEngine
from tests.helpers import vec


class TestGetStats:
    """Test suite for get_stats()."""

    @pytest.mark.asyncio
    async def test_get_stats_should_report_empty_store(self, engine: SegmentEngine) -> None:
        """Test an empty store reports zeros."""
        stats = await engine.get_stats()

        assert (stats.total_segments, stats.segments_missing_embedding, stats.average_text_length) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_get_stats_should_count_pending_segments(
        self, engine: SegmentEngine, parent_id: uuid.UUID
    ) -> None:
        """Test totals, pending embeddings and rounded mean length."""
        # Arrange
        ids = await engine.create_segments(parent_id, [{"text": "abc"}, {"text": "abcdef"}, {"text": "ab"}])
        await engine.apply_batch([(ids[0], vec(1, 0, 0, 0))])

        # Act
        stats = await engine.get_stats()

        # Assert
        assert stats.total_segments == 3
        assert stats.segments_missing_embedding == 2
        assert stats.average_text_length == 4


class TestCleanupInvalidVectors:
    """Test suite for cleanup_invalid_vectors()."""

    @pytest.mark.asyncio
    async def test_cleanup_should_remove_corrupt_rows_only(
        self, engine: SegmentEngine, session_factory, parent_id: uuid.UUID
    ) -> None:
        """Test a truncated blob is removed; valid and pending segments stay."""
        # Arrange
        valid, corrupt, pending = await engine.create_segments(
            parent_id, [{"text": "valid"}, {"text": "corrupt"}, {"text": "pending"}]
        )
        await engine.apply_batch([(valid, vec(1, 0, 0, 0)), (corrupt, vec(0, 1, 0, 0))])
        await engine.rebuild_index()
        async with session_factory() as session:
            await session.execute(
                update(SegmentModel)
                .where(SegmentModel.id == corrupt)
                .values(embedding=vector_codec.encode([0.0, 1.0]), embedding_dim=2)
            )
            await session.commit()

        # Act
        removed = await engine.cleanup_invalid_vectors()

        # Assert
        assert removed == 1
        assert [s.id for s in await engine.get_by_ids([valid, corrupt, pending])] == [valid, pending]
        assert engine.index_status().vector_count == 1

    @pytest.mark.asyncio
    async def test_cleanup_should_be_noop_on_clean_store(
        self, engine: SegmentEngine, parent_id: uuid.UUID
    ) -> None:
        """Test nothing is removed when every embedding is valid."""
        segment_id = await engine.create_segment(parent_id, "fine")
        await engine.apply_batch([(segment_id, vec(1, 0, 0, 0))])

        assert await engine.cleanup_invalid_vectors() == 0

    @pytest.mark.asyncio
    async def test_search_should_skip_corrupt_rows_before_cleanup(
        self, engine: SegmentEngine, session_factory, parent_id: uuid.UUID
    ) -> None:
        """Test corrupt embeddings never reach similarity math."""
        # Arrange
        good = await engine.create_segment(parent_id, "good")
        bad = await engine.create_segment(parent_id, "bad")
        await engine.apply_batch([(good, vec(1, 0, 0, 0)), (bad, vec(1, 0, 0, 0))])
        async with session_factory() as session:
            await session.execute(
                update(SegmentModel).where(SegmentModel.id == bad).values(embedding=b"\x00\x00\x80")
            )
            await session.commit()

        # Act
        results = await engine.search(vec(1, 0, 0, 0))

        # Assert
        assert [r.segment.id for r in results] == [good]


class TestHealthCheck:
    """Test suite for health_check()."""

    @pytest.mark.asyncio
    async def test_health_should_report_connected_and_index_state(
        self, engine: SegmentEngine, parent_id: uuid.UUID
    ) -> None:
        """Test connectivity and READY index size."""
        # Arrange
        segment_id = await engine.create_segment(parent_id, "indexed")
        await engine.apply_batch([(segment_id, vec(1, 0, 0, 0))])
        before = await engine.health_check()

        # Act
        await engine.rebuild_index()
        after = await engine.health_check()

        # Assert
        assert (before.connected, before.index_state, before.vectors_indexed) == (True, IndexState.ABSENT, 0)
        assert (after.connected, after.index_state, after.vectors_indexed) == (True, IndexState.READY, 1)

    @pytest.mark.asyncio
    async def test_health_should_report_disconnected_store(self, engine: SegmentEngine) -> None:
        """Test a failing ping is reported instead of raised."""
        engine.store.ping = AsyncMock(return_value=False)

        status = await engine.health_check()

        assert status.connected is False
        assert status.index_state == IndexState.ABSENT
