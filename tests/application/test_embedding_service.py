"""
Test suite for EmbeddingService through the engine facade.

Tests all-or-nothing batch semantics: validation before any write,
unknown segments, duplicates, replacement and batch splitting.

System role: Verification of the batch embedding updater
"""

import math
import uuid

import pytest

from segment_index.boundary.vdb.vector_schemas import EmbeddingUpdate
from segment_index.core.exceptions import BatchPartialFailureError
from segment_index.engine import SegmentEngine
from tests.helpers import vec


class TestApplyBatch:
    """Test suite for apply_batch()."""

    @pytest.mark.asyncio
    async def test_apply_batch_should_reject_whole_batch_on_dimension_mismatch(
        self, engine_factory, parent_id: uuid.UUID
    ) -> None:
        """Test one 512-dim vector in a 1536-dim store blocks the valid one too."""
        # Arrange
        segment_engine = await engine_factory(embedding_dimension=1536)
        s1, s2 = await segment_engine.create_segments(parent_id, [{"text": "one"}, {"text": "two"}])

        # Act
        result = await segment_engine.apply_batch([(s1, [0.1] * 1536), (s2, [0.1] * 512)])

        # Assert
        assert result.ok is False
        assert result.applied == 0
        assert [(f.index, f.segment_id) for f in result.failures] == [(1, s2)]
        assert "expected 1536, got 512" in result.failures[0].reason
        segments = await segment_engine.get_by_ids([s1, s2])
        assert [s.has_embedding for s in segments] == [False, False]

    @pytest.mark.asyncio
    async def test_apply_batch_should_reject_unknown_segment(
        self, engine: SegmentEngine, parent_id: uuid.UUID
    ) -> None:
        """Test a batch naming a missing segment persists nothing."""
        # Arrange
        known = await engine.create_segment(parent_id, "known")
        unknown = uuid.uuid4()

        # Act
        result = await engine.apply_batch([(known, vec(1, 0, 0, 0)), (unknown, vec(0, 1, 0, 0))])

        # Assert
        assert result.ok is False
        assert [(f.index, f.segment_id, f.reason) for f in result.failures] == [
            (1, unknown, "Segment not found")
        ]
        assert (await engine.get_segment(known)).has_embedding is False

    @pytest.mark.asyncio
    async def test_apply_batch_should_reject_duplicate_and_non_finite_entries(
        self, engine: SegmentEngine, parent_id: uuid.UUID
    ) -> None:
        """Test every invalid entry is reported with its index."""
        # Arrange
        a, b = await engine.create_segments(parent_id, [{"text": "a"}, {"text": "b"}])

        # Act
        result = await engine.apply_batch(
            [
                (a, vec(1, 0, 0, 0)),
                (a, vec(0, 1, 0, 0)),
                (b, [math.nan, 0.0, 0.0, 0.0]),
                ("not-a-uuid", vec(1, 0, 0, 0)),
                "garbage",
            ]
        )

        # Assert
        assert result.ok is False
        assert [f.index for f in result.failures] == [1, 2, 3, 4]
        assert result.failures[3].segment_id is None
        assert (await engine.get_stats()).segments_missing_embedding == 2

    @pytest.mark.asyncio
    async def test_apply_batch_should_accept_models_and_replace_embeddings(
        self, engine: SegmentEngine, parent_id: uuid.UUID
    ) -> None:
        """Test EmbeddingUpdate entries work and a second batch replaces the vector."""
        # Arrange
        segment_id = await engine.create_segment(parent_id, "moving target")

        # Act
        first = await engine.apply_batch([EmbeddingUpdate(segment_id=segment_id, vector=vec(1, 0, 0, 0))])
        second = await engine.apply_batch([(str(segment_id), vec(0, 1, 0, 0))])

        # Assert
        assert (first.ok, first.applied) == (True, 1)
        assert (second.ok, second.applied) == (True, 1)
        assert await engine.search(vec(1, 0, 0, 0)) == []
        assert [r.segment.id for r in await engine.search(vec(0, 1, 0, 0))] == [segment_id]

    @pytest.mark.asyncio
    async def test_apply_batch_should_accept_empty_batch(self, engine: SegmentEngine) -> None:
        """Test nothing to apply is a success."""
        result = await engine.apply_batch([])

        assert (result.ok, result.applied, result.failures) == (True, 0, [])

    @pytest.mark.asyncio
    async def test_failed_batch_should_raise_on_request(
        self, engine: SegmentEngine
    ) -> None:
        """Test raise_for_failures turns a rejected batch into an exception."""
        result = await engine.apply_batch([(uuid.uuid4(), vec(1, 0, 0, 0))])

        with pytest.raises(BatchPartialFailureError):
            result.raise_for_failures()


class TestIterBatches:
    """Test suite for iter_batches()."""

    @pytest.mark.asyncio
    async def test_iter_batches_should_chunk_by_batch_size(self, engine_factory) -> None:
        """Test long update streams are split into embedding_batch_size pieces."""
        # Arrange
        segment_engine = await engine_factory(embedding_batch_size=2)
        updates = [(uuid.uuid4(), vec(1, 0, 0, 0)) for _ in range(5)]

        # Act
        batches = list(segment_engine.embeddings.iter_batches(iter(updates)))

        # Assert
        assert [len(batch) for batch in batches] == [2, 2, 1]
        assert [u for batch in batches for u in batch] == updates
