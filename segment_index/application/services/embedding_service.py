"""
Batch embedding updater.

Validates an entire batch of (segment id, vector) pairs before touching
the store, then writes it in one transaction. Either every embedding of
the batch is attached or none is.

Dependencies: numpy, segment_index.boundary.vdb
System role: Embedding ingestion for asynchronously computed vectors
"""

import logging
from typing import Any, Iterable, Iterator, Sequence
from uuid import UUID

import numpy as np

from segment_index.boundary.vdb import vector_codec
from segment_index.boundary.vdb.index_manager import IndexManager
from segment_index.boundary.vdb.vector_schemas import BatchEntryError, BatchResult, EmbeddingUpdate
from segment_index.boundary.vdb.vector_store import VectorStore
from segment_index.configs.vector_index import VectorIndexSettings
from segment_index.core.exceptions import InvalidInputError
from segment_index.core.ids import coerce_uuid

logger = logging.getLogger(__name__)

UpdateLike = EmbeddingUpdate | tuple[UUID | str, Sequence[float] | np.ndarray]


class EmbeddingService:
    """
    Applies embedding batches atomically and refreshes the ANN index.
    """

    def __init__(
        self,
        store: VectorStore,
        index_manager: IndexManager,
        settings: VectorIndexSettings,
    ) -> None:
        """
        Initialize embedding service.

        Args:
            store: Vector store receiving the embeddings
            index_manager: Index manager refreshed after each commit
            settings: Embedding dimension and batch size
        """
        self.store = store
        self.index_manager = index_manager
        self.settings = settings

    async def apply_batch(self, updates: Iterable[UpdateLike]) -> BatchResult:
        """
        Attach or replace embeddings for a batch of segments, all or nothing.

        Every entry is validated first (dimension, finite values, no
        duplicate segment in the batch); the batch is then written in one
        transaction that also fails when any target segment is missing.

        Args:
            updates: EmbeddingUpdate models or (segment_id, vector) pairs

        Returns:
            BatchResult: ok=True with the applied count, or ok=False with
            per-entry failures and nothing persisted

        Raises:
            StorageError: If the store fails
        """
        failures: list[BatchEntryError] = []
        parsed: dict[UUID, np.ndarray] = {}
        positions: dict[UUID, int] = {}

        for i, entry in enumerate(updates):
            segment_id = None
            try:
                segment_id, vector = self._unpack(entry)
                if segment_id in parsed:
                    raise InvalidInputError(
                        f"Duplicate segment in batch (first at index {positions[segment_id]})",
                        field="segment_id",
                    )
                parsed[segment_id] = vector_codec.validate(vector, self.settings.embedding_dimension)
                positions[segment_id] = i
            except InvalidInputError as e:
                failures.append(BatchEntryError(index=i, segment_id=segment_id, reason=e.message))

        if failures:
            logger.warning(
                f"{__name__}:apply_batch - Rejected batch: {len(failures)} invalid entries "
                f"of {len(failures) + len(parsed)}"
            )
            return BatchResult(ok=False, applied=0, failures=failures)
        if not parsed:
            return BatchResult(ok=True, applied=0)

        missing, records = await self.store.write_embeddings(parsed)
        if missing:
            failures = [
                BatchEntryError(index=positions[segment_id], segment_id=segment_id, reason="Segment not found")
                for segment_id in missing
            ]
            failures.sort(key=lambda f: f.index)
            logger.warning(
                f"{__name__}:apply_batch - Rejected batch: {len(missing)} unknown segments"
            )
            return BatchResult(ok=False, applied=0, failures=failures)

        self.index_manager.upsert(records)
        logger.info(f"{__name__}:apply_batch - Applied {len(records)} embeddings")
        return BatchResult(ok=True, applied=len(records))

    def iter_batches(self, updates: Iterable[UpdateLike]) -> Iterator[list[UpdateLike]]:
        """
        Split a long update stream into embedding_batch_size chunks.

        Each chunk is meant for its own apply_batch call.
        """
        batch: list[UpdateLike] = []
        for update in updates:
            batch.append(update)
            if len(batch) >= self.settings.embedding_batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    @staticmethod
    def _unpack(entry: Any) -> tuple[UUID, Any]:
        if isinstance(entry, EmbeddingUpdate):
            return entry.segment_id, entry.vector
        if isinstance(entry, (tuple, list)) and len(entry) == 2:
            return coerce_uuid(entry[0], "segment_id"), entry[1]
        raise InvalidInputError(
            "Batch entries must be EmbeddingUpdate or (segment_id, vector) pairs",
            field="updates",
        )
