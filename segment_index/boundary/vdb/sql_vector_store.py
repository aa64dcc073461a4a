"""
SQLAlchemy-backed vector store.

Implements the VectorStore capability on the relational segment table:
embeddings live in a float32 blob column and similarity is computed in
process with numpy. Works with PostgreSQL (asyncpg) and SQLite (aiosqlite).

Dependencies: sqlalchemy, numpy, tenacity, segment_index.boundary.db
System role: Default storage backend for the retrieval engine
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterable, Iterator
from uuid import UUID

import numpy as np
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from segment_index.boundary.db.CRUD.document_crud import document_crud
from segment_index.boundary.db.CRUD.segment_crud import segment_crud
from segment_index.boundary.db.models.segment_model import SegmentModel
from segment_index.boundary.vdb import vector_codec
from segment_index.boundary.vdb.vector_schemas import Segment, StoreStats
from segment_index.boundary.vdb.vector_store import (
    Candidate,
    EmbeddingRecord,
    NewSegment,
    VectorStore,
)
from segment_index.core.exceptions import StorageError, InvalidInputError

logger = logging.getLogger(__name__)

# Lock contention (SQLite "database is locked", PG serialization hiccups)
# is retried; constraint violations are not.
_retry_transient = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=0.05, max=1.0),
    reraise=True,
)


@contextmanager
def _storage_errors(operation: str, **details: Any) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"{__name__}:{operation} - {type(e).__name__}: {e}")
        raise StorageError(
            message=f"Segment store {operation} failed",
            operation=operation,
            details={**details, "error": str(e)},
        ) from e


def _row_values(parent_id: UUID, segment: NewSegment) -> dict[str, Any]:
    position = segment.draft.position
    return {
        "parent_id": parent_id,
        "text": segment.draft.text,
        "token_count": segment.token_count,
        "page": position.page,
        "slide": position.slide,
        "char_start": position.char_start,
        "char_end": position.char_end,
        "bbox": position.bbox,
        "content_hash": segment.content_hash,
    }


class SQLVectorStore(VectorStore):
    """
    VectorStore over the segments/documents tables.

    Every operation opens its own session from the owned factory, so reads
    see the latest committed data and writes hold a transaction only for
    the rows they touch.
    """

    def __init__(self, session_factory: async_sessionmaker, dimension: int) -> None:
        """
        Initialize the store.

        Args:
            session_factory: Async session factory (the owned store handle)
            dimension: Configured embedding dimension D
        """
        self._session_factory = session_factory
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        """Configured embedding dimension."""
        return self._dimension

    async def insert_segment(self, parent_id: UUID, segment: NewSegment) -> tuple[UUID, bool]:
        with _storage_errors("insert", parent_id=str(parent_id)):
            return await self._insert_one(parent_id, segment)

    @_retry_transient
    async def _insert_one(self, parent_id: UUID, segment: NewSegment) -> tuple[UUID, bool]:
        async with self._session_factory() as session:
            existing = await segment_crud.get_by_hash(session, parent_id, segment.content_hash)
            if existing is not None:
                return existing.id, False
            try:
                row = await segment_crud.create(session, **_row_values(parent_id, segment))
                await session.commit()
                return row.id, True
            except IntegrityError:
                # Lost the race against a concurrent insert of the same content
                await session.rollback()
                winner = await segment_crud.get_by_hash(session, parent_id, segment.content_hash)
                if winner is None:
                    raise
                logger.info(
                    f"{__name__}:insert_segment - Concurrent duplicate collapsed "
                    f"parent_id={parent_id} segment_id={winner.id}"
                )
                return winner.id, False

    async def insert_segments(
        self, parent_id: UUID, segments: list[NewSegment]
    ) -> list[tuple[UUID, bool]]:
        if not segments:
            return []
        with _storage_errors("insert", parent_id=str(parent_id), count=len(segments)):
            async with self._session_factory() as session:
                known = await segment_crud.get_ids_by_hashes(
                    session, parent_id, {s.content_hash for s in segments}
                )
                pending: dict[str, UUID] = {}
                results: list[tuple[UUID, bool]] = []
                for segment in segments:
                    if segment.content_hash in known:
                        results.append((known[segment.content_hash], False))
                    elif segment.content_hash in pending:
                        results.append((pending[segment.content_hash], False))
                    else:
                        row = SegmentModel(id=uuid.uuid4(), **_row_values(parent_id, segment))
                        session.add(row)
                        pending[segment.content_hash] = row.id
                        results.append((row.id, True))
                try:
                    await session.commit()
                    return results
                except IntegrityError:
                    await session.rollback()
                    logger.warning(
                        f"{__name__}:insert_segments - Concurrent insert detected for "
                        f"parent_id={parent_id}; retrying one by one"
                    )
            return [await self._insert_one(parent_id, segment) for segment in segments]

    async def fetch_by_ids(self, ids: Iterable[UUID]) -> list[Segment]:
        ids = list(ids)
        if not ids:
            return []
        with _storage_errors("fetch", count=len(ids)):
            async with self._session_factory() as session:
                rows = await segment_crud.get_by_ids(session, ids)
                return [Segment.from_model(row) for row in rows]

    async def fetch_by_parent(
        self, parent_id: UUID, limit: int | None, offset: int
    ) -> tuple[list[Segment], int]:
        with _storage_errors("fetch", parent_id=str(parent_id)):
            async with self._session_factory() as session:
                rows = await segment_crud.get_by_parent_id(session, parent_id, limit, offset)
                total = await segment_crud.count_by_parent_id(session, parent_id)
                return [Segment.from_model(row) for row in rows], total

    async def delete_by_parent(self, parent_id: UUID) -> list[UUID]:
        with _storage_errors("delete", parent_id=str(parent_id)):
            async with self._session_factory() as session:
                removed = await segment_crud.delete_by_parent_id(session, parent_id)
                await document_crud.delete_by_id(session, parent_id)
                await session.commit()
                return removed

    async def register_document(
        self, parent_id: UUID, collection_id: str | None, title: str | None
    ) -> None:
        with _storage_errors("register", parent_id=str(parent_id)):
            async with self._session_factory() as session:
                await document_crud.upsert(session, parent_id, collection_id, title)
                await session.commit()

    async def resolve_collection(self, collection_id: str) -> list[UUID]:
        with _storage_errors("fetch", collection_id=collection_id):
            async with self._session_factory() as session:
                return await document_crud.get_ids_by_collection(session, collection_id)

    async def write_embeddings(
        self, embeddings: dict[UUID, np.ndarray]
    ) -> tuple[list[UUID], list[EmbeddingRecord]]:
        if not embeddings:
            return [], []
        payload = {
            segment_id: (vector_codec.encode(vector), int(vector.shape[0]))
            for segment_id, vector in embeddings.items()
        }
        with _storage_errors("update", count=len(embeddings)):
            async with self._session_factory() as session:
                rows = await segment_crud.set_embeddings(session, payload)
                found = {row.id for row in rows}
                missing = [segment_id for segment_id in embeddings if segment_id not in found]
                if missing:
                    await session.rollback()
                    return missing, []
                records = [
                    EmbeddingRecord(
                        segment_id=row.id,
                        parent_id=row.parent_id,
                        created_at=row.created_at,
                        seq=row.seq,
                        vector=embeddings[row.id],
                    )
                    for row in rows
                ]
                await session.commit()
                return [], records

    async def fetch_embeddings(
        self,
        ids: Iterable[UUID] | None = None,
        parent_ids: Iterable[UUID] | None = None,
        exclude_ids: Iterable[UUID] | None = None,
    ) -> list[EmbeddingRecord]:
        ids = list(ids) if ids is not None else None
        parent_ids = list(parent_ids) if parent_ids is not None else None
        if ids == [] or parent_ids == []:
            return []
        with _storage_errors("fetch"):
            async with self._session_factory() as session:
                rows = await segment_crud.get_embedding_rows(
                    session, ids=ids, parent_ids=parent_ids, exclude_ids=exclude_ids
                )

        records = []
        skipped = 0
        for row in rows:
            try:
                vector = vector_codec.decode(row.embedding)
            except InvalidInputError:
                skipped += 1
                continue
            if vector.shape[0] != self._dimension:
                skipped += 1
                continue
            records.append(
                EmbeddingRecord(
                    segment_id=row.id,
                    parent_id=row.parent_id,
                    created_at=row.created_at,
                    seq=row.seq,
                    vector=vector,
                )
            )
        if skipped:
            logger.warning(
                f"{__name__}:fetch_embeddings - Skipped {skipped} structurally invalid "
                f"embeddings; run cleanup_invalid_vectors"
            )
        return records

    async def nearest(
        self,
        query: np.ndarray,
        k: int,
        parent_ids: Iterable[UUID] | None = None,
        exclude_ids: Iterable[UUID] | None = None,
    ) -> list[Candidate]:
        records = await self.fetch_embeddings(parent_ids=parent_ids, exclude_ids=exclude_ids)
        if not records:
            return []
        scores = vector_codec.similarities(query, np.stack([r.vector for r in records]))
        candidates = [
            Candidate(
                segment_id=record.segment_id,
                score=float(score),
                created_at=record.created_at,
                seq=record.seq,
            )
            for record, score in zip(records, scores)
        ]
        candidates.sort(key=Candidate.rank_key)
        return candidates[:k]

    async def stats(self) -> StoreStats:
        with _storage_errors("stats"):
            async with self._session_factory() as session:
                total, missing, avg_length = await segment_crud.get_stats(session)
        return StoreStats(
            total_segments=total,
            segments_missing_embedding=missing,
            average_text_length=round(avg_length),
        )

    async def delete_invalid_embeddings(self) -> list[UUID]:
        with _storage_errors("cleanup"):
            async with self._session_factory() as session:
                ids = await segment_crud.get_invalid_embedding_ids(session, self._dimension)
                if ids:
                    await segment_crud.delete_by_ids(session, ids)
                    await session.commit()
                return ids

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"{__name__}:ping - Store unreachable: {type(e).__name__}: {e}")
            return False
