"""
Segment service orchestrator.

Validates and fingerprints incoming segments, delegates the atomic
dedup insert to the vector store and keeps the ANN index in step with
parent deletions.

Dependencies: pydantic, segment_index.boundary.vdb, segment_index.core
System role: Segment Store operations exposed to ingestion and query callers
"""

import logging
from typing import Any, Iterable, Mapping
from uuid import UUID

from pydantic import ValidationError

from segment_index.boundary.vdb.index_manager import IndexManager
from segment_index.boundary.vdb.vector_schemas import (
    Segment,
    SegmentDraft,
    SegmentPage,
    SegmentPosition,
)
from segment_index.boundary.vdb.vector_store import NewSegment, VectorStore
from segment_index.core.exceptions import InvalidInputError
from segment_index.core.ids import coerce_uuid, coerce_uuids
from segment_index.core.text import content_hash, estimate_token_count, normalize_text

logger = logging.getLogger(__name__)

PositionLike = SegmentPosition | Mapping[str, Any] | None


class SegmentService:
    """
    Segment Store operations.

    Creation is idempotent per (parent_id, normalized text); reads return
    segments in reading order and treat absence as an empty result.
    """

    def __init__(self, store: VectorStore, index_manager: IndexManager) -> None:
        """
        Initialize segment service.

        Args:
            store: Vector store holding the segment table
            index_manager: Index manager notified of deletions
        """
        self.store = store
        self.index_manager = index_manager

    async def create_segment(
        self,
        parent_id: UUID | str,
        text: str,
        position: PositionLike = None,
        token_count: int | None = None,
    ) -> UUID:
        """
        Create a segment, or return the existing one with the same content.

        Args:
            parent_id: Owning document (dedup namespace)
            text: Segment text; must not be empty after normalization
            position: Page/slide/offsets/bbox, descriptive only
            token_count: Token count (>= 0); estimated from text when None

        Returns:
            UUID: Id of the new or already-stored segment

        Raises:
            InvalidInputError: If text is empty or token_count/position is invalid
            StorageError: If the store fails
        """
        parent_id = coerce_uuid(parent_id, "parent_id")
        new_segment = self._prepare(SegmentDraft.model_construct(
            text=text,
            position=self._coerce_position(position),
            token_count=token_count,
        ))

        segment_id, created = await self.store.insert_segment(parent_id, new_segment)
        if not created:
            logger.info(
                f"{__name__}:create_segment - Duplicate content collapsed "
                f"parent_id={parent_id} segment_id={segment_id}"
            )
        return segment_id

    async def create_segments(
        self,
        parent_id: UUID | str,
        items: Iterable[SegmentDraft | Mapping[str, Any]],
    ) -> list[UUID]:
        """
        Bulk create segments of one document.

        Duplicates (against stored segments or within the batch) map to the
        id of the stored segment.

        Args:
            parent_id: Owning document (dedup namespace)
            items: SegmentDraft models or dicts with text/position/token_count

        Returns:
            list[UUID]: One id per item, in input order

        Raises:
            InvalidInputError: If any item is invalid (nothing is inserted)
            StorageError: If the store fails
        """
        parent_id = coerce_uuid(parent_id, "parent_id")
        prepared = []
        for i, item in enumerate(items):
            try:
                draft = item if isinstance(item, SegmentDraft) else SegmentDraft.model_validate(item)
            except ValidationError as e:
                raise InvalidInputError(
                    f"Invalid segment at index {i}", field="items", details={"index": i, "error": str(e)}
                ) from e
            prepared.append(self._prepare(draft))

        results = await self.store.insert_segments(parent_id, prepared)
        created = sum(1 for _, was_created in results if was_created)
        logger.info(
            f"{__name__}:create_segments - parent_id={parent_id} submitted={len(results)} "
            f"created={created} deduplicated={len(results) - created}"
        )
        return [segment_id for segment_id, _ in results]

    async def register_document(
        self,
        parent_id: UUID | str,
        collection_id: str | None,
        title: str | None = None,
    ) -> None:
        """
        Place a parent document in a collection for collection-scoped search.

        Args:
            parent_id: Document id used by its segments
            collection_id: Collection scope (course, folder)
            title: Optional title
        """
        await self.store.register_document(coerce_uuid(parent_id, "parent_id"), collection_id, title)

    async def get_by_ids(self, ids: Iterable[UUID | str]) -> list[Segment]:
        """
        Fetch segments by id in reading order (page, slide, char_start, insertion).

        Args:
            ids: Segment ids; unknown ids are skipped

        Returns:
            list[Segment]: Found segments, possibly empty
        """
        ids = coerce_uuids(ids)
        if not ids:
            return []
        return await self.store.fetch_by_ids(ids)

    async def get_segment(self, segment_id: UUID | str) -> Segment | None:
        """Fetch one segment, or None when it does not exist."""
        found = await self.store.fetch_by_ids([coerce_uuid(segment_id, "segment_id")])
        return found[0] if found else None

    async def list_by_parent(
        self,
        parent_id: UUID | str,
        page: int = 1,
        limit: int | None = None,
    ) -> SegmentPage:
        """
        Page through a parent's segments in reading order.

        Args:
            parent_id: Owning document
            page: 1-based page number
            limit: Page size (None returns every segment)

        Returns:
            SegmentPage: Segments of the page and the parent's total count

        Raises:
            InvalidInputError: If page < 1 or limit < 1
        """
        parent_id = coerce_uuid(parent_id, "parent_id")
        if page < 1:
            raise InvalidInputError("page must be >= 1", field="page")
        if limit is not None and limit < 1:
            raise InvalidInputError("limit must be >= 1", field="limit")

        offset = (page - 1) * limit if limit is not None else 0
        segments, total = await self.store.fetch_by_parent(parent_id, limit, offset)
        return SegmentPage(segments=segments, total=total, page=page, limit=limit)

    async def delete_by_parent(self, parent_id: UUID | str) -> int:
        """
        Delete every segment of a parent and evict them from the ANN index.

        Args:
            parent_id: Owning document

        Returns:
            int: Number of segments removed
        """
        parent_id = coerce_uuid(parent_id, "parent_id")
        removed = await self.store.delete_by_parent(parent_id)
        self.index_manager.remove(removed)
        logger.info(f"{__name__}:delete_by_parent - parent_id={parent_id} removed={len(removed)}")
        return len(removed)

    @staticmethod
    def _coerce_position(position: PositionLike) -> SegmentPosition:
        if position is None:
            return SegmentPosition()
        if isinstance(position, SegmentPosition):
            return position
        try:
            return SegmentPosition.model_validate(position)
        except ValidationError as e:
            raise InvalidInputError("Invalid segment position", field="position", details={"error": str(e)}) from e

    @staticmethod
    def _prepare(draft: SegmentDraft) -> NewSegment:
        if not isinstance(draft.text, str) or not normalize_text(draft.text):
            raise InvalidInputError("Segment text must not be empty", field="text")

        token_count = draft.token_count
        if token_count is None:
            token_count = estimate_token_count(draft.text)
        elif isinstance(token_count, bool) or not isinstance(token_count, int) or token_count < 0:
            raise InvalidInputError("token_count must be an integer >= 0", field="token_count")

        return NewSegment(draft=draft, content_hash=content_hash(draft.text), token_count=token_count)
