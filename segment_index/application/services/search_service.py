"""
Similarity search planner.

Compiles a query (vector, scope filters, threshold, limit) into:
scope resolution -> index probe with pushed-down filters -> existence
re-validation -> exact re-scoring -> threshold -> ranking -> truncation.

Dependencies: numpy, pydantic, segment_index.boundary.vdb
System role: Query Planner for semantic retrieval
"""

import logging
from typing import Any, Mapping, Sequence
from uuid import UUID

import numpy as np
from pydantic import ValidationError

from segment_index.boundary.vdb import vector_codec
from segment_index.boundary.vdb.index_manager import IndexManager
from segment_index.boundary.vdb.vector_schemas import SearchFilters, SimilarityResult
from segment_index.boundary.vdb.vector_store import Candidate, VectorStore
from segment_index.configs.vector_index import VectorIndexSettings
from segment_index.core.exceptions import IndexUnavailableError, InvalidInputError

logger = logging.getLogger(__name__)

FiltersLike = SearchFilters | Mapping[str, Any] | None


class SearchService:
    """
    Read-only similarity search over stored segments.

    The active index only proposes candidates; every candidate is
    re-validated against the store and re-scored exactly from its stored
    embedding before the threshold is applied, so results are identical
    in ranking whether served by the clustered index or the exact scan,
    up to the candidates the clustered index failed to propose.
    """

    def __init__(
        self,
        store: VectorStore,
        index_manager: IndexManager,
        settings: VectorIndexSettings,
    ) -> None:
        """
        Initialize search service.

        Args:
            store: Vector store for scope resolution and re-validation
            index_manager: Supplies the active ANN index
            settings: Dimension, defaults and over-fetch factor
        """
        self.store = store
        self.index_manager = index_manager
        self.settings = settings

    async def search(
        self,
        query_vector: Sequence[float] | np.ndarray,
        filters: FiltersLike = None,
        limit: int | None = None,
        min_similarity: float | None = None,
    ) -> list[SimilarityResult]:
        """
        Find segments semantically close to a query vector.

        Args:
            query_vector: Query embedding of the configured dimension
            filters: parent_ids allow-list, exclude_segment_ids block-list,
                collection_id scope
            limit: Maximum results (default 10, capped at max_limit)
            min_similarity: Score cutoff in [0, 1] (default 0.7)

        Returns:
            list[SimilarityResult]: Ordered by score desc, then created_at asc

        Raises:
            DimensionMismatchError: If the query has the wrong dimension
            InvalidInputError: If filters, limit or min_similarity are malformed
            StorageError: If the store fails
        """
        query = vector_codec.validate(query_vector, self.settings.embedding_dimension)
        limit = self._resolve_limit(limit)
        threshold = self._resolve_threshold(min_similarity)
        filters = self._coerce_filters(filters)

        parent_scope = await self._resolve_scope(filters)
        if parent_scope is not None and not parent_scope:
            logger.debug(f"{__name__}:search - Empty scope, nothing to probe")
            return []
        excluded = set(filters.exclude_segment_ids or [])

        k = limit * self.settings.overfetch_factor
        candidates = await self._probe(query, k, parent_scope, excluded)
        if not candidates:
            return []

        ranked = await self._rescore(query, candidates, parent_scope, excluded, threshold)
        ranked = ranked[:limit]
        if not ranked:
            return []

        segments = {s.id: s for s in await self.store.fetch_by_ids([c.segment_id for c in ranked])}
        results = [
            SimilarityResult(segment=segments[c.segment_id], score=c.score)
            for c in ranked
            if c.segment_id in segments
        ]
        logger.info(
            f"{__name__}:search - candidates={len(candidates)} returned={len(results)} "
            f"limit={limit} min_similarity={threshold}"
        )
        return results

    async def _probe(
        self,
        query: np.ndarray,
        k: int,
        parent_scope: set[UUID] | None,
        excluded: set[UUID],
    ) -> list[Candidate]:
        index = self.index_manager.active_index()
        try:
            return await index.probe(query, k, parent_ids=parent_scope, exclude_ids=excluded)
        except IndexUnavailableError as e:
            logger.warning(f"{__name__}:search - Index unavailable, falling back to exact scan: {e}")
            return await self.index_manager.exact_index.probe(
                query, k, parent_ids=parent_scope, exclude_ids=excluded
            )

    async def _rescore(
        self,
        query: np.ndarray,
        candidates: list[Candidate],
        parent_scope: set[UUID] | None,
        excluded: set[UUID],
        threshold: float,
    ) -> list[Candidate]:
        candidate_ids = [c.segment_id for c in candidates]
        records = await self.store.fetch_embeddings(ids=candidate_ids)

        stale = set(candidate_ids) - {r.segment_id for r in records}
        if stale:
            logger.info(f"{__name__}:search - Evicting {len(stale)} stale index entries")
            self.index_manager.remove(stale)

        records = [
            r
            for r in records
            if r.segment_id not in excluded and (parent_scope is None or r.parent_id in parent_scope)
        ]
        if not records:
            return []

        scores = vector_codec.similarities(query, np.stack([r.vector for r in records]))
        rescored = [
            Candidate(segment_id=r.segment_id, score=float(score), created_at=r.created_at, seq=r.seq)
            for r, score in zip(records, scores)
            if score >= threshold
        ]
        rescored.sort(key=Candidate.rank_key)
        return rescored

    async def _resolve_scope(self, filters: SearchFilters) -> set[UUID] | None:
        """Allowed parent ids, or None when unrestricted."""
        scope = set(filters.parent_ids) if filters.parent_ids is not None else None
        if filters.collection_id is not None:
            members = set(await self.store.resolve_collection(filters.collection_id))
            scope = members if scope is None else scope & members
        return scope

    def _resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return min(self.settings.default_limit, self.settings.max_limit)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidInputError("limit must be a positive integer", field="limit")
        return min(limit, self.settings.max_limit)

    def _resolve_threshold(self, min_similarity: float | None) -> float:
        if min_similarity is None:
            return self.settings.similarity_threshold
        if isinstance(min_similarity, bool) or not isinstance(min_similarity, (int, float)):
            raise InvalidInputError("min_similarity must be a number", field="min_similarity")
        if not 0.0 <= min_similarity <= 1.0:
            raise InvalidInputError("min_similarity must be within [0, 1]", field="min_similarity")
        return float(min_similarity)

    @staticmethod
    def _coerce_filters(filters: FiltersLike) -> SearchFilters:
        if filters is None:
            return SearchFilters()
        if isinstance(filters, SearchFilters):
            return filters
        try:
            return SearchFilters.model_validate(filters)
        except ValidationError as e:
            raise InvalidInputError("Malformed search filters", field="filters", details={"error": str(e)}) from e
