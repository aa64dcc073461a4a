"""
Approximate nearest-neighbor indexes.

Two interchangeable AnnIndex implementations:
- ExactScanIndex: delegates to the store's exact nearest-neighbor scan;
  always correct, always available.
- ClusteredIndex: in-memory inverted-file index. Spherical k-means splits
  the unit-normalized embeddings into clusters; a query scans only the
  lists of the clusters whose centroids are closest to it.

Both apply the parent allow-list and segment block-list while probing,
so filtered queries are not starved by post-filtering.

Dependencies: numpy
System role: Candidate generation for the query planner
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable
from uuid import UUID

import numpy as np

from segment_index.boundary.vdb import vector_codec
from segment_index.boundary.vdb.vector_store import Candidate, EmbeddingRecord, VectorStore
from segment_index.core.exceptions import IndexBuildAbortedError, IndexUnavailableError

logger = logging.getLogger(__name__)


class AnnIndex(ABC):
    """Candidate generator for similarity queries."""

    exact: bool = False

    @abstractmethod
    async def probe(
        self,
        query: np.ndarray,
        k: int,
        parent_ids: set[UUID] | None = None,
        exclude_ids: set[UUID] | None = None,
    ) -> list[Candidate]:
        """
        Propose up to k candidates for a query.

        Args:
            query: Validated query vector
            k: Number of candidates wanted
            parent_ids: Allow-list of parents (None for no restriction)
            exclude_ids: Segment ids that must not be proposed

        Raises:
            IndexUnavailableError: If the index cannot answer this query
        """

    @abstractmethod
    def upsert(self, record: EmbeddingRecord) -> None:
        """Add or refresh one segment's entry."""

    @abstractmethod
    def remove(self, segment_ids: Iterable[UUID]) -> int:
        """Drop entries; returns how many were removed."""


class ExactScanIndex(AnnIndex):
    """Full linear scan through the store; used whenever no clustered index is ready."""

    exact = True

    def __init__(self, store: VectorStore) -> None:
        self._store = store

    def upsert(self, record: EmbeddingRecord) -> None:
        """Nothing to maintain: every probe reads the store."""

    def remove(self, segment_ids: Iterable[UUID]) -> int:
        return 0

    async def probe(
        self,
        query: np.ndarray,
        k: int,
        parent_ids: set[UUID] | None = None,
        exclude_ids: set[UUID] | None = None,
    ) -> list[Candidate]:
        return await self._store.nearest(
            query, k, parent_ids=parent_ids, exclude_ids=exclude_ids
        )


@dataclass(frozen=True)
class _Entry:
    parent_id: UUID
    created_at: datetime
    seq: int
    unit: np.ndarray


def kmeans(
    unit_vectors: np.ndarray,
    n_clusters: int,
    iterations: int,
    seed: int,
    should_abort: Callable[[], bool] | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Spherical k-means over unit-normalized rows.

    The abort callback is polled before every assignment step; the
    caller's previous index is untouched when it fires.

    Args:
        unit_vectors: (N, D) unit-normalized vectors, N >= 1
        n_clusters: Requested cluster count (clamped to [1, N])
        iterations: Maximum assignment/update rounds
        seed: RNG seed for centroid initialisation
        should_abort: Returns True when the build must stop

    Returns:
        tuple: ((K, D) unit centroids, (N,) cluster assignment)

    Raises:
        IndexBuildAbortedError: If should_abort returned True
    """
    n = unit_vectors.shape[0]
    k = max(1, min(n_clusters, n))
    rng = np.random.default_rng(seed)
    centroids = unit_vectors[rng.choice(n, size=k, replace=False)].copy()
    assignment = np.zeros(n, dtype=np.int64)

    for iteration in range(iterations):
        if should_abort is not None and should_abort():
            raise IndexBuildAbortedError(
                "Index build aborted", details={"iteration": iteration}
            )
        new_assignment = np.argmax(unit_vectors @ centroids.T, axis=1)
        if iteration > 0 and np.array_equal(new_assignment, assignment):
            break
        assignment = new_assignment

        sums = np.zeros_like(centroids)
        np.add.at(sums, assignment, unit_vectors)
        norms = np.linalg.norm(sums, axis=1)
        # Empty or degenerate clusters keep their previous centroid
        live = norms > 0
        centroids[live] = sums[live] / norms[live, None]

    return centroids.astype(np.float32), assignment


class ClusteredIndex(AnnIndex):
    """
    Inverted-file index over unit-normalized embeddings.

    Each cluster keeps a list of member entries. probe() ranks centroids
    by similarity to the query, scans the n_probe best clusters and keeps
    widening to further clusters until k filtered candidates are found or
    every cluster was visited.
    """

    def __init__(self, dimension: int, centroids: np.ndarray, n_probe: int) -> None:
        """
        Initialize an empty index around trained centroids.

        Args:
            dimension: Embedding dimension D
            centroids: (K, D) unit centroids (K may be 0)
            n_probe: Minimum clusters scanned per query
        """
        self._dimension = dimension
        self._centroids = np.asarray(centroids, dtype=np.float32).reshape(-1, dimension)
        self._n_probe = max(1, n_probe)
        self._lists: list[dict[UUID, _Entry]] = [{} for _ in range(self._centroids.shape[0])]
        self._where: dict[UUID, int] = {}
        self.built_at = datetime.now(timezone.utc)

    @classmethod
    def build(
        cls,
        records: list[EmbeddingRecord],
        dimension: int,
        n_clusters: int,
        n_probe: int,
        iterations: int,
        seed: int,
        should_abort: Callable[[], bool] | None = None,
    ) -> "ClusteredIndex":
        """
        Train centroids on a snapshot and assign every record.

        Runs synchronously; the index manager calls it in a worker thread.

        Raises:
            IndexBuildAbortedError: If should_abort fired between iterations
        """
        if not records:
            return cls(dimension, np.zeros((0, dimension), dtype=np.float32), n_probe)

        units = np.stack([vector_codec.normalize(r.vector) for r in records]).astype(np.float32)
        centroids, assignment = kmeans(units, n_clusters, iterations, seed, should_abort)

        index = cls(dimension, centroids, n_probe)
        for record, unit, cluster in zip(records, units, assignment):
            index._place(record, unit, int(cluster))
        return index

    @property
    def n_clusters(self) -> int:
        return int(self._centroids.shape[0])

    def __len__(self) -> int:
        return len(self._where)

    def __contains__(self, segment_id: object) -> bool:
        return segment_id in self._where

    def _place(self, record: EmbeddingRecord, unit: np.ndarray, cluster: int) -> None:
        self._lists[cluster][record.segment_id] = _Entry(
            parent_id=record.parent_id,
            created_at=record.created_at,
            seq=record.seq,
            unit=unit,
        )
        self._where[record.segment_id] = cluster

    def upsert(self, record: EmbeddingRecord) -> None:
        """Add or refresh one segment's entry, assigning it to the nearest centroid."""
        self.remove([record.segment_id])
        unit = vector_codec.normalize(record.vector).astype(np.float32)
        if self.n_clusters == 0:
            # Built on an empty table: the first vector seeds the only cluster
            seed = unit if np.any(unit) else np.zeros(self._dimension, dtype=np.float32)
            self._centroids = seed.reshape(1, self._dimension)
            self._lists = [{}]
        cluster = int(np.argmax(self._centroids @ unit))
        self._place(record, unit, cluster)

    def remove(self, segment_ids: Iterable[UUID]) -> int:
        """Drop entries; unknown ids are ignored. Returns how many were removed."""
        removed = 0
        for segment_id in segment_ids:
            cluster = self._where.pop(segment_id, None)
            if cluster is not None:
                self._lists[cluster].pop(segment_id, None)
                removed += 1
        return removed

    def search(
        self,
        query: np.ndarray,
        k: int,
        parent_ids: set[UUID] | None = None,
        exclude_ids: set[UUID] | None = None,
    ) -> list[Candidate]:
        """Synchronous probe; see probe()."""
        if not self._where:
            raise IndexUnavailableError("Clustered index holds no vectors")
        if query.shape[0] != self._dimension:
            raise IndexUnavailableError(
                "Clustered index dimension differs from query",
                details={"index_dimension": self._dimension, "query_dimension": query.shape[0]},
            )

        unit_query = vector_codec.normalize(query).astype(np.float32)
        cluster_order = np.argsort(-(self._centroids @ unit_query), kind="stable")

        ids: list[UUID] = []
        entries: list[_Entry] = []
        for probed, cluster in enumerate(cluster_order, start=1):
            for segment_id, entry in self._lists[int(cluster)].items():
                if parent_ids is not None and entry.parent_id not in parent_ids:
                    continue
                if exclude_ids and segment_id in exclude_ids:
                    continue
                ids.append(segment_id)
                entries.append(entry)
            if probed >= self._n_probe and len(ids) >= k:
                break

        if not ids:
            return []

        scores = vector_codec.similarities(unit_query, np.stack([e.unit for e in entries]))
        candidates = [
            Candidate(segment_id=segment_id, score=float(score), created_at=entry.created_at, seq=entry.seq)
            for segment_id, entry, score in zip(ids, entries, scores)
        ]
        candidates.sort(key=Candidate.rank_key)
        return candidates[:k]

    async def probe(
        self,
        query: np.ndarray,
        k: int,
        parent_ids: set[UUID] | None = None,
        exclude_ids: set[UUID] | None = None,
    ) -> list[Candidate]:
        return self.search(query, k, parent_ids=parent_ids, exclude_ids=exclude_ids)
