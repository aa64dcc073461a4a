"""
ANN index lifecycle manager.

Owns the ABSENT -> BUILDING -> READY state machine. Rebuilds train a new
ClusteredIndex in a worker thread off a snapshot of the store and swap it
in with one reference assignment. Queries never wait on a build: they use
the current READY index, or the exact scan when there is none.

Dependencies: asyncio, threading, segment_index.boundary.vdb
System role: ANN index maintenance and selection
"""

import asyncio
import logging
import threading
from typing import Iterable
from uuid import UUID

from segment_index.boundary.vdb.ann_index import AnnIndex, ClusteredIndex, ExactScanIndex
from segment_index.boundary.vdb.vector_schemas import IndexState, IndexStatus
from segment_index.boundary.vdb.vector_store import EmbeddingRecord, VectorStore
from segment_index.configs.vector_index import VectorIndexSettings
from segment_index.core.exceptions import IndexBuildAbortedError, StorageError

logger = logging.getLogger(__name__)


class IndexManager:
    """
    Selects and maintains the ANN index used by the query planner.

    Mutations reported while a build is running are applied to the index
    currently serving (if any) and journaled; the journal is replayed onto
    the freshly built index right before it is swapped in, so writes that
    raced the snapshot are not lost.
    """

    def __init__(self, store: VectorStore, settings: VectorIndexSettings) -> None:
        """
        Initialize manager in the ABSENT state.

        Args:
            store: Vector store used for snapshots and exact scans
            settings: Index tuning (dimension, cluster sizing, probes)
        """
        self._store = store
        self._settings = settings
        self._exact = ExactScanIndex(store)
        self._ready: ClusteredIndex | None = None
        self._building = False
        self._journal: list[tuple[str, object]] = []
        self._abort = threading.Event()
        self._task: asyncio.Task | None = None
        self._last_error: str | None = None

    @property
    def state(self) -> IndexState:
        if self._building:
            return IndexState.BUILDING
        if self._ready is not None:
            return IndexState.READY
        return IndexState.ABSENT

    @property
    def exact_index(self) -> ExactScanIndex:
        return self._exact

    def active_index(self) -> AnnIndex:
        """The READY clustered index, or the exact scan when none exists."""
        index = self._ready
        return index if index is not None else self._exact

    def status(self) -> IndexStatus:
        index = self._ready
        return IndexStatus(
            state=self.state,
            vector_count=len(index) if index is not None else 0,
            n_clusters=index.n_clusters if index is not None else 0,
            built_at=index.built_at if index is not None else None,
            last_error=self._last_error,
        )

    def cluster_count(self, n_vectors: int) -> int:
        """Configured cluster count, or one cluster per target_cluster_size vectors."""
        if self._settings.n_clusters:
            return self._settings.n_clusters
        return max(1, round(n_vectors / self._settings.target_cluster_size))

    def upsert(self, records: Iterable[EmbeddingRecord]) -> None:
        """Add or refresh entries after embeddings were attached or replaced."""
        records = list(records)
        if not records:
            return
        if self._building:
            self._journal.extend(("upsert", record) for record in records)
        index = self._ready
        if index is not None:
            for record in records:
                index.upsert(record)

    def remove(self, segment_ids: Iterable[UUID]) -> None:
        """Drop entries of deleted segments (or stale ids found by queries)."""
        segment_ids = list(segment_ids)
        if not segment_ids:
            return
        if self._building:
            self._journal.append(("remove", segment_ids))
        index = self._ready
        if index is not None:
            removed = index.remove(segment_ids)
            if removed:
                logger.debug(f"{__name__}:remove - Evicted {removed} index entries")

    def drop(self) -> None:
        """Discard the clustered index; queries go back to the exact scan."""
        self._ready = None
        logger.info(f"{__name__}:drop - Clustered index dropped")

    async def rebuild(self) -> IndexStatus:
        """
        Build a new clustered index and swap it in.

        Joins the running build when one is already in progress.

        Returns:
            IndexStatus: State after the build finished, failed or was aborted
        """
        task = self.start_rebuild()
        await asyncio.shield(task)
        return self.status()

    def start_rebuild(self) -> asyncio.Task:
        """
        Schedule a rebuild as a background task.

        Returns:
            asyncio.Task: The running (possibly pre-existing) build task
        """
        if self._task is not None and not self._task.done():
            return self._task
        self._building = True
        self._journal = []
        self._abort.clear()
        self._task = asyncio.get_running_loop().create_task(self._run_rebuild())
        self._task.add_done_callback(self._on_rebuild_done)
        return self._task

    def abort_rebuild(self) -> bool:
        """
        Ask a running build to stop at its next k-means step.

        Returns:
            bool: True if a build was running
        """
        if not self._building:
            return False
        self._abort.set()
        logger.info(f"{__name__}:abort_rebuild - Abort requested")
        return True

    async def close(self) -> None:
        """Abort and wait for any running build."""
        task = self._task
        if task is not None and not task.done():
            self._abort.set()
            await asyncio.gather(task, return_exceptions=True)

    async def _run_rebuild(self) -> None:
        logger.info(f"{__name__}:rebuild - START state={IndexState.BUILDING.value}")
        try:
            records = await self._store.fetch_embeddings()
            n_clusters = self.cluster_count(len(records))
            logger.info(
                f"{__name__}:rebuild - Training {n_clusters} clusters on {len(records)} vectors"
            )
            index = await asyncio.to_thread(
                ClusteredIndex.build,
                records,
                self._settings.embedding_dimension,
                n_clusters,
                self._settings.n_probe,
                self._settings.kmeans_iterations,
                self._settings.kmeans_seed,
                self._abort.is_set,
            )
        except IndexBuildAbortedError as e:
            logger.warning(f"{__name__}:rebuild - Aborted, previous index kept: {e}")
            return
        except StorageError as e:
            self._last_error = str(e)
            logger.error(f"{__name__}:rebuild - Snapshot failed, previous index kept: {e}")
            return
        except asyncio.CancelledError:
            self._abort.set()
            raise
        finally:
            journal, self._journal = self._journal, []
            self._building = False

        for op, payload in journal:
            if op == "upsert":
                index.upsert(payload)
            else:
                index.remove(payload)
        self._ready = index
        self._last_error = None
        logger.info(
            f"{__name__}:rebuild - DONE state={IndexState.READY.value} "
            f"vectors={len(index)} clusters={index.n_clusters} replayed={len(journal)}"
        )

    def _on_rebuild_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            if task is self._task:
                self._building = False
            logger.warning(f"{__name__}:rebuild - Build task cancelled")
            return
        error = task.exception()
        if error is not None:
            self._last_error = f"{type(error).__name__}: {error}"
            logger.error(f"{__name__}:rebuild - Build task failed: {self._last_error}")
