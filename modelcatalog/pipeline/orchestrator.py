"""Aggregation orchestrator - fans out to every catalog source.

Implements resilient design: single source failures don't halt the sync.

Key features:
- Concurrent: one task per source, bounded by a semaphore
- Resilient: failures are contained and logged per-source
- Auditable: every run is a SyncOperation with attributable snapshot batches
- Bounded: an optional deadline turns still-pending sources into failures
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING
from uuid import UUID

from modelcatalog.errors import PersistenceError
from modelcatalog.pipeline.base_source import BaseSource
from modelcatalog.pipeline.types import AggregationResult, SourceResult, SyncResult

if TYPE_CHECKING:
    from modelcatalog.db.sync_ledger import SyncLedger

logger = logging.getLogger(__name__)


class AggregationOrchestrator:
    """Runs all sources and records the outcome in the sync ledger.

    Responsibilities:
    1. Run every source concurrently with independent outcome capture
    2. Persist each successful, non-empty batch tagged with its source
    3. Mark the sync completed with totals over successful sources
    4. Fail the sync only when the ledger itself fails
    """

    def __init__(
        self,
        sources: list[BaseSource],
        ledger: SyncLedger,
        max_parallel: int | None = None,
    ):
        """Initialize orchestrator.

        Args:
            sources: Configured source instances
            ledger: Sync/snapshot persistence
            max_parallel: Concurrent source limit (defaults to source count)
        """
        self.sources = sources
        self.ledger = ledger
        self.max_parallel = max(1, max_parallel or len(sources) or 1)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def aggregate(self, deadline_seconds: float | None = None) -> AggregationResult:
        """Fetch from every source concurrently.

        Never raises for source-level problems: each source yields exactly
        one SourceResult, in the order the sources were configured.
        """
        start = time.monotonic()
        semaphore = asyncio.Semaphore(self.max_parallel)
        logger.info(
            f"Aggregating {len(self.sources)} sources "
            f"(parallel={self.max_parallel}, deadline={deadline_seconds})"
        )

        results = await asyncio.gather(
            *(self._run_bounded(source, semaphore, deadline_seconds) for source in self.sources)
        )

        aggregation = AggregationResult(
            results=list(results), duration_seconds=time.monotonic() - start
        )
        for failure in aggregation.failed:
            logger.warning(f"Source {failure.source_name} failed: {failure.message}")
        logger.info(
            f"Aggregation finished: {len(aggregation.successful)}/{len(self.sources)} "
            f"sources succeeded, {aggregation.total_fetched} models"
        )
        return aggregation

    async def _run_bounded(
        self,
        source: BaseSource,
        semaphore: asyncio.Semaphore,
        deadline_seconds: float | None,
    ) -> SourceResult:
        if deadline_seconds is None:
            return await self._run_source(source, semaphore)

        # All tasks start together, so a per-task timeout is the overall deadline
        try:
            return await asyncio.wait_for(
                self._run_source(source, semaphore), timeout=deadline_seconds
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Source {source.source_name} did not finish within the "
                f"{deadline_seconds}s deadline"
            )
            return SourceResult.failed(
                source.source_name,
                TimeoutError(f"deadline of {deadline_seconds}s exceeded"),
                deadline_seconds,
            )

    async def _run_source(
        self, source: BaseSource, semaphore: asyncio.Semaphore
    ) -> SourceResult:
        async with semaphore:
            start = time.monotonic()
            try:
                return await source.run()
            except Exception as e:
                logger.error(f"✗ {source.source_name} failed: {e}", exc_info=True)
                return SourceResult.failed(source.source_name, e, time.monotonic() - start)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def run_sync(
        self, deadline_seconds: float | None = None, sync_id: UUID | None = None
    ) -> SyncResult:
        """Start a sync, aggregate, persist batches, complete the sync.

        Args:
            deadline_seconds: Optional bound on the whole fan-out
            sync_id: A sync already opened with ``start_sync``

        Raises:
            PersistenceError: If the ledger cannot start, store or finish the sync
        """
        if sync_id is None:
            sync_id = await self.start_sync()
        aggregation = await self.aggregate(deadline_seconds)
        return await self._persist(sync_id, aggregation)

    async def record_sync(self, aggregation: AggregationResult) -> SyncResult:
        """Persist an aggregation that has already been fetched."""
        sync_id = await self.start_sync()
        return await self._persist(sync_id, aggregation)

    async def start_sync(self) -> UUID:
        """Open a running SyncOperation and return its id."""
        try:
            operation = await self.ledger.start_sync()
        except Exception as e:
            logger.error(f"Could not start sync: {e}", exc_info=True)
            raise PersistenceError(f"Could not start sync: {e}") from e
        logger.info(f"Sync {operation.id} started")
        return operation.id

    async def _persist(self, sync_id: UUID, aggregation: AggregationResult) -> SyncResult:
        per_source: dict[str, int] = {}
        total_stored = 0

        for result in aggregation.successful:
            if not result.models:
                per_source[result.source_name] = 0
                logger.info(f"Source {result.source_name} returned no models, nothing stored")
                continue
            try:
                stored = await self.ledger.store_batch(sync_id, result.source_name, result.models)
            except Exception as e:
                # Batches already committed for other sources are kept
                message = (
                    f"Failed to store {result.record_count} models from "
                    f"{result.source_name}: {e}"
                )
                logger.error(f"Sync {sync_id}: {message}", exc_info=True)
                await self._mark_failed(sync_id, message)
                raise PersistenceError(message) from e
            per_source[result.source_name] = stored
            total_stored += stored
            logger.info(f"✓ {result.source_name}: stored {stored} models")

        total_fetched = aggregation.total_fetched
        try:
            operation = await self.ledger.complete_sync(sync_id, total_fetched, total_stored)
        except Exception as e:
            message = f"Could not complete sync {sync_id}: {e}"
            logger.error(message, exc_info=True)
            await self._mark_failed(sync_id, message)
            raise PersistenceError(message) from e

        logger.info(
            f"Sync {sync_id} completed: fetched={total_fetched} stored={total_stored} "
            f"failed_sources={len(aggregation.failed)}"
        )
        return SyncResult(
            sync_id=sync_id,
            status=operation.status,
            total_fetched=total_fetched,
            total_stored=total_stored,
            per_source=per_source,
            errors=aggregation.errors,
            models=aggregation.models,
        )

    async def _mark_failed(self, sync_id: UUID, message: str) -> None:
        try:
            await self.ledger.fail_sync(sync_id, message)
        except Exception as e:
            logger.error(f"Could not mark sync {sync_id} as failed: {e}", exc_info=True)
