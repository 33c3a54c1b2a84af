"""Catalog read path: cache first, live aggregation on miss.

A miss aggregates all sources in the request, caches the combined list and
hands persistence of that aggregation to the background supervisor so the
caller is not held up by database writes.
"""

from __future__ import annotations

import logging
from uuid import UUID

from modelcatalog.cache import CACHE_KEYS, Cache
from modelcatalog.config import CacheConfig
from modelcatalog.core.background import BackgroundSupervisor
from modelcatalog.db.sync_ledger import SyncLedger
from modelcatalog.models import Model, ModelDataStats
from modelcatalog.pipeline.orchestrator import AggregationOrchestrator
from modelcatalog.pipeline.types import SyncResult

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(
        self,
        orchestrator: AggregationOrchestrator,
        ledger: SyncLedger,
        cache: Cache,
        supervisor: BackgroundSupervisor,
        config: CacheConfig | None = None,
    ):
        self.orchestrator = orchestrator
        self.ledger = ledger
        self.cache = cache
        self.supervisor = supervisor
        self.config = config or CacheConfig()

    async def get_models(self) -> list[Model]:
        """Aggregated catalog across all sources."""
        cached = await self.cache.get(CACHE_KEYS.MODELS)
        if cached is not None:
            logger.debug(f"Catalog cache hit ({len(cached)} models)")
            return cached

        aggregation = await self.orchestrator.aggregate()
        models = aggregation.models

        await self.cache.set(CACHE_KEYS.MODELS, models, self.config.models_ttl_seconds)
        logger.info(
            f"Catalog cache refreshed with {len(models)} models "
            f"({len(aggregation.failed)} source failures)"
        )

        if models:
            self.supervisor.spawn(
                self.orchestrator.record_sync(aggregation), name="record-catalog-sync"
            )
        return models

    async def get_latest_models(self, source: str | None = None) -> list[Model]:
        """Models from the most recent completed sync in the database."""
        return await self.ledger.latest_models(source)

    async def get_stats(self) -> ModelDataStats:
        cached = await self.cache.get(CACHE_KEYS.MODEL_STATS)
        if cached is not None:
            return cached

        stats = await self.ledger.model_data_stats()
        await self.cache.set(CACHE_KEYS.MODEL_STATS, stats, self.config.stats_ttl_seconds)
        return stats

    async def invalidate(self) -> None:
        await self.cache.delete(CACHE_KEYS.MODELS)
        await self.cache.delete(CACHE_KEYS.MODEL_STATS)

    async def sync(
        self, deadline_seconds: float | None = None, sync_id: UUID | None = None
    ) -> SyncResult:
        """Run a full persisted sync, then drop cached catalog data."""
        result = await self.orchestrator.run_sync(deadline_seconds, sync_id=sync_id)
        await self.invalidate()
        return result

    async def trigger_sync(self, deadline_seconds: float | None = None) -> UUID:
        """Open a sync and finish it in the background.

        Only starting the sync can fail here; its outcome is reported by the
        sync history and the logs.

        Raises:
            PersistenceError: If the sync could not be opened
        """
        sync_id = await self.orchestrator.start_sync()
        self.supervisor.spawn(
            self.sync(deadline_seconds, sync_id=sync_id), name=f"sync-{sync_id}"
        )
        return sync_id
