"""Composition root: builds every service once from ``AppConfig``."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import sessionmaker

from modelcatalog.cache import Cache, build_cache
from modelcatalog.catalog.service import CatalogService
from modelcatalog.config import AppConfig
from modelcatalog.core.background import BackgroundSupervisor
from modelcatalog.db.connection import get_session_factory
from modelcatalog.db.filter_runs import FilterRunLedger
from modelcatalog.db.filter_store import FilterStore
from modelcatalog.db.sync_ledger import SyncLedger
from modelcatalog.filters.service import FilterService
from modelcatalog.pipeline.base_source import BaseSource
from modelcatalog.pipeline.config_loader import build_default_sources
from modelcatalog.pipeline.orchestrator import AggregationOrchestrator
from modelcatalog.pipeline.retry import RetryingFetcher


@dataclass
class Container:
    config: AppConfig
    cache: Cache
    supervisor: BackgroundSupervisor
    sources: list[BaseSource]
    sync_ledger: SyncLedger
    orchestrator: AggregationOrchestrator
    catalog: CatalogService
    filter_store: FilterStore
    filter_runs: FilterRunLedger
    filters: FilterService


def build_container(
    config: AppConfig,
    session_factory: sessionmaker | None = None,
    sources: list[BaseSource] | None = None,
    cache: Cache | None = None,
) -> Container:
    """Wire the object graph.

    Args:
        config: Application configuration
        session_factory: Database sessions (global factory if omitted)
        sources: Override the configured catalog sources
        cache: Override the configured cache backend
    """
    session_factory = session_factory or get_session_factory()
    if cache is None:
        cache = build_cache(config.cache.backend, config.cache.redis_url)
    supervisor = BackgroundSupervisor()

    if sources is None:
        sources = build_default_sources(config)

    sync_ledger = SyncLedger(
        session_factory,
        retry=RetryingFetcher(
            attempts=config.sync.retry_attempts,
            delay_seconds=config.sync.retry_delay_seconds,
        ),
    )
    orchestrator = AggregationOrchestrator(
        sources, sync_ledger, max_parallel=config.sync.max_parallel_sources
    )
    catalog = CatalogService(orchestrator, sync_ledger, cache, supervisor, config.cache)

    filter_store = FilterStore(session_factory)
    filter_runs = FilterRunLedger(session_factory)
    filters = FilterService(filter_store, filter_runs, catalog, config.filters)

    return Container(
        config=config,
        cache=cache,
        supervisor=supervisor,
        sources=sources,
        sync_ledger=sync_ledger,
        orchestrator=orchestrator,
        catalog=catalog,
        filter_store=filter_store,
        filter_runs=filter_runs,
        filters=filters,
    )
