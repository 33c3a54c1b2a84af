"""Sync operations and model snapshot persistence.

Each public method runs in its own transaction. Snapshot batches are
written atomically per (sync, source) and retried under the same fixed
delay policy as upstream fetches.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import func, select, text, update
from sqlalchemy.orm import sessionmaker

from modelcatalog.db.connection import get_session
from modelcatalog.db.models import ModelSnapshotModel, ModelSyncModel
from modelcatalog.errors import SyncNotFoundError
from modelcatalog.models import (
    Model,
    ModelDataStats,
    ModelSnapshot,
    SyncOperation,
    SyncStatus,
)
from modelcatalog.pipeline.retry import RetryingFetcher

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_operation(row: ModelSyncModel) -> SyncOperation:
    return SyncOperation(
        id=row.id,
        status=SyncStatus(row.status),
        started_at=row.started_at,
        completed_at=row.completed_at,
        total_fetched=row.total_fetched,
        total_stored=row.total_stored,
        error_message=row.error_message,
    )


def _to_snapshot(row: ModelSnapshotModel) -> ModelSnapshot:
    return ModelSnapshot(
        id=row.id,
        sync_id=row.sync_id,
        source=row.source,
        model=Model.model_validate(row.model_data),
        synced_at=row.synced_at,
    )


class SyncLedger:
    """Records sync lifecycles and the snapshot rows each sync produced."""

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        retry: RetryingFetcher | None = None,
    ):
        """Initialize ledger.

        Args:
            session_factory: Session factory (global one if omitted)
            retry: Policy for snapshot batch writes
        """
        self._session_factory = session_factory
        self._retry = (retry or RetryingFetcher()).named("store snapshot batch")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_sync(self) -> SyncOperation:
        row = ModelSyncModel(id=uuid4(), status=SyncStatus.RUNNING.value, started_at=_utcnow())
        async with get_session(self._session_factory) as session:
            session.add(row)
        return _to_operation(row)

    async def complete_sync(
        self, sync_id: UUID, total_fetched: int, total_stored: int
    ) -> SyncOperation:
        """Move a running sync to ``completed``.

        Raises:
            SyncNotFoundError: If no running sync has this id
        """
        return await self._finish(
            sync_id,
            status=SyncStatus.COMPLETED,
            total_fetched=total_fetched,
            total_stored=total_stored,
        )

    async def fail_sync(self, sync_id: UUID, error_message: str) -> SyncOperation:
        """Move a running sync to ``failed``.

        Raises:
            SyncNotFoundError: If no running sync has this id
        """
        return await self._finish(
            sync_id, status=SyncStatus.FAILED, error_message=error_message
        )

    async def _finish(self, sync_id: UUID, status: SyncStatus, **values) -> SyncOperation:
        async with get_session(self._session_factory) as session:
            result = await session.execute(
                update(ModelSyncModel)
                .where(
                    ModelSyncModel.id == sync_id,
                    ModelSyncModel.status == SyncStatus.RUNNING.value,
                )
                .values(status=status.value, completed_at=_utcnow(), **values)
            )
            if result.rowcount == 0:
                raise SyncNotFoundError(f"No running sync with id {sync_id}")

            row = await session.get(ModelSyncModel, sync_id, populate_existing=True)
            operation = _to_operation(row)

        logger.info(f"Sync {sync_id} marked {status.value}")
        return operation

    async def get_sync(self, sync_id: UUID) -> SyncOperation | None:
        async with get_session(self._session_factory) as session:
            row = await session.get(ModelSyncModel, sync_id)
            return _to_operation(row) if row else None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def store_batch(self, sync_id: UUID, source: str, models: list[Model]) -> int:
        """Insert all ``models`` for ``source`` in one transaction.

        Returns:
            Number of rows written
        """
        if not models:
            return 0
        return await self._retry.call(self._insert_batch, sync_id, source, models)

    async def _insert_batch(self, sync_id: UUID, source: str, models: list[Model]) -> int:
        synced_at = _utcnow()
        rows = [
            ModelSnapshotModel(
                id=uuid4(),
                sync_id=sync_id,
                source=source,
                model_id=model.id,
                provider=model.provider,
                model_data=model.model_dump(mode="json", by_alias=True),
                synced_at=synced_at,
            )
            for model in models
        ]
        async with get_session(self._session_factory) as session:
            session.add_all(rows)
        logger.info(f"Stored {len(rows)} snapshots from {source} for sync {sync_id}")
        return len(rows)

    async def snapshots_for_sync(
        self, sync_id: UUID, source: str | None = None
    ) -> list[ModelSnapshot]:
        query = select(ModelSnapshotModel).where(ModelSnapshotModel.sync_id == sync_id)
        if source:
            query = query.where(ModelSnapshotModel.source == source)
        query = query.order_by(ModelSnapshotModel.source, ModelSnapshotModel.model_id)

        async with get_session(self._session_factory) as session:
            rows = (await session.execute(query)).scalars().all()
            return [_to_snapshot(row) for row in rows]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def latest_completed_sync(self) -> SyncOperation | None:
        query = (
            select(ModelSyncModel)
            .where(ModelSyncModel.status == SyncStatus.COMPLETED.value)
            .order_by(ModelSyncModel.completed_at.desc())
            .limit(1)
        )
        async with get_session(self._session_factory) as session:
            row = (await session.execute(query)).scalar_one_or_none()
            return _to_operation(row) if row else None

    async def latest_models(self, source: str | None = None) -> list[Model]:
        """Models from the most recent completed sync (optionally one source)."""
        latest = await self.latest_completed_sync()
        if latest is None:
            return []
        snapshots = await self.snapshots_for_sync(latest.id, source)
        return [snapshot.model for snapshot in snapshots]

    async def sync_history(self, limit: int = 10) -> list[SyncOperation]:
        """Most recent syncs first; ``limit`` is clamped to [1, 100]."""
        limit = max(1, min(limit, MAX_HISTORY_LIMIT))
        query = select(ModelSyncModel).order_by(ModelSyncModel.started_at.desc()).limit(limit)
        async with get_session(self._session_factory) as session:
            rows = (await session.execute(query)).scalars().all()
            return [_to_operation(row) for row in rows]

    async def model_data_stats(self) -> ModelDataStats:
        latest = await self.latest_completed_sync()
        if latest is None:
            return ModelDataStats()

        query = (
            select(ModelSnapshotModel.provider, func.count())
            .where(ModelSnapshotModel.sync_id == latest.id)
            .group_by(ModelSnapshotModel.provider)
        )
        async with get_session(self._session_factory) as session:
            rows = (await session.execute(query)).all()

        counts = Counter({provider: count for provider, count in rows})
        return ModelDataStats(
            total_models=sum(counts.values()),
            providers=sorted(counts),
            last_sync_at=latest.completed_at,
            model_count_by_provider=dict(sorted(counts.items())),
        )

    async def ping(self) -> None:
        """Round-trip to the database; raises on connectivity problems."""
        async with get_session(self._session_factory) as session:
            await session.execute(text("SELECT 1"))
