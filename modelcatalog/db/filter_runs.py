"""Append-only ledger of filter evaluations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from modelcatalog.db.connection import get_session
from modelcatalog.db.models import FilterRunModel
from modelcatalog.models import FilterRun, FilterSnapshot, ModelRunResult


def _to_run(row: FilterRunModel) -> FilterRun:
    return FilterRun(
        id=row.id,
        filter_id=row.filter_id,
        executed_by=row.executed_by,
        executed_at=row.executed_at,
        duration_ms=row.duration_ms,
        filter_snapshot=FilterSnapshot.model_validate(row.filter_snapshot),
        total_evaluated=row.total_evaluated,
        match_count=row.match_count,
        results=[ModelRunResult.model_validate(r) for r in row.results],
        limit_used=row.limit_used,
        model_ids_filter=row.model_ids_filter,
        artifacts=row.artifacts,
    )


class FilterRunLedger:
    """Insert-only store for FilterRun records; rows are never updated."""

    def __init__(self, session_factory: sessionmaker | None = None):
        self._session_factory = session_factory

    async def record(self, run: FilterRun) -> FilterRun:
        # Serialized copy: later edits to the parent filter cannot reach it
        row = FilterRunModel(
            id=run.id,
            filter_id=run.filter_id,
            executed_by=run.executed_by,
            executed_at=run.executed_at,
            duration_ms=run.duration_ms,
            filter_snapshot=run.filter_snapshot.model_dump(mode="json", by_alias=True),
            limit_used=run.limit_used,
            model_ids_filter=list(run.model_ids_filter) if run.model_ids_filter is not None else None,
            total_evaluated=run.total_evaluated,
            match_count=run.match_count,
            results=[r.model_dump(mode="json", by_alias=True) for r in run.results],
            artifacts=run.artifacts,
        )
        async with get_session(self._session_factory) as session:
            session.add(row)
        return run

    async def list_runs(
        self, filter_id: UUID, page: int = 1, page_size: int = 20
    ) -> tuple[list[FilterRun], int]:
        """Runs of one filter, most recent first.

        Returns:
            (page of runs, total runs for the filter)
        """
        count_query = (
            select(func.count())
            .select_from(FilterRunModel)
            .where(FilterRunModel.filter_id == filter_id)
        )
        query = (
            select(FilterRunModel)
            .where(FilterRunModel.filter_id == filter_id)
            .order_by(FilterRunModel.executed_at.desc(), FilterRunModel.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        async with get_session(self._session_factory) as session:
            total = (await session.execute(count_query)).scalar_one()
            rows = (await session.execute(query)).scalars().all()
            return [_to_run(row) for row in rows], total

    async def get_run(self, filter_id: UUID, run_id: UUID) -> FilterRun | None:
        query = select(FilterRunModel).where(
            FilterRunModel.id == run_id, FilterRunModel.filter_id == filter_id
        )
        async with get_session(self._session_factory) as session:
            row = (await session.execute(query)).scalar_one_or_none()
            return _to_run(row) if row else None
