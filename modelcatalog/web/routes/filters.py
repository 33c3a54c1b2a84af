"""Saved filter routes.

Routes:
- GET    /v1/filters                         - List visible filters
- POST   /v1/filters                         - Create a filter
- GET    /v1/filters/{filter_id}             - Get one filter
- PUT    /v1/filters/{filter_id}             - Update (owner only)
- DELETE /v1/filters/{filter_id}             - Delete (owner only)
- POST   /v1/filters/{filter_id}/evaluate    - Evaluate against the catalog
- GET    /v1/filters/{filter_id}/runs        - Run history, newest first
- GET    /v1/filters/{filter_id}/runs/{id}   - One recorded run
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from modelcatalog.filters.service import FilterService
from modelcatalog.models import (
    CreateFilterRequest,
    EvaluateFilterRequest,
    EvaluateFilterResponse,
    FilterListResult,
    FilterRun,
    FilterRunListResult,
    RequestContext,
    SavedFilter,
    UpdateFilterRequest,
)
from modelcatalog.web.dependencies import get_filter_service, get_request_context

router = APIRouter(prefix="/v1/filters", tags=["filters"])


# ============================================================================
# CRUD
# ============================================================================


@router.get("", response_model=FilterListResult)
async def list_filters(
    visibility: str = Query(default="all"),
    page: int | None = Query(default=1),
    page_size: int | None = Query(default=None, alias="pageSize"),
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    return await service.list_filters(ctx, visibility, page, page_size)


@router.post("", response_model=SavedFilter, status_code=201)
async def create_filter(
    body: CreateFilterRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    return await service.create(ctx, body)


@router.get("/{filter_id}", response_model=SavedFilter)
async def get_filter(
    filter_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    return await service.get(ctx, filter_id)


@router.put("/{filter_id}", response_model=SavedFilter)
async def update_filter(
    filter_id: UUID,
    body: UpdateFilterRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    return await service.update(ctx, filter_id, body)


@router.delete("/{filter_id}", status_code=204)
async def delete_filter(
    filter_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    await service.delete(ctx, filter_id)
    return Response(status_code=204)


# ============================================================================
# Evaluation & run history
# ============================================================================


@router.post("/{filter_id}/evaluate", response_model=EvaluateFilterResponse)
async def evaluate_filter(
    filter_id: UUID,
    body: EvaluateFilterRequest | None = None,
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    """Evaluate against the catalog and record an immutable run."""
    return await service.evaluate(ctx, filter_id, body)


@router.get("/{filter_id}/runs", response_model=FilterRunListResult)
async def list_runs(
    filter_id: UUID,
    page: int | None = Query(default=1),
    page_size: int | None = Query(default=None, alias="pageSize"),
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    return await service.list_runs(ctx, filter_id, page, page_size)


@router.get("/{filter_id}/runs/{run_id}", response_model=FilterRun)
async def get_run(
    filter_id: UUID,
    run_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: FilterService = Depends(get_filter_service),
):
    return await service.get_run(ctx, filter_id, run_id)
