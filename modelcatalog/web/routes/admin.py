"""Admin routes.

Routes:
- POST /v1/admin/sync          - Start a background sync (reports "started")
- GET  /v1/admin/sync/history  - Recent sync operations
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from modelcatalog.catalog.service import CatalogService
from modelcatalog.container import Container
from modelcatalog.models import RequestContext
from modelcatalog.web.dependencies import get_catalog_service, get_container, require_admin

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.post("/sync", status_code=202)
async def trigger_sync(
    ctx: RequestContext = Depends(require_admin),
    catalog: CatalogService = Depends(get_catalog_service),
    container: Container = Depends(get_container),
):
    """Start a sync; its outcome shows up in the sync history."""
    sync_id = await catalog.trigger_sync(container.config.sync.deadline_seconds)
    return {
        "syncId": str(sync_id),
        "status": "started",
        "message": "Model sync started in the background",
    }


@router.get("/sync/history")
async def sync_history(
    limit: int = Query(default=10),
    ctx: RequestContext = Depends(require_admin),
    container: Container = Depends(get_container),
):
    syncs = await container.sync_ledger.sync_history(limit)
    return {"syncs": syncs, "total": len(syncs)}
