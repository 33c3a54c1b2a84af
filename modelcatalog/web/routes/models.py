"""Catalog routes.

Routes:
- GET /v1/models         - Aggregated live catalog (cached)
- GET /v1/models/latest  - Models from the most recent completed sync
- GET /v1/models/stats   - Counts per provider for the latest sync
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from modelcatalog.catalog.service import CatalogService
from modelcatalog.models import ModelDataStats
from modelcatalog.web.dependencies import get_catalog_service

router = APIRouter(prefix="/v1/models", tags=["models"])


@router.get("")
async def list_models(catalog: CatalogService = Depends(get_catalog_service)):
    """Aggregated catalog across all sources.

    Sources that fail are left out; the response never fails because of a
    single upstream outage.
    """
    models = await catalog.get_models()
    return {"models": models, "total": len(models)}


@router.get("/latest")
async def latest_models(
    source: str | None = Query(default=None, description="e.g. openrouter"),
    catalog: CatalogService = Depends(get_catalog_service),
):
    models = await catalog.get_latest_models(source)
    return {"models": models, "total": len(models), "source": source}


@router.get("/stats", response_model=ModelDataStats)
async def model_stats(catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.get_stats()
