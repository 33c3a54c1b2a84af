"""Shared dependencies for ModelCatalog web routes.

Dependencies are injected using FastAPI's Depends() system.

Usage:
    from fastapi import Depends
    from modelcatalog.web.dependencies import get_filter_service, get_request_context

    @router.get("/filters")
    async def list_filters(
        ctx: RequestContext = Depends(get_request_context),
        service: FilterService = Depends(get_filter_service),
    ):
        ...
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from modelcatalog.catalog.service import CatalogService
from modelcatalog.container import Container
from modelcatalog.filters.service import FilterService
from modelcatalog.models import RequestContext

USER_HEADER = "x-user-id"
TEAM_HEADER = "x-team-id"
ADMIN_HEADER = "x-admin"


def get_container(request: Request) -> Container:
    """Service graph built at startup (see ``create_app``)."""
    return request.app.state.container


def get_catalog_service(container: Container = Depends(get_container)) -> CatalogService:
    return container.catalog


def get_filter_service(container: Container = Depends(get_container)) -> FilterService:
    return container.filters


def get_request_context(request: Request) -> RequestContext:
    """Resolve the caller from request headers.

    Stand-in for real authentication: an upstream gateway is expected to
    set these headers after verifying the caller.

    Raises:
        HTTPException: 401 when no user id is present
    """
    user_id = (request.headers.get(USER_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    team_id = (request.headers.get(TEAM_HEADER) or "").strip() or None
    is_admin = (request.headers.get(ADMIN_HEADER) or "").strip().lower() in ("1", "true", "yes")
    return RequestContext(user_id=user_id, team_id=team_id, is_admin=is_admin)


def require_admin(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """Raises HTTPException 403 for non-admin callers."""
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx
