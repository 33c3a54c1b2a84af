"""Health check API routes.

Provides endpoints for monitoring application health and connectivity.
"""

from fastapi import APIRouter, Depends, status

from modelcatalog.container import Container
from modelcatalog.web.dependencies import get_container

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(container: Container = Depends(get_container)):
    """Check application health.

    Verifies database connectivity and reports outstanding background work.
    """
    try:
        await container.sync_ledger.ping()
    except Exception as e:
        return {
            "status": "error",
            "database": "disconnected",
            "detail": str(e),
        }
    return {
        "status": "ok",
        "database": "connected",
        "backgroundTasks": container.supervisor.pending,
    }
