"""arq worker: periodic and on-demand catalog syncs.

Run with ``arq modelcatalog.worker.WorkerSettings``. The worker processes one
job at a time, so scheduled syncs never overlap each other.
"""

import logging
import os
from typing import Any

from arq.connections import RedisSettings
from arq.cron import cron

from modelcatalog.config import get_config
from modelcatalog.container import build_container
from modelcatalog.core.logging import configure_logging
from modelcatalog.db.connection import close_db

logger = logging.getLogger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    """Initialize resources when worker starts."""
    config = get_config()
    configure_logging(config.log_level, config.log_format)
    ctx["container"] = build_container(config)
    logger.info("Worker started. Service container initialized.")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Cleanup resources when worker stops."""
    container = ctx.get("container")
    if container is not None:
        await container.supervisor.drain(timeout=30)
        await container.cache.close()
    await close_db()
    logger.info("Worker stopped. Database connection closed.")


async def run_model_sync(
    ctx: dict[str, Any], deadline_seconds: float | None = None
) -> dict[str, Any]:
    """Aggregate all sources and persist one sync.

    Returns:
        Summary dict (sync id, status, totals, per-source errors)
    """
    container = ctx["container"]
    deadline = deadline_seconds or container.config.sync.deadline_seconds
    logger.info(f"Starting model sync job (deadline={deadline})")

    result = await container.catalog.sync(deadline)

    summary = {
        "sync_id": str(result.sync_id),
        "status": result.status.value,
        "total_fetched": result.total_fetched,
        "total_stored": result.total_stored,
        "errors": result.errors,
    }
    logger.info(f"Model sync job completed: {summary}")
    return summary


class WorkerSettings:
    functions = [run_model_sync]
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = 1
    redis_settings = RedisSettings.from_dsn(
        os.environ.get("REDIS_URL", "redis://redis:6379")
    )
    # Daily refresh at 03:00 UTC
    cron_jobs = [cron(run_model_sync, hour=3, minute=0, unique=True)]
