"""Supervised background tasks.

Work spawned here outlives the request that started it (snapshot persistence
after a cache miss, admin-triggered syncs). Every task is tracked until it
finishes and its outcome is logged, so failures never disappear silently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundSupervisor:
    """Owns detached asyncio tasks and reports how they ended."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """Schedule ``coro`` on the running loop and keep a reference to it.

        Args:
            coro: Coroutine to run
            name: Label used in log lines

        Returns:
            The created task (callers normally ignore it)
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(f"Spawned background task {name}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        name = task.get_name()

        if task.cancelled():
            logger.warning(f"Background task {name} was cancelled")
            return

        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Background task {name} failed: {exc}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            logger.info(f"Background task {name} completed")

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for all outstanding tasks.

        Failures were already logged by the done callback and are not
        re-raised here.
        """
        if not self._tasks:
            return
        tasks = list(self._tasks)
        logger.info(f"Draining {len(tasks)} background task(s)")
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            logger.warning(f"Background task {task.get_name()} still running, cancelling")
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
