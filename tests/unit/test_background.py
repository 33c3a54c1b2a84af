"""Unit tests for BackgroundSupervisor."""

from __future__ import annotations

import asyncio
import logging

import pytest

from modelcatalog.core.background import BackgroundSupervisor


@pytest.fixture
def supervisor():
    return BackgroundSupervisor()


class TestBackgroundSupervisor:
    @pytest.mark.asyncio
    async def test_spawned_task_runs_and_is_released(self, supervisor, caplog):
        results = []

        async def work():
            results.append("done")

        with caplog.at_level(logging.INFO):
            supervisor.spawn(work(), name="record-sync")
            assert supervisor.pending == 1
            await supervisor.drain()

        assert results == ["done"]
        assert supervisor.pending == 0
        assert "Background task record-sync completed" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, supervisor, caplog):
        async def boom():
            raise RuntimeError("write failed")

        with caplog.at_level(logging.ERROR):
            supervisor.spawn(boom(), name="record-sync")
            await supervisor.drain()

        assert "Background task record-sync failed: write failed" in caplog.text
        assert supervisor.pending == 0

    @pytest.mark.asyncio
    async def test_drain_cancels_after_timeout(self, supervisor, caplog):
        started = asyncio.Event()

        async def forever():
            started.set()
            await asyncio.sleep(60)

        supervisor.spawn(forever(), name="slow")
        await started.wait()

        with caplog.at_level(logging.WARNING):
            await supervisor.drain(timeout=0.01)

        assert supervisor.pending == 0
        assert "still running, cancelling" in caplog.text
        assert "Background task slow was cancelled" in caplog.text

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, supervisor):
        await supervisor.drain()

        assert supervisor.pending == 0
