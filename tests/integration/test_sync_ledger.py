"""Integration tests for SyncLedger against an in-memory SQLite database."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modelcatalog.db.sync_ledger import SyncLedger
from modelcatalog.errors import SyncNotFoundError
from modelcatalog.models import SyncStatus
from modelcatalog.pipeline.retry import RetryingFetcher
from tests.fakes import make_model


@pytest.fixture
def ledger(session_factory):
    return SyncLedger(session_factory, retry=RetryingFetcher(attempts=1, delay_seconds=0))


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_then_complete(self, ledger):
        started = await ledger.start_sync()
        assert started.status == SyncStatus.RUNNING
        assert started.completed_at is None

        completed = await ledger.complete_sync(started.id, total_fetched=5, total_stored=4)

        assert completed.status == SyncStatus.COMPLETED
        assert completed.total_fetched == 5
        assert completed.total_stored == 4
        assert completed.completed_at is not None
        assert (await ledger.get_sync(started.id)).status == SyncStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_fail_records_message(self, ledger):
        started = await ledger.start_sync()

        failed = await ledger.fail_sync(started.id, "disk full")

        assert failed.status == SyncStatus.FAILED
        assert failed.error_message == "disk full"
        assert failed.completed_at is not None

    @pytest.mark.asyncio
    async def test_terminal_sync_cannot_transition_again(self, ledger):
        started = await ledger.start_sync()
        await ledger.complete_sync(started.id, 1, 1)

        with pytest.raises(SyncNotFoundError):
            await ledger.fail_sync(started.id, "late failure")
        with pytest.raises(SyncNotFoundError):
            await ledger.complete_sync(started.id, 2, 2)

        assert (await ledger.get_sync(started.id)).total_stored == 1

    @pytest.mark.asyncio
    async def test_unknown_sync(self, ledger):
        with pytest.raises(SyncNotFoundError):
            await ledger.complete_sync(uuid4(), 0, 0)
        assert await ledger.get_sync(uuid4()) is None


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_store_batch_round_trips_models(self, ledger, sample_models):
        sync = await ledger.start_sync()

        stored = await ledger.store_batch(sync.id, "models.dev", sample_models)
        snapshots = await ledger.snapshots_for_sync(sync.id)

        assert stored == 2
        assert [s.model for s in snapshots] == sorted(sample_models, key=lambda m: m.id)
        assert all(s.source == "models.dev" and s.sync_id == sync.id for s in snapshots)

    @pytest.mark.asyncio
    async def test_empty_batch_writes_nothing(self, ledger):
        sync = await ledger.start_sync()

        assert await ledger.store_batch(sync.id, "openrouter", []) == 0
        assert await ledger.snapshots_for_sync(sync.id) == []

    @pytest.mark.asyncio
    async def test_snapshots_filtered_by_source(self, ledger):
        sync = await ledger.start_sync()
        await ledger.store_batch(sync.id, "a", [make_model("a-1")])
        await ledger.store_batch(sync.id, "b", [make_model("b-1"), make_model("b-2")])

        snapshots = await ledger.snapshots_for_sync(sync.id, source="b")

        assert [s.model.id for s in snapshots] == ["b-1", "b-2"]


class TestQueries:
    @pytest.mark.asyncio
    async def test_latest_models_ignores_running_and_failed_syncs(self, ledger):
        done = await ledger.start_sync()
        await ledger.store_batch(done.id, "a", [make_model("old")])
        await ledger.complete_sync(done.id, 1, 1)

        running = await ledger.start_sync()
        await ledger.store_batch(running.id, "a", [make_model("in-flight")])
        failed = await ledger.start_sync()
        await ledger.store_batch(failed.id, "a", [make_model("broken")])
        await ledger.fail_sync(failed.id, "boom")

        assert [m.id for m in await ledger.latest_models()] == ["old"]
        assert await ledger.latest_models(source="zzz") == []

    @pytest.mark.asyncio
    async def test_latest_models_without_syncs(self, ledger):
        assert await ledger.latest_models() == []

    @pytest.mark.asyncio
    async def test_history_newest_first_and_clamped(self, ledger):
        ids = [(await ledger.start_sync()).id for _ in range(3)]

        history = await ledger.sync_history(limit=2)

        assert [op.id for op in history] == [ids[2], ids[1]]
        assert len(await ledger.sync_history(limit=0)) == 1
        assert len(await ledger.sync_history(limit=1000)) == 3

    @pytest.mark.asyncio
    async def test_model_data_stats(self, ledger):
        assert (await ledger.model_data_stats()).total_models == 0

        sync = await ledger.start_sync()
        await ledger.store_batch(
            sync.id,
            "a",
            [make_model("gpt-4", provider="openai"), make_model("gpt-4o", provider="openai")],
        )
        await ledger.store_batch(sync.id, "b", [make_model("claude", provider="anthropic")])
        completed = await ledger.complete_sync(sync.id, 3, 3)

        stats = await ledger.model_data_stats()

        assert stats.total_models == 3
        assert stats.providers == ["anthropic", "openai"]
        assert stats.model_count_by_provider == {"anthropic": 1, "openai": 2}
        assert stats.last_sync_at == completed.completed_at

    @pytest.mark.asyncio
    async def test_ping(self, ledger):
        await ledger.ping()
