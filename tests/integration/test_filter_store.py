"""Integration tests for FilterStore and FilterRunLedger persistence."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio

from modelcatalog.db.filter_runs import FilterRunLedger
from modelcatalog.db.filter_store import FilterStore
from modelcatalog.models import (
    FilterRun,
    FilterSnapshot,
    ModelRunResult,
    RequestContext,
    RuleClause,
    Visibility,
)

RULES = [RuleClause(field="provider", operator="eq", value="openai")]


@pytest.fixture
def store(session_factory):
    return FilterStore(session_factory)


@pytest.fixture
def runs(session_factory):
    return FilterRunLedger(session_factory)


class TestFilterStore:
    @pytest.mark.asyncio
    async def test_create_and_get(self, store):
        created = await store.create_filter("alice", "OpenAI only", RULES, description="d")

        loaded = await store.get_filter_by_id(created.id)

        assert loaded.name == "OpenAI only"
        assert loaded.owner_id == "alice"
        assert loaded.visibility == Visibility.PRIVATE
        assert loaded.version == 1
        assert loaded.usage_count == 0
        assert loaded.rules == RULES

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get_filter_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_name_change_keeps_version(self, store):
        created = await store.create_filter("alice", "a", RULES)

        updated = await store.update_filter(created.id, {"name": "b", "description": "new"})

        assert updated.name == "b"
        assert updated.description == "new"
        assert updated.version == 1

    @pytest.mark.asyncio
    async def test_rules_change_bumps_version(self, store):
        created = await store.create_filter("alice", "a", RULES)
        new_rules = [RuleClause(field="inputCost", operator="lt", value=1)]

        updated = await store.update_filter(created.id, {"rules": new_rules})

        assert updated.version == 2
        assert updated.rules == new_rules

    @pytest.mark.asyncio
    async def test_visibility_change_bumps_version(self, store):
        created = await store.create_filter("alice", "a", RULES)

        updated = await store.update_filter(created.id, {"visibility": Visibility.PUBLIC})

        assert updated.version == 2
        assert updated.visibility == Visibility.PUBLIC

    @pytest.mark.asyncio
    async def test_identical_rules_keep_version(self, store):
        created = await store.create_filter("alice", "a", RULES)

        updated = await store.update_filter(created.id, {"rules": list(RULES)})

        assert updated.version == 1

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        assert await store.update_filter(uuid4(), {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        created = await store.create_filter("alice", "a", RULES)

        assert await store.delete_filter(created.id)
        assert not await store.delete_filter(created.id)
        assert await store.get_filter_by_id(created.id) is None

    @pytest.mark.asyncio
    async def test_increment_usage(self, store):
        created = await store.create_filter("alice", "a", RULES)

        await store.increment_usage(created.id)
        await store.increment_usage(created.id)

        loaded = await store.get_filter_by_id(created.id)
        assert loaded.usage_count == 2
        assert loaded.last_used_at is not None


class TestVisibilityListing:
    @pytest_asyncio.fixture
    async def seeded(self, store):
        return {
            "own_private": await store.create_filter("alice", "own private", RULES),
            "own_team": await store.create_filter(
                "alice", "own team", RULES, visibility=Visibility.TEAM, team_id="team-a"
            ),
            "mate_team": await store.create_filter(
                "bob", "mate team", RULES, visibility=Visibility.TEAM, team_id="team-a"
            ),
            "mate_private": await store.create_filter("bob", "mate private", RULES),
            "other_team": await store.create_filter(
                "mallory", "other team", RULES, visibility=Visibility.TEAM, team_id="team-b"
            ),
            "public": await store.create_filter(
                "mallory", "public", RULES, visibility=Visibility.PUBLIC
            ),
        }

    @staticmethod
    def names(result):
        filters, _ = result
        return {f.name for f in filters}

    @pytest.mark.asyncio
    async def test_all(self, store, seeded, owner_ctx):
        filters, total = await store.list_filters(owner_ctx, "all")

        assert {f.name for f in filters} == {"own private", "own team", "mate team", "public"}
        assert total == 4

    @pytest.mark.asyncio
    async def test_private(self, store, seeded, owner_ctx):
        assert self.names(await store.list_filters(owner_ctx, "private")) == {"own private"}

    @pytest.mark.asyncio
    async def test_team(self, store, seeded, owner_ctx):
        assert self.names(await store.list_filters(owner_ctx, "team")) == {"own team", "mate team"}

    @pytest.mark.asyncio
    async def test_public(self, store, seeded, owner_ctx):
        assert self.names(await store.list_filters(owner_ctx, "public")) == {"public"}

    @pytest.mark.asyncio
    async def test_caller_without_team(self, store, seeded):
        ctx = RequestContext(user_id="bob")

        assert self.names(await store.list_filters(ctx, "all")) == {"mate team", "mate private", "public"}
        assert self.names(await store.list_filters(ctx, "team")) == set()

    @pytest.mark.asyncio
    async def test_paging(self, store, seeded, owner_ctx):
        page_one, total = await store.list_filters(owner_ctx, "all", page=1, page_size=3)
        page_two, _ = await store.list_filters(owner_ctx, "all", page=2, page_size=3)

        assert total == 4
        assert len(page_one) == 3
        assert len(page_two) == 1
        assert not {f.id for f in page_one} & {f.id for f in page_two}


class TestFilterRunLedger:
    @staticmethod
    def make_run(filter_id, snapshot, executed_at):
        return FilterRun(
            id=uuid4(),
            filter_id=filter_id,
            executed_by="alice",
            executed_at=executed_at,
            duration_ms=3,
            filter_snapshot=snapshot,
            total_evaluated=1,
            match_count=1,
            results=[
                ModelRunResult(
                    model_id="gpt-4", model_name="GPT-4", matched_all_hard=True, score=1.0
                )
            ],
            limit_used=50,
            model_ids_filter=["gpt-4"],
        )

    @pytest.mark.asyncio
    async def test_snapshot_survives_parent_edit(self, store, runs):
        saved = await store.create_filter("alice", "a", RULES)
        run = self.make_run(saved.id, FilterSnapshot.of(saved), datetime.now(timezone.utc))
        await runs.record(run)

        await store.update_filter(
            saved.id, {"rules": [RuleClause(field="provider", operator="eq", value="google")]}
        )
        loaded = await runs.get_run(saved.id, run.id)

        assert loaded.filter_snapshot.version == 1
        assert loaded.filter_snapshot.rules == RULES
        assert loaded.results[0].model_id == "gpt-4"
        assert loaded.model_ids_filter == ["gpt-4"]

    @pytest.mark.asyncio
    async def test_runs_survive_filter_deletion(self, store, runs):
        saved = await store.create_filter("alice", "a", RULES)
        run = self.make_run(saved.id, FilterSnapshot.of(saved), datetime.now(timezone.utc))
        await runs.record(run)

        await store.delete_filter(saved.id)

        assert (await runs.get_run(saved.id, run.id)).id == run.id

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store, runs):
        saved = await store.create_filter("alice", "a", RULES)
        snapshot = FilterSnapshot.of(saved)
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        recorded = [
            await runs.record(self.make_run(saved.id, snapshot, base + timedelta(minutes=i)))
            for i in range(3)
        ]

        listed, total = await runs.list_runs(saved.id, page=1, page_size=2)

        assert total == 3
        assert [r.id for r in listed] == [recorded[2].id, recorded[1].id]

    @pytest.mark.asyncio
    async def test_run_scoped_to_filter(self, store, runs):
        saved = await store.create_filter("alice", "a", RULES)
        run = self.make_run(saved.id, FilterSnapshot.of(saved), datetime.now(timezone.utc))
        await runs.record(run)

        assert await runs.get_run(uuid4(), run.id) is None
