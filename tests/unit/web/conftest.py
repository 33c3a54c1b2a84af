"""Fixtures for route tests: a mocked service graph behind the real app."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from modelcatalog.config import AppConfig, DBConfig
from modelcatalog.models import RuleClause, SavedFilter, Visibility
from modelcatalog.web.app import create_app


@pytest.fixture
def mock_container():
    """Container whose services are AsyncMocks returning real models."""
    container = MagicMock()
    container.config = AppConfig(db=DBConfig(url="sqlite+aiosqlite:///:memory:"))
    container.supervisor.pending = 0

    container.catalog.get_models = AsyncMock(return_value=[])
    container.catalog.get_latest_models = AsyncMock(return_value=[])
    container.catalog.get_stats = AsyncMock()
    container.catalog.trigger_sync = AsyncMock()

    container.sync_ledger.ping = AsyncMock()
    container.sync_ledger.sync_history = AsyncMock(return_value=[])

    for name in ("list_filters", "create", "get", "update", "delete", "evaluate", "list_runs", "get_run"):
        setattr(container.filters, name, AsyncMock())
    return container


@pytest.fixture
def client(mock_container):
    return TestClient(create_app(mock_container))


@pytest.fixture
def user_headers():
    return {"X-User-Id": "alice", "X-Team-Id": "team-a"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "root", "X-Admin": "true"}


@pytest.fixture
def saved_filter():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return SavedFilter(
        id=uuid4(),
        owner_id="alice",
        team_id="team-a",
        name="Cheap tool models",
        visibility=Visibility.TEAM,
        rules=[
            RuleClause(field="inputCost", operator="lte", value=1),
            RuleClause(field="capabilities", operator="contains", value="tools", type="soft", weight=2),
        ],
        created_at=now,
        updated_at=now,
    )
