"""Pytest configuration and fixtures for ModelCatalog tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from modelcatalog.config import reset_config
from modelcatalog.db.connection import make_session_factory
from modelcatalog.db.models import Base
from modelcatalog.models import Model, RequestContext
from modelcatalog.pipeline.retry import RetryingFetcher
from tests.fakes import StaticSource, make_model


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Minimal environment so ``get_config()`` works in every test."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    reset_config()
    yield
    reset_config()


@pytest_asyncio.fixture()
async def session_factory():
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield make_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def no_wait_fetcher() -> RetryingFetcher:
    """Production retry count without the sleep between attempts."""
    return RetryingFetcher(attempts=3, delay_seconds=0)


@pytest.fixture
def model_factory():
    return make_model


@pytest.fixture
def sample_models() -> list[Model]:
    """Two models from different providers."""
    return [
        make_model(
            "gpt-4",
            provider="openai",
            context_window=128000,
            input_cost=0.5,
            output_cost=1.5,
            capabilities=["tools"],
            modalities=["text", "image"],
        ),
        make_model(
            "claude-3-opus",
            provider="anthropic",
            context_window=200000,
            input_cost=30.0,
            output_cost=75.0,
            capabilities=["tools", "reasoning"],
            modalities=["text"],
        ),
    ]


@pytest.fixture
def static_source():
    """Factory for in-memory sources: ``static_source("a", models=[...])``."""
    return StaticSource


@pytest.fixture
def owner_ctx() -> RequestContext:
    return RequestContext(user_id="alice", team_id="team-a")


@pytest.fixture
def teammate_ctx() -> RequestContext:
    return RequestContext(user_id="bob", team_id="team-a")


@pytest.fixture
def outsider_ctx() -> RequestContext:
    return RequestContext(user_id="mallory", team_id="team-b")
