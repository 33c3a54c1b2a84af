"""Tests for modelcatalog.web.dependencies - identity and service lookup."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from modelcatalog.models import RequestContext
from modelcatalog.web.dependencies import (
    get_catalog_service,
    get_container,
    get_filter_service,
    get_request_context,
    require_admin,
)


@pytest.fixture
def app():
    test_app = FastAPI()

    @test_app.get("/whoami")
    async def whoami(ctx: RequestContext = Depends(get_request_context)):
        return ctx.model_dump()

    @test_app.get("/admin")
    async def admin(ctx: RequestContext = Depends(require_admin)):
        return {"userId": ctx.user_id}

    return test_app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestGetRequestContext:
    def test_reads_identity_headers(self, client):
        response = client.get("/whoami", headers={"X-User-Id": "alice", "X-Team-Id": "team-a"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "alice", "team_id": "team-a", "is_admin": False}

    def test_missing_user_is_401(self, client):
        response = client.get("/whoami")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_blank_user_is_401(self, client):
        assert client.get("/whoami", headers={"X-User-Id": "   "}).status_code == 401

    def test_blank_team_is_none(self, client):
        response = client.get("/whoami", headers={"X-User-Id": "alice", "X-Team-Id": ""})

        assert response.json()["team_id"] is None

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("YES", True), ("no", False)])
    def test_admin_flag(self, client, value, expected):
        response = client.get("/whoami", headers={"X-User-Id": "alice", "X-Admin": value})

        assert response.json()["is_admin"] is expected


class TestRequireAdmin:
    def test_admin_allowed(self, client):
        response = client.get("/admin", headers={"X-User-Id": "root", "X-Admin": "true"})

        assert response.status_code == 200
        assert response.json() == {"userId": "root"}

    def test_non_admin_forbidden(self, client):
        response = client.get("/admin", headers={"X-User-Id": "alice"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"


def test_services_come_from_container():
    container = MagicMock()
    request = MagicMock()
    request.app.state.container = container

    assert get_container(request) is container
    assert get_catalog_service(container) is container.catalog
    assert get_filter_service(container) is container.filters
