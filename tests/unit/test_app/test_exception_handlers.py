"""Tests for application exception handlers."""

from __future__ import annotations

import json

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from nested_tree.app.exception_handlers import (
    app_exception_handler,
    configure_exception_handlers,
    repository_exception_handler,
    to_app_exception,
)
from nested_tree.core.database import (
    InconsistentBoundsError,
    InvalidParentError,
    NotFoundError,
    RepositoryError,
    StoreFailureError,
)
from nested_tree.core.exceptions import AppException


def _build_request(path: str = "/test") -> Request:
    """Create a minimal ASGI request for handler tests."""
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "query_string": b"",
        "client": ("test", 1234),
        "server": ("test", 80),
        "scheme": "http",
    }
    return Request(scope, lambda: None)


@pytest.mark.parametrize(
    ("exc", "status_code", "type_"),
    [
        (NotFoundError("TreeNode", {"id": 5}), 404, "treenode-not-found"),
        (InvalidParentError(1, 3, "new parent is a descendant of the node"), 422, "invalid-parent"),
        (StoreFailureError("shift_range", "database is locked"), 503, "store-failure"),
        (InconsistentBoundsError("Bound span must be odd", node_id=2), 500, "inconsistent-bounds"),
        (RepositoryError("Nested-set attribute not found on model"), 500, "repository-error"),
    ],
)
def test_to_app_exception(exc, status_code, type_):
    mapped = to_app_exception(exc)

    assert mapped.status_code == status_code
    assert mapped.type == type_
    assert mapped.detail == exc.message


def test_store_failure_hides_driver_message():
    mapped = to_app_exception(StoreFailureError("get", "disk I/O error at /var/db"))

    assert mapped.extra == {"operation": "get"}


def test_not_found_keeps_identifier():
    mapped = to_app_exception(NotFoundError("TreeNode", {"id": 5}))

    assert mapped.extra == {"id": 5}


async def test_app_exception_handler_renders_problem_details():
    exc = AppException(status_code=409, detail="Conflict", type="conflict", extra={"node_id": 4})

    response = await app_exception_handler(_build_request("/api/v1/nodes/4"), exc)

    body = json.loads(response.body)
    assert response.status_code == 409
    assert body["type"] == "conflict"
    assert body["title"] == "Conflict"
    assert body["status"] == 409
    assert body["node_id"] == 4
    assert body["instance"].endswith("/api/v1/nodes/4")


async def test_repository_exception_handler():
    response = await repository_exception_handler(
        _build_request(), InvalidParentError(2, 2, "a node cannot be its own parent")
    )

    body = json.loads(response.body)
    assert response.status_code == 422
    assert body["node_id"] == 2
    assert body["parent_id"] == 2


# ============================================================================
# Registered handlers
# ============================================================================


@pytest.fixture
def failing_app() -> FastAPI:
    app = FastAPI()
    configure_exception_handlers(app)

    @app.get("/corrupt")
    async def corrupt():
        raise InconsistentBoundsError("Left bound must be lower than right bound", node_id=9)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("ledger checksum 0xdeadbeef")

    @app.get("/items/{item_id}")
    async def item(item_id: int):
        return {"id": item_id}

    return app


async def test_tree_error_through_app(failing_app):
    async with AsyncClient(transport=ASGITransport(app=failing_app), base_url="http://test") as ac:
        response = await ac.get("/corrupt")

    assert response.status_code == 500
    assert response.json()["type"] == "inconsistent-bounds"
    assert response.json()["node_id"] == 9


async def test_validation_error_through_app(failing_app):
    async with AsyncClient(transport=ASGITransport(app=failing_app), base_url="http://test") as ac:
        response = await ac.get("/items/not-a-number")

    body = response.json()
    assert response.status_code == 422
    assert body["type"] == "validation-error"
    assert body["errors"][0]["field"] == "path.item_id"


async def test_unexpected_error_is_generic(failing_app):
    transport = ASGITransport(app=failing_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/crash")

    assert response.status_code == 500
    assert response.json()["type"] == "internal-error"
    assert "ledger checksum" not in response.text
    assert "0xdeadbeef" not in response.text
