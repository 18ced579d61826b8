"""Tests for the Litestar query endpoint."""

from typing import Any, Optional

import pytest
from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.testing import create_test_client

from crudspec.adapters.asyncpg import AsyncpgConfig
from crudspec.base import CrudSpec
from crudspec.config import CrudConfig
from crudspec.core.result import ExecutionResult, RawResult, normalize
from crudspec.exceptions import ParamConfigError, UniqueViolationError
from crudspec.extensions.litestar import CorrelationMiddleware, CrudSpecPlugin, create_app


class StubCrudSpec(CrudSpec):
    """Runs the real request pipeline but replaces the database round trip."""

    __slots__ = ("closed", "error", "raw", "requests")

    def __init__(self, raw: "Optional[RawResult]" = None, error: "Optional[Exception]" = None) -> None:
        super().__init__(CrudConfig(database=AsyncpgConfig(connection_config={"host": "stub"})))
        self.raw = raw or RawResult()
        self.error = error
        self.requests: list[tuple[str, Any, Any]] = []
        self.closed = False

    async def execute(self, table: str, operation: Any, params: Any = None) -> ExecutionResult:
        plan = self.prepare(table, operation, params)
        self.requests.append((table, operation, params))
        if self.error is not None:
            raise self.error
        return normalize(plan.operation, self.raw)

    async def close(self) -> None:
        self.closed = True


def test_read_returns_rows() -> None:
    rows = [{"ID": "u1", "Username": "alice"}]
    crud_spec = StubCrudSpec(RawResult(rows=rows, rows_affected=1))

    with create_test_client(plugins=[CrudSpecPlugin(crud_spec)]) as client:
        response = client.post("/api/query", json={"table": "Users", "operation": "READ", "params": {"Username": "a"}})

    assert response.status_code == 200
    assert response.json() == {"rows": rows}
    assert response.headers["x-correlation-id"]
    assert crud_spec.requests == [("Users", "READ", {"Username": "a"})]


def test_read_without_params() -> None:
    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec())]) as client:
        response = client.post("/api/query", json={"table": "Users", "operation": "READ"})
    assert response.status_code == 200
    assert response.json() == {"rows": []}


@pytest.mark.parametrize(
    ("operation", "raw", "expected"),
    [
        ("UPDATE", RawResult(rows_affected=2), {"success": True, "affectedRows": 2}),
        ("DELETE", RawResult(rows_affected=None), {"success": True, "affectedRows": 0}),
        ("CREATE", RawResult(rows_affected=1), {"success": True}),
    ],
    ids=["update", "delete", "create"],
)
def test_write_results(operation: str, raw: RawResult, expected: "dict[str, Any]") -> None:
    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec(raw))]) as client:
        response = client.post(
            "/api/query", json={"table": "Test", "operation": operation, "params": {"ID": "u1", "Name": "n"}}
        )
    assert response.status_code == 200
    assert response.json() == expected


@pytest.mark.parametrize(
    ("body", "error_type"),
    [
        ({"table": "Test", "operation": "UPDATE", "params": {"ID": "u1"}}, "ValidationError"),
        ({"table": "Test", "operation": "CREATE", "params": {}}, "ValidationError"),
        ({"table": "Test", "operation": "MERGE", "params": {"ID": "u1"}}, "UnsupportedOperationError"),
        ({"table": "Test", "operation": "READ", "params": {"Tags": ["a"]}}, "UnsupportedTypeError"),
        ({"table": "Test; DROP TABLE Test", "operation": "READ"}, "ValidationError"),
        ({"operation": "READ"}, "ValidationError"),
    ],
    ids=["update-id-only", "create-empty", "unknown-operation", "bad-value", "bad-table", "missing-table"],
)
def test_caller_errors_are_400(body: "dict[str, Any]", error_type: str) -> None:
    crud_spec = StubCrudSpec()
    with create_test_client(plugins=[CrudSpecPlugin(crud_spec)]) as client:
        response = client.post("/api/query", json=body)

    assert response.status_code == 400
    payload = response.json()
    assert payload["type"] == error_type
    assert payload["error"]
    assert crud_spec.requests == []


@pytest.mark.parametrize(
    ("error", "error_type"),
    [
        (UniqueViolationError("PostgreSQL unique constraint violation [23505]: dup"), "UniqueViolationError"),
        (ParamConfigError("VARCHAR requires an explicit length", field="Name"), "ParamConfigError"),
        (RuntimeError("boom"), "RuntimeError"),
    ],
    ids=["driver", "config", "unexpected"],
)
def test_server_errors_are_500(error: Exception, error_type: str) -> None:
    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec(error=error))]) as client:
        response = client.post("/api/query", json={"table": "Test", "operation": "READ"})

    assert response.status_code == 500
    assert response.json() == {"error": str(error), "type": error_type}


def test_correlation_id_is_echoed() -> None:
    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec())]) as client:
        response = client.post(
            "/api/query", json={"table": "Users", "operation": "READ"}, headers={"X-Correlation-ID": "req-42"}
        )
    assert response.headers["x-correlation-id"] == "req-42"


def test_correlation_id_on_error_responses() -> None:
    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec())]) as client:
        response = client.post("/api/query", json={"table": "Users", "operation": "DELETE", "params": {}})
    assert response.status_code == 400
    assert response.headers["x-correlation-id"]


def test_custom_path_and_no_middleware() -> None:
    plugin = CrudSpecPlugin(StubCrudSpec(), path="/crud", enable_correlation_middleware=False)
    with create_test_client(plugins=[plugin]) as client:
        response = client.post("/crud", json={"table": "Users", "operation": "READ"})
    assert response.status_code == 200
    assert "x-correlation-id" not in response.headers


def test_cors_allows_any_origin_by_default() -> None:
    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec())]) as client:
        preflight = client.options(
            "/api/query",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
        )
        response = client.post(
            "/api/query", json={"table": "Users", "operation": "READ"}, headers={"Origin": "http://localhost:3000"}
        )
    assert preflight.headers["access-control-allow-origin"] == "*"
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_can_be_restricted_or_disabled() -> None:
    restricted = CrudSpecPlugin(StubCrudSpec(), cors_config=CORSConfig(allow_origins=["https://app.example.com"]))
    with create_test_client(plugins=[restricted]) as client:
        response = client.post(
            "/api/query", json={"table": "Users", "operation": "READ"}, headers={"Origin": "https://app.example.com"}
        )
    assert response.headers["access-control-allow-origin"] == "https://app.example.com"

    with create_test_client(plugins=[CrudSpecPlugin(StubCrudSpec(), cors_config=False)]) as client:
        response = client.post(
            "/api/query", json={"table": "Users", "operation": "READ"}, headers={"Origin": "http://localhost:3000"}
        )
    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_shutdown_closes_database() -> None:
    crud_spec = StubCrudSpec()
    with create_test_client(plugins=[CrudSpecPlugin(crud_spec)]):
        assert not crud_spec.closed
    assert crud_spec.closed


def test_plugin_wraps_config() -> None:
    config = CrudConfig(database=AsyncpgConfig(connection_config={"host": "db"}))
    plugin = CrudSpecPlugin(config)
    assert isinstance(plugin.crud_spec, CrudSpec)
    assert plugin.crud_spec.config is config


def test_create_app() -> None:
    app = create_app(CrudConfig(database=AsyncpgConfig(connection_config={"host": "db"})))
    assert isinstance(app, Litestar)
    assert app.route_reverse("crudspec:query") == "/api/query"
    assert any(isinstance(middleware, CorrelationMiddleware) for middleware in app.middleware)
    assert app.cors_config is not None
    assert app.cors_config.allow_origins == ["*"]
