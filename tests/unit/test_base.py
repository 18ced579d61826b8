"""End-to-end pipeline tests against an in-memory driver."""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import pytest

from crudspec import CrudSpec, prepare
from crudspec.config import CrudConfig, NoPoolAsyncConfig
from crudspec.core.catalog import TypeCatalog
from crudspec.core.dialects import Dialect
from crudspec.core.result import CreateResult, RawResult, ReadResult, WriteResult
from crudspec.driver import AsyncDriverAdapterBase
from crudspec.exceptions import (
    ParamConfigError,
    UniqueViolationError,
    UnsupportedDialectError,
    UnsupportedOperationError,
    UnsupportedTypeError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from crudspec.core.statement import QueryPlan


class RecordingConnection:
    def __init__(self, raw: RawResult, error: "Optional[Exception]" = None) -> None:
        self.raw = raw
        self.error = error
        self.plans: list[QueryPlan] = []
        self.closed = False


class RecordingDriver(AsyncDriverAdapterBase):
    dialect: "ClassVar[Dialect]" = Dialect.POSTGRES

    async def _execute_statement(self, plan: "QueryPlan") -> RawResult:
        self.connection.plans.append(plan)
        if self.connection.error is not None:
            raise self.connection.error
        return self.connection.raw

    @asynccontextmanager
    async def handle_database_exceptions(self) -> "AsyncGenerator[None, None]":
        yield


class RecordingConfig(NoPoolAsyncConfig[RecordingConnection, RecordingDriver]):
    dialect: "ClassVar[Dialect]" = Dialect.POSTGRES
    driver_type: "ClassVar[type[RecordingDriver]]" = RecordingDriver

    def __init__(self, raw: "Optional[RawResult]" = None, error: "Optional[Exception]" = None) -> None:
        super().__init__(connection_config={"host": "memory"})
        self.raw = raw or RawResult()
        self.error = error
        self.connections: list[RecordingConnection] = []
        self.pool_closed = False

    async def create_connection(self) -> RecordingConnection:
        connection = RecordingConnection(self.raw, self.error)
        self.connections.append(connection)
        return connection

    async def _close_connection(self, connection: RecordingConnection) -> None:
        connection.closed = True

    async def close_pool(self) -> None:
        self.pool_closed = True


def _spec(database: RecordingConfig, catalog: "Optional[TypeCatalog]" = None) -> CrudSpec:
    return CrudSpec(CrudConfig(database=database, type_catalog=catalog or TypeCatalog()))


@pytest.mark.asyncio
async def test_read_returns_rows() -> None:
    rows = [{"ID": "u1", "Username": "alice"}]
    database = RecordingConfig(RawResult(rows=rows, rows_affected=1, column_names=("ID", "Username")))

    result = await _spec(database).execute("Users", "read", {"Username": "ALICE"})

    assert isinstance(result, ReadResult)
    assert result.to_dict() == {"rows": rows}
    [connection] = database.connections
    [plan] = connection.plans
    assert plan.sql == "SELECT * FROM Users WHERE Username = $1"
    assert plan.values() == ["alice"]
    assert connection.closed


@pytest.mark.asyncio
async def test_update_reports_affected_rows() -> None:
    database = RecordingConfig(RawResult(rows_affected=1))
    result = await _spec(database).execute("Test", "UPDATE", {"ID": "u1", "Name": "n"})
    assert isinstance(result, WriteResult)
    assert result.to_dict() == {"success": True, "affectedRows": 1}


@pytest.mark.asyncio
async def test_create_reports_success() -> None:
    database = RecordingConfig(RawResult(rows_affected=1))
    result = await _spec(database).execute("Test", "CREATE", {"Name": "n", "ID": "u1"})
    assert isinstance(result, CreateResult)
    assert database.connections[0].plans[0].sql == "INSERT INTO Test (Name, ID) VALUES ($1, $2);"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("operation", "params", "error"),
    [
        ("CREATE", {}, ValidationError),
        ("UPDATE", {"ID": "u1"}, ValidationError),
        ("DELETE", {"Name": "x"}, ValidationError),
        ("MERGE", {"ID": "u1"}, UnsupportedOperationError),
        ("READ", {"Tags": ["a"]}, UnsupportedTypeError),
        ("READ", {"Nickname": "n"}, ParamConfigError),
    ],
    ids=["create-empty", "update-id-only", "delete-no-id", "unknown-operation", "bad-value", "bad-config"],
)
async def test_request_errors_never_open_a_connection(
    operation: str, params: "dict[str, Any]", error: "type[Exception]"
) -> None:
    database = RecordingConfig()
    catalog = TypeCatalog({"POSTGRES": {"Nickname": {"type": "VARCHAR"}}})
    with pytest.raises(error):
        await _spec(database, catalog).execute("Users", operation, params)
    assert database.connections == []


@pytest.mark.asyncio
async def test_driver_error_closes_connection() -> None:
    database = RecordingConfig(error=UniqueViolationError("duplicate"))
    with pytest.raises(UniqueViolationError):
        await _spec(database).execute("Test", "CREATE", {"ID": "u1"})
    assert database.connections[0].closed


@pytest.mark.asyncio
async def test_close_releases_pool() -> None:
    database = RecordingConfig()
    await _spec(database).close()
    assert database.pool_closed


def test_spec_dialect_follows_config() -> None:
    assert _spec(RecordingConfig()).dialect is Dialect.POSTGRES


def test_prepare_mssql_create() -> None:
    plan = prepare("MSSQL", "Test", "CREATE", {"Name": "n", "Text": "t", "ID": "u1"})
    assert plan.sql == "INSERT INTO Test (Name, Text, ID) VALUES (@Name, @Text, @ID);"
    assert [param.name for param in plan.parameters] == ["Name", "Text", "ID"]


def test_prepare_mssql_update() -> None:
    plan = prepare("MSSQL", "Test", "UPDATE", {"ID": "u1", "Name": "n", "Text": "t"})
    assert plan.sql == "UPDATE Test SET Name = @Name, Text = @Text WHERE ID = @ID;"
    assert plan.values() == ["n", "t", "u1"]


def test_prepare_mariadb_delete() -> None:
    plan = prepare("MARIADB", "Test", "DELETE", {"ID": "u1"})
    assert plan.sql == "DELETE FROM Test WHERE ID = ?;"
    assert plan.values() == ["u1"]


def test_prepare_read_without_params() -> None:
    plan = prepare("POSTGRES", "Test", "READ", {})
    assert plan.sql == "SELECT * FROM Test"
    assert plan.parameters == ()


def test_prepare_oracle_create_is_unsupported() -> None:
    with pytest.raises(UnsupportedOperationError, match="CREATE operation is not supported for ORACLE"):
        prepare("ORACLE", "Test", "CREATE", {"Name": "n", "ID": "u1"})


def test_prepare_unknown_dialect() -> None:
    with pytest.raises(UnsupportedDialectError):
        prepare("DB2", "Test", "READ")


def test_prepare_uses_catalog() -> None:
    catalog = TypeCatalog({"POSTGRES": {"Age": {"type": "INTEGER"}}})
    plan = prepare("POSTGRES", "People", "READ", {"Age": "41"}, catalog)
    assert plan.values() == [41]
    assert str(plan.parameters[0].type) == "INTEGER"
