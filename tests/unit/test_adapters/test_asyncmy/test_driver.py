"""Test asyncmy driver implementation."""

from unittest.mock import AsyncMock, MagicMock

import asyncmy.errors
import pytest
from asyncmy.cursors import DictCursor

from crudspec.adapters.asyncmy import AsyncmyDriver
from crudspec.adapters.asyncmy.driver import AsyncmyExceptionHandler, to_pyformat
from crudspec.base import prepare
from crudspec.core.dialects import Dialect
from crudspec.exceptions import (
    DatabaseConnectionError,
    DriverError,
    ForeignKeyViolationError,
    NotNullViolationError,
    SQLParsingError,
    TransactionError,
    UniqueViolationError,
)


@pytest.fixture
def mock_cursor() -> MagicMock:
    cursor = MagicMock()
    cursor.execute = AsyncMock()
    cursor.fetchall = AsyncMock(return_value=[{"ID": "u1", "Name": "a"}])
    cursor.description = [("ID",), ("Name",)]
    cursor.rowcount = 1
    return cursor


@pytest.fixture
def mock_connection(mock_cursor: MagicMock) -> MagicMock:
    connection = MagicMock()
    connection.cursor.return_value.__aenter__.return_value = mock_cursor
    connection.commit = AsyncMock()
    connection.ensure_closed = AsyncMock()
    return connection


@pytest.fixture
def driver(mock_connection: MagicMock) -> AsyncmyDriver:
    return AsyncmyDriver(mock_connection)


def test_to_pyformat() -> None:
    assert to_pyformat("DELETE FROM Test WHERE ID = ?;") == "DELETE FROM Test WHERE ID = %s;"


@pytest.mark.asyncio
async def test_read(driver: AsyncmyDriver, mock_connection: MagicMock, mock_cursor: MagicMock) -> None:
    plan = prepare(Dialect.MARIADB, "Test", "READ", {"Name": "a", "Active": True})

    result = await driver.execute(plan)

    mock_connection.cursor.assert_called_once_with(DictCursor)
    mock_cursor.execute.assert_awaited_once_with("SELECT * FROM Test WHERE Name = %s AND Active = %s", ["a", 1])
    assert result.rows == [{"ID": "u1", "Name": "a"}]
    assert result.column_names == ("ID", "Name")
    mock_connection.commit.assert_not_called()
    mock_connection.ensure_closed.assert_awaited_once()


@pytest.mark.asyncio
async def test_read_without_filters_passes_no_args(driver: AsyncmyDriver, mock_cursor: MagicMock) -> None:
    await driver.execute(prepare(Dialect.MARIADB, "Test", "READ", {}))
    mock_cursor.execute.assert_awaited_once_with("SELECT * FROM Test", None)


@pytest.mark.asyncio
async def test_delete_commits(driver: AsyncmyDriver, mock_connection: MagicMock, mock_cursor: MagicMock) -> None:
    plan = prepare(Dialect.MARIADB, "Test", "DELETE", {"ID": "u1"})

    result = await driver.execute(plan)

    mock_cursor.execute.assert_awaited_once_with("DELETE FROM Test WHERE ID = %s;", ["u1"])
    assert result.rows_affected == 1
    mock_connection.commit.assert_awaited_once()
    mock_connection.ensure_closed.assert_awaited_once()


@pytest.mark.asyncio
async def test_negative_rowcount_reports_zero(driver: AsyncmyDriver, mock_cursor: MagicMock) -> None:
    mock_cursor.rowcount = -1
    result = await driver.execute(prepare(Dialect.MARIADB, "Test", "UPDATE", {"ID": "u1", "Name": "n"}))
    assert result.rows_affected == 0


@pytest.mark.asyncio
async def test_connection_closed_on_error(
    driver: AsyncmyDriver, mock_connection: MagicMock, mock_cursor: MagicMock
) -> None:
    mock_cursor.execute.side_effect = asyncmy.errors.IntegrityError(1062, "Duplicate entry 'u1' for key 'PRIMARY'")

    with pytest.raises(UniqueViolationError, match="1062"):
        await driver.execute(prepare(Dialect.MARIADB, "Test", "CREATE", {"ID": "u1"}))

    mock_connection.commit.assert_not_called()
    mock_connection.ensure_closed.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (asyncmy.errors.IntegrityError(1062, "dup"), UniqueViolationError),
        (asyncmy.errors.IntegrityError(1452, "fk"), ForeignKeyViolationError),
        (asyncmy.errors.IntegrityError(1048, "null"), NotNullViolationError),
        (asyncmy.errors.ProgrammingError(1064, "syntax"), SQLParsingError),
        (asyncmy.errors.OperationalError(1213, "deadlock"), TransactionError),
        (asyncmy.errors.OperationalError(2013, "lost"), DatabaseConnectionError),
        (asyncmy.errors.InternalError(9999, "other"), DriverError),
        (OSError("reset"), DatabaseConnectionError),
    ],
    ids=["unique", "fk", "not-null", "syntax", "deadlock", "lost", "other", "os"],
)
async def test_exception_handler(error: Exception, expected: "type[DriverError]") -> None:
    with pytest.raises(expected):
        async with AsyncmyExceptionHandler():
            raise error


@pytest.mark.asyncio
async def test_exception_handler_passes_other_errors() -> None:
    with pytest.raises(KeyError):
        async with AsyncmyExceptionHandler():
            raise KeyError("x")
