"""Test pymssql driver implementation."""

from unittest.mock import MagicMock

import pymssql
import pytest

from crudspec.adapters.mssql import MssqlDriver
from crudspec.base import prepare
from crudspec.core.dialects import Dialect
from crudspec.exceptions import UniqueViolationError


@pytest.fixture
def mock_cursor() -> MagicMock:
    cursor = MagicMock()
    cursor.fetchall.return_value = [{"ID": "u1", "Name": "a"}]
    cursor.description = [("ID",), ("Name",)]
    cursor.rowcount = 1
    return cursor


@pytest.fixture
def mock_connection(mock_cursor: MagicMock) -> MagicMock:
    connection = MagicMock()
    connection.cursor.return_value = mock_cursor
    return connection


@pytest.fixture
def driver(mock_connection: MagicMock) -> MssqlDriver:
    return MssqlDriver(mock_connection)


@pytest.mark.asyncio
async def test_read_all(driver: MssqlDriver, mock_connection: MagicMock, mock_cursor: MagicMock) -> None:
    result = await driver.execute(prepare(Dialect.MSSQL, "Test", "READ"))

    mock_connection.cursor.assert_called_once_with(as_dict=True)
    mock_cursor.execute.assert_called_once_with("SELECT * FROM Test")
    assert result.rows == [{"ID": "u1", "Name": "a"}]
    mock_connection.commit.assert_not_called()
    mock_connection.close.assert_not_called()


@pytest.mark.asyncio
async def test_delete_commits(driver: MssqlDriver, mock_connection: MagicMock, mock_cursor: MagicMock) -> None:
    result = await driver.execute(prepare(Dialect.MSSQL, "Test", "DELETE", {"ID": "u1"}))

    mock_cursor.execute.assert_called_once_with(
        "EXEC sp_executesql N'DELETE FROM Test WHERE ID = @ID;', N'@ID UNIQUEIDENTIFIER', @ID = %(ID)s", {"ID": "u1"}
    )
    assert result.rows_affected == 1
    mock_connection.commit.assert_called_once()
    mock_cursor.close.assert_called_once()


@pytest.mark.asyncio
async def test_error_is_mapped(driver: MssqlDriver, mock_connection: MagicMock, mock_cursor: MagicMock) -> None:
    mock_cursor.execute.side_effect = pymssql.IntegrityError(2627, b"Violation of PRIMARY KEY constraint")

    with pytest.raises(UniqueViolationError, match="2627"):
        await driver.execute(prepare(Dialect.MSSQL, "Test", "CREATE", {"ID": "u1"}))

    mock_connection.commit.assert_not_called()
    mock_cursor.close.assert_called_once()
