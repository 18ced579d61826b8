from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from crudspec.adapters.asyncpg import AsyncpgConfig, AsyncpgDriver
from crudspec.core.dialects import Dialect
from crudspec.exceptions import DatabaseConnectionError


def test_config_drops_unset_values() -> None:
    config = AsyncpgConfig(
        connection_config={"host": "db", "port": 5432, "user": "app", "password": None, "extra": {"ssl": "require"}}
    )
    assert config.connection_config == {"host": "db", "port": 5432, "user": "app", "ssl": "require"}
    assert config.dialect is Dialect.POSTGRES
    assert config.driver_type is AsyncpgDriver


def test_repr_masks_password() -> None:
    config = AsyncpgConfig(connection_config={"host": "db", "password": "hunter2"})
    assert "hunter2" not in repr(config)
    assert "***" in repr(config)


@pytest.mark.asyncio
async def test_provide_connection_closes_connection() -> None:
    connection = MagicMock()
    connection.is_closed = MagicMock(return_value=False)
    connection.close = AsyncMock()
    config = AsyncpgConfig(connection_config={"host": "db"})

    with patch("crudspec.adapters.asyncpg.config.asyncpg.connect", AsyncMock(return_value=connection)) as connect:
        async with config.provide_connection() as provided:
            assert provided is connection

    connect.assert_awaited_once_with(host="db")
    connection.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_connect_failure_is_wrapped() -> None:
    config = AsyncpgConfig(connection_config={"host": "db"})
    with patch("crudspec.adapters.asyncpg.config.asyncpg.connect", AsyncMock(side_effect=OSError("refused"))):
        with pytest.raises(DatabaseConnectionError, match="Could not connect to PostgreSQL"):
            await config.create_connection()
