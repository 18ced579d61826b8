from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from crudspec.adapters.oracledb import OracleAsyncConfig, OracleAsyncDriver
from crudspec.core.dialects import Dialect


@pytest.fixture
def mock_pool() -> MagicMock:
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=MagicMock(name="connection"))
    pool.release = AsyncMock()
    pool.close = AsyncMock()
    return pool


def test_config_is_pooled() -> None:
    config = OracleAsyncConfig(pool_config={"user": "app", "password": "pw", "dsn": "db/orcl", "min": 1})
    assert config.dialect is Dialect.ORACLE
    assert config.driver_type is OracleAsyncDriver
    assert config.pool_instance is None


@pytest.mark.asyncio
async def test_pool_created_once(mock_pool: MagicMock) -> None:
    config = OracleAsyncConfig(pool_config={"user": "app", "dsn": "db/orcl"})
    with patch("crudspec.adapters.oracledb.config.oracledb.create_pool_async", return_value=mock_pool) as create:
        assert await config.create_pool() is mock_pool
        assert await config.provide_pool() is mock_pool
    create.assert_called_once_with(user="app", dsn="db/orcl")


@pytest.mark.asyncio
async def test_connection_released_to_pool(mock_pool: MagicMock) -> None:
    config = OracleAsyncConfig(pool_instance=mock_pool)

    with pytest.raises(RuntimeError):
        async with config.provide_connection() as connection:
            assert connection is mock_pool.acquire.return_value
            raise RuntimeError("boom")

    mock_pool.release.assert_awaited_once_with(mock_pool.acquire.return_value)


@pytest.mark.asyncio
async def test_close_pool(mock_pool: MagicMock) -> None:
    config = OracleAsyncConfig(pool_instance=mock_pool)
    await config.close_pool()
    mock_pool.close.assert_awaited_once()
    assert config.pool_instance is None
