from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from crudspec.adapters.asyncmy import AsyncmyConfig, AsyncmyDriver
from crudspec.core.dialects import Dialect


def test_config_defaults() -> None:
    config = AsyncmyConfig(connection_config={"host": "db", "port": 3306, "user": "app", "database": "crud"})
    assert config.dialect is Dialect.MARIADB
    assert config.driver_type is AsyncmyDriver
    assert config.connection_config["port"] == 3306


@pytest.mark.asyncio
async def test_provide_connection_closes_connection() -> None:
    connection = MagicMock()
    connection.ensure_closed = AsyncMock()
    config = AsyncmyConfig(connection_config={"host": "db"})

    with patch("crudspec.adapters.asyncmy.config.asyncmy.connect", AsyncMock(return_value=connection)):
        async with config.provide_session() as driver:
            assert isinstance(driver, AsyncmyDriver)
            assert driver.connection is connection

    connection.ensure_closed.assert_awaited_once()
