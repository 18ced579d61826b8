"""AsyncPG database configuration with direct field-based configuration."""

import asyncio
from typing import Any, ClassVar, Optional, TypedDict, Union

import asyncpg
from typing_extensions import NotRequired

from crudspec.adapters.asyncpg.driver import AsyncpgDriver
from crudspec.config import NoPoolAsyncConfig
from crudspec.core.dialects import Dialect
from crudspec.exceptions import DatabaseConnectionError
from crudspec.utils.logging import get_logger

__all__ = ("AsyncpgConfig", "AsyncpgConnectionConfig")

logger = get_logger("adapters.asyncpg")


class AsyncpgConnectionConfig(TypedDict, total=False):
    """TypedDict for AsyncPG connection parameters."""

    dsn: NotRequired[str]
    host: NotRequired[str]
    port: NotRequired[int]
    user: NotRequired[str]
    password: NotRequired[str]
    database: NotRequired[str]
    ssl: NotRequired[Any]
    timeout: NotRequired[float]
    command_timeout: NotRequired[float]
    statement_cache_size: NotRequired[int]
    server_settings: NotRequired[dict[str, str]]
    extra: NotRequired[dict[str, Any]]


class AsyncpgConfig(NoPoolAsyncConfig["asyncpg.Connection", AsyncpgDriver]):
    """Configuration for AsyncPG connections, one connection per request."""

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.POSTGRES
    driver_type: "ClassVar[type[AsyncpgDriver]]" = AsyncpgDriver

    def __init__(
        self, *, connection_config: "Optional[Union[AsyncpgConnectionConfig, dict[str, Any]]]" = None
    ) -> None:
        """Initialize AsyncPG configuration.

        Args:
            connection_config: Keyword arguments for :func:`asyncpg.connect`.
        """
        super().__init__(connection_config=connection_config)

    async def create_connection(self) -> "asyncpg.Connection":
        """Open a new connection.

        Raises:
            DatabaseConnectionError: If the server cannot be reached or rejects the login.

        Returns:
            The connection.
        """
        try:
            connection = await asyncpg.connect(**self.connection_config)
        except (asyncpg.exceptions.PostgresError, asyncpg.exceptions.InterfaceError, OSError, asyncio.TimeoutError) as e:
            msg = f"Could not connect to PostgreSQL: {e}"
            raise DatabaseConnectionError(msg) from e
        logger.debug("Opened PostgreSQL connection to %s", self.connection_config.get("host", "default host"))
        return connection

    async def _close_connection(self, connection: "asyncpg.Connection") -> None:
        if not connection.is_closed():
            await connection.close()
