"""Asyncmy database configuration using TypedDict for better maintainability."""

from typing import Any, ClassVar, Optional, TypedDict, Union

import asyncmy
import asyncmy.errors  # pyright: ignore
from asyncmy.connection import Connection  # pyright: ignore
from typing_extensions import NotRequired

from crudspec.adapters.asyncmy.driver import AsyncmyDriver
from crudspec.config import NoPoolAsyncConfig
from crudspec.core.dialects import Dialect
from crudspec.exceptions import DatabaseConnectionError
from crudspec.utils.logging import get_logger

__all__ = ("AsyncmyConfig", "AsyncmyConnectionConfig")

logger = get_logger("adapters.asyncmy")


class AsyncmyConnectionConfig(TypedDict, total=False):
    """Asyncmy connection configuration as TypedDict.

    Basic connection parameters for asyncmy.connect().
    """

    host: NotRequired[str]
    """Host where the database server is located."""

    user: NotRequired[str]
    """The username used to authenticate with the database."""

    password: NotRequired[str]
    """The password used to authenticate with the database."""

    database: NotRequired[str]
    """The database name to use."""

    port: NotRequired[int]
    """The TCP/IP port of the MariaDB server."""

    unix_socket: NotRequired[str]
    charset: NotRequired[str]
    connect_timeout: NotRequired[float]
    ssl: NotRequired[Any]
    sql_mode: NotRequired[str]
    init_command: NotRequired[str]
    extra: NotRequired[dict[str, Any]]


class AsyncmyConfig(NoPoolAsyncConfig[Connection, AsyncmyDriver]):
    """Configuration for asyncmy connections, one connection per request."""

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.MARIADB
    driver_type: "ClassVar[type[AsyncmyDriver]]" = AsyncmyDriver

    def __init__(
        self, *, connection_config: "Optional[Union[AsyncmyConnectionConfig, dict[str, Any]]]" = None
    ) -> None:
        """Initialize asyncmy configuration.

        Args:
            connection_config: Keyword arguments for :func:`asyncmy.connect`.
        """
        super().__init__(connection_config=connection_config)

    async def create_connection(self) -> Connection:
        """Open a new connection.

        Raises:
            DatabaseConnectionError: If the server cannot be reached or rejects the login.

        Returns:
            The connection.
        """
        try:
            connection = await asyncmy.connect(**self.connection_config)
        except (asyncmy.errors.Error, OSError) as e:
            msg = f"Could not connect to MariaDB: {e}"
            raise DatabaseConnectionError(msg) from e
        logger.debug("Opened MariaDB connection to %s", self.connection_config.get("host", "localhost"))
        return connection

    async def _close_connection(self, connection: Connection) -> None:
        await connection.ensure_closed()
