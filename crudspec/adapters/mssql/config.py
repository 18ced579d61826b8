"""pymssql connection configuration."""

from typing import Any, ClassVar, Optional, TypedDict, Union

import pymssql
from typing_extensions import NotRequired

from crudspec.adapters.mssql.driver import MssqlDriver
from crudspec.config import NoPoolAsyncConfig
from crudspec.core.dialects import Dialect
from crudspec.exceptions import DatabaseConnectionError
from crudspec.utils.logging import get_logger
from crudspec.utils.sync_tools import async_

__all__ = ("MssqlConfig", "MssqlConnectionConfig")

logger = get_logger("adapters.mssql")


class MssqlConnectionConfig(TypedDict, total=False):
    """TypedDict for :func:`pymssql.connect` parameters."""

    server: NotRequired[str]
    port: NotRequired[int]
    user: NotRequired[str]
    password: NotRequired[str]
    database: NotRequired[str]
    timeout: NotRequired[int]
    login_timeout: NotRequired[int]
    charset: NotRequired[str]
    appname: NotRequired[str]
    tds_version: NotRequired[str]
    extra: NotRequired[dict[str, Any]]


class MssqlConfig(NoPoolAsyncConfig["pymssql.Connection", MssqlDriver]):
    """Configuration for SQL Server through pymssql.

    The connection context closes the connection; the driver leaves it open.
    """

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.MSSQL
    driver_type: "ClassVar[type[MssqlDriver]]" = MssqlDriver

    def __init__(
        self, *, connection_config: "Optional[Union[MssqlConnectionConfig, dict[str, Any]]]" = None
    ) -> None:
        """Initialize SQL Server configuration.

        Args:
            connection_config: Keyword arguments for :func:`pymssql.connect`.
        """
        super().__init__(connection_config=connection_config)

    async def create_connection(self) -> "pymssql.Connection":
        """Open a new connection in a worker thread.

        Raises:
            DatabaseConnectionError: If the server cannot be reached or rejects the login.

        Returns:
            The connection.
        """
        try:
            connection = await async_(pymssql.connect)(**self.connection_config)
        except pymssql.Error as e:
            msg = f"Could not connect to SQL Server: {e}"
            raise DatabaseConnectionError(msg) from e
        logger.debug("Opened SQL Server connection to %s", self.connection_config.get("server", "default server"))
        return connection

    async def _close_connection(self, connection: "pymssql.Connection") -> None:
        await async_(connection.close)()
