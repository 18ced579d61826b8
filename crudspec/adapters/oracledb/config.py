"""OracleDB asynchronous pool configuration."""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional, TypedDict, Union

import oracledb
from typing_extensions import NotRequired

from crudspec.adapters.oracledb.driver import OracleAsyncDriver
from crudspec.config import AsyncDatabaseConfig
from crudspec.core.dialects import Dialect
from crudspec.exceptions import DatabaseConnectionError
from crudspec.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from oracledb import AsyncConnection, AsyncConnectionPool

__all__ = ("OracleAsyncConfig", "OracleConnectionParams", "OraclePoolParams")

logger = get_logger("adapters.oracledb")


class OracleConnectionParams(TypedDict, total=False):
    """Keyword arguments accepted by ``oracledb.connect_async``."""

    dsn: NotRequired[str]
    user: NotRequired[str]
    password: NotRequired[str]
    host: NotRequired[str]
    port: NotRequired[int]
    service_name: NotRequired[str]
    sid: NotRequired[str]
    wallet_location: NotRequired[str]
    wallet_password: NotRequired[str]
    config_dir: NotRequired[str]
    tcp_connect_timeout: NotRequired[float]


class OraclePoolParams(OracleConnectionParams, total=False):
    """Connection arguments plus the sizing options of ``oracledb.create_pool_async``."""

    min: NotRequired[int]
    max: NotRequired[int]
    increment: NotRequired[int]
    timeout: NotRequired[int]
    wait_timeout: NotRequired[int]
    ping_interval: NotRequired[int]
    session_callback: NotRequired["Callable[..., Any]"]
    extra: NotRequired[dict[str, Any]]


class OracleAsyncConfig(AsyncDatabaseConfig["AsyncConnection", "AsyncConnectionPool", OracleAsyncDriver]):
    """Oracle settings backed by an async connection pool created on first use."""

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.ORACLE
    driver_type: "ClassVar[type[OracleAsyncDriver]]" = OracleAsyncDriver

    def __init__(
        self,
        *,
        pool_config: "Optional[Union[OraclePoolParams, dict[str, Any]]]" = None,
        pool_instance: "Optional[AsyncConnectionPool]" = None,
    ) -> None:
        """Configure the pool.

        Args:
            pool_config: Keyword arguments for :func:`oracledb.create_pool_async`.
            pool_instance: Existing pool instance to use.
        """
        super().__init__(pool_config=pool_config, pool_instance=pool_instance)

    async def _create_pool(self) -> "AsyncConnectionPool":
        """Open the pool from the configured parameters."""
        try:
            pool = oracledb.create_pool_async(**self.connection_config)
        except oracledb.Error as e:
            msg = f"Could not create Oracle connection pool: {e}"
            raise DatabaseConnectionError(msg) from e
        logger.debug("Created Oracle connection pool for %s", self.connection_config.get("dsn", "default dsn"))
        return pool

    async def _close_pool(self) -> None:
        """Close the open pool, if any."""
        if self.pool_instance:
            await self.pool_instance.close()

    async def create_connection(self) -> "AsyncConnection":
        """Acquire a connection from the pool.

        Raises:
            DatabaseConnectionError: If no connection can be acquired.

        Returns:
            A connection checked out of the pool.
        """
        pool = await self.provide_pool()
        try:
            return await pool.acquire()
        except oracledb.Error as e:
            msg = f"Could not acquire Oracle connection: {e}"
            raise DatabaseConnectionError(msg) from e

    @asynccontextmanager
    async def provide_connection(self) -> "AsyncGenerator[AsyncConnection, None]":
        """Provide a pooled connection, released back to the pool on exit.

        Yields:
            A connection checked out of the pool.
        """
        connection = await self.create_connection()
        try:
            yield connection
        finally:
            await self.pool_instance.release(connection)  # type: ignore[union-attr]
