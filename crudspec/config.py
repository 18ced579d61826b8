import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Final, Generic, Optional, TypeVar

from dotenv import load_dotenv

from crudspec.core.catalog import TypeCatalog
from crudspec.core.dialects import Dialect
from crudspec.exceptions import (
    ImproperConfigurationError,
    MissingDependencyError,
    ParamConfigError,
    UnsupportedDialectError,
)
from crudspec.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from contextlib import AbstractAsyncContextManager

    from crudspec.driver import AsyncDriverAdapterBase

__all__ = (
    "DEFAULT_PORTS",
    "AsyncDatabaseConfig",
    "CrudConfig",
    "DatabaseConfigProtocol",
    "NoPoolAsyncConfig",
    "get_connection",
    "load_config_from_env",
)

ConnectionT = TypeVar("ConnectionT")
PoolT = TypeVar("PoolT")
DriverT = TypeVar("DriverT", bound="AsyncDriverAdapterBase")

logger = get_logger("config")

DEFAULT_PORTS: "Final[dict[Dialect, int]]" = {Dialect.MSSQL: 1433, Dialect.MARIADB: 3306, Dialect.POSTGRES: 5432}
TYPE_CATALOG_ENV: Final[str] = "CRUDSPEC_TYPE_CATALOG"


class DatabaseConfigProtocol(ABC, Generic[ConnectionT, PoolT, DriverT]):
    """Common interface of every database configuration."""

    __slots__ = ("connection_config", "pool_instance")
    dialect: "ClassVar[Dialect]"
    driver_type: "ClassVar[type[Any]]"

    connection_config: "dict[str, Any]"
    pool_instance: "Optional[PoolT]"

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.connection_config == other.connection_config and self.pool_instance == other.pool_instance

    def __repr__(self) -> str:
        safe = {key: ("***" if key == "password" else value) for key, value in self.connection_config.items()}
        return f"{type(self).__name__}(connection_config={safe!r})"

    @abstractmethod
    async def create_connection(self) -> ConnectionT:
        """Create and return a new database connection."""
        raise NotImplementedError

    @abstractmethod
    def provide_connection(self) -> "AbstractAsyncContextManager[ConnectionT]":
        """Provide a database connection context manager."""
        raise NotImplementedError

    @abstractmethod
    async def create_pool(self) -> "Optional[PoolT]":
        """Create and return connection pool."""
        raise NotImplementedError

    @abstractmethod
    async def close_pool(self) -> None:
        """Close the pool, if the configuration holds one."""
        raise NotImplementedError

    @asynccontextmanager
    async def provide_session(self) -> "AsyncGenerator[DriverT, None]":
        """Provide a driver bound to a scoped connection.

        Yields:
            A driver instance for this configuration's dialect.
        """
        async with self.provide_connection() as connection:
            yield self.driver_type(connection)


class NoPoolAsyncConfig(DatabaseConfigProtocol[ConnectionT, None, DriverT]):
    """Base class for async database configurations that open one connection per request."""

    __slots__ = ()

    def __init__(self, *, connection_config: "Optional[Mapping[str, Any]]" = None) -> None:
        self.pool_instance = None
        config: dict[str, Any] = dict(connection_config) if connection_config else {}
        extras = config.pop("extra", {})
        config.update(extras)
        self.connection_config = {key: value for key, value in config.items() if value is not None}

    @asynccontextmanager
    async def provide_connection(self) -> "AsyncGenerator[ConnectionT, None]":
        """Provide a connection that is closed when the context exits.

        Yields:
            A fresh connection.
        """
        connection = await self.create_connection()
        try:
            yield connection
        finally:
            await self._close_connection(connection)

    @abstractmethod
    async def _close_connection(self, connection: ConnectionT) -> None:
        """Close ``connection``. Must be safe to call on an already closed connection."""
        raise NotImplementedError

    async def create_pool(self) -> None:
        return None

    async def close_pool(self) -> None:
        return None


class AsyncDatabaseConfig(DatabaseConfigProtocol[ConnectionT, PoolT, DriverT]):
    """Base for configurations that hand out connections from a pool."""

    __slots__ = ()

    def __init__(
        self, *, pool_config: "Optional[Mapping[str, Any]]" = None, pool_instance: "Optional[PoolT]" = None
    ) -> None:
        config: dict[str, Any] = dict(pool_config) if pool_config else {}
        extras = config.pop("extra", {})
        config.update(extras)
        self.connection_config = {key: value for key, value in config.items() if value is not None}
        self.pool_instance = pool_instance

    async def create_pool(self) -> PoolT:
        """Create the pool once and reuse it.

        Returns:
            The created pool.
        """
        if self.pool_instance is not None:
            return self.pool_instance
        self.pool_instance = await self._create_pool()
        return self.pool_instance

    async def close_pool(self) -> None:
        await self._close_pool()
        self.pool_instance = None

    async def provide_pool(self) -> PoolT:
        if self.pool_instance is None:
            self.pool_instance = await self.create_pool()
        return self.pool_instance

    @abstractmethod
    async def _create_pool(self) -> PoolT:
        """Actual async pool creation implementation."""
        raise NotImplementedError

    @abstractmethod
    async def _close_pool(self) -> None:
        """Actual async pool destruction implementation."""
        raise NotImplementedError


@dataclass
class CrudConfig:
    """Everything the pipeline needs for one deployment.

    Attributes:
        database: Connection configuration; its class fixes the dialect.
        type_catalog: Configured per-field bind types.
    """

    database: "DatabaseConfigProtocol[Any, Any, Any]"
    type_catalog: TypeCatalog = field(default_factory=TypeCatalog)

    @property
    def dialect(self) -> Dialect:
        return self.database.dialect


def get_connection(
    dialect: Any, config: "DatabaseConfigProtocol[ConnectionT, Any, Any]"
) -> "AbstractAsyncContextManager[ConnectionT]":
    """Return a scoped connection for ``dialect`` from ``config``.

    Raises:
        UnsupportedDialectError: If the dialect is not recognized.
        ImproperConfigurationError: If ``config`` belongs to a different dialect.
    """
    dialect = Dialect.from_value(dialect)
    if config.dialect is not dialect:
        msg = f"{type(config).__name__} provides {config.dialect.value} connections, not {dialect.value}"
        raise ImproperConfigurationError(msg)
    return config.provide_connection()


def _require(environ: "Mapping[str, str]", name: str) -> str:
    value = environ.get(name, "").strip()
    if not value:
        msg = f"Environment variable {name} is required"
        raise ImproperConfigurationError(msg)
    return value


def _port(environ: "Mapping[str, str]", dialect: Dialect) -> int:
    raw = environ.get("DB_PORT", "").strip()
    if not raw:
        return DEFAULT_PORTS[dialect]
    try:
        port = int(raw)
    except ValueError as e:
        msg = f"DB_PORT must be an integer, got {raw!r}"
        raise ImproperConfigurationError(msg) from e
    if not 0 < port < 65536:  # noqa: PLR2004
        msg = f"DB_PORT out of range: {port}"
        raise ImproperConfigurationError(msg)
    return port


def _mssql_config(environ: "Mapping[str, str]") -> "DatabaseConfigProtocol[Any, Any, Any]":
    try:
        from crudspec.adapters.mssql import MssqlConfig
    except ImportError as e:
        raise MissingDependencyError("pymssql", "mssql") from e

    return MssqlConfig(
        connection_config={
            "server": _require(environ, "DB_SERVER"),
            "port": _port(environ, Dialect.MSSQL),
            "user": _require(environ, "DB_USER"),
            "password": environ.get("DB_PASSWORD", ""),
            "database": _require(environ, "DB_DATABASE"),
        }
    )


def _oracle_config(environ: "Mapping[str, str]") -> "DatabaseConfigProtocol[Any, Any, Any]":
    try:
        from crudspec.adapters.oracledb import OracleAsyncConfig
    except ImportError as e:
        raise MissingDependencyError("oracledb") from e

    return OracleAsyncConfig(
        pool_config={
            "user": _require(environ, "DB_USER"),
            "password": environ.get("DB_PASSWORD", ""),
            "dsn": _require(environ, "ORACLE_CONNECTION_STRING"),
        }
    )


def _mariadb_config(environ: "Mapping[str, str]") -> "DatabaseConfigProtocol[Any, Any, Any]":
    try:
        from crudspec.adapters.asyncmy import AsyncmyConfig
    except ImportError as e:
        raise MissingDependencyError("asyncmy") from e

    return AsyncmyConfig(
        connection_config={
            "host": _require(environ, "DB_SERVER"),
            "port": _port(environ, Dialect.MARIADB),
            "user": _require(environ, "DB_USER"),
            "password": environ.get("DB_PASSWORD", ""),
            "database": _require(environ, "DB_DATABASE"),
        }
    )


def _postgres_config(environ: "Mapping[str, str]") -> "DatabaseConfigProtocol[Any, Any, Any]":
    try:
        from crudspec.adapters.asyncpg import AsyncpgConfig
    except ImportError as e:
        raise MissingDependencyError("asyncpg") from e

    return AsyncpgConfig(
        connection_config={
            "host": _require(environ, "DB_SERVER"),
            "port": _port(environ, Dialect.POSTGRES),
            "user": _require(environ, "DB_USER"),
            "password": environ.get("DB_PASSWORD", ""),
            "database": _require(environ, "DB_DATABASE"),
        }
    )


_CONFIG_FACTORIES: "Final[dict[Dialect, Callable[[Mapping[str, str]], DatabaseConfigProtocol[Any, Any, Any]]]]" = {
    Dialect.MSSQL: _mssql_config,
    Dialect.ORACLE: _oracle_config,
    Dialect.MARIADB: _mariadb_config,
    Dialect.POSTGRES: _postgres_config,
}


def load_config_from_env(
    environ: "Optional[Mapping[str, str]]" = None, dotenv_path: "Optional[str]" = None
) -> CrudConfig:
    """Build the deployment configuration from environment variables.

    Reads ``DB_TYPE``, ``DB_USER``, ``DB_PASSWORD``, ``DB_SERVER``, ``DB_DATABASE``,
    ``DB_PORT``, ``ORACLE_CONNECTION_STRING`` and ``CRUDSPEC_TYPE_CATALOG``.

    Args:
        environ: Variables to read. Defaults to ``os.environ`` after loading a ``.env`` file.
        dotenv_path: Explicit ``.env`` file; only used when ``environ`` is not given.

    Raises:
        ImproperConfigurationError: If a required variable is missing or invalid, or the type catalog is invalid.
        MissingDependencyError: If the selected dialect's driver is not installed.

    Returns:
        The loaded configuration.
    """
    if environ is None:
        load_dotenv(dotenv_path, override=False)
        environ = os.environ

    raw_dialect = _require(environ, "DB_TYPE")
    try:
        dialect = Dialect.from_value(raw_dialect)
    except UnsupportedDialectError as e:
        msg = f"DB_TYPE must be one of {', '.join(d.value for d in Dialect)}, got {raw_dialect!r}"
        raise ImproperConfigurationError(msg) from e

    database = _CONFIG_FACTORIES[dialect](environ)

    catalog_path = environ.get(TYPE_CATALOG_ENV, "").strip()
    try:
        catalog = TypeCatalog.from_file(catalog_path) if catalog_path else TypeCatalog()
        catalog.validate()
    except (ParamConfigError, UnsupportedDialectError) as e:
        msg = f"Invalid type catalog {catalog_path}: {e}"
        raise ImproperConfigurationError(msg) from e

    logger.info("Loaded %s configuration (%d configured field type(s))", dialect.value, len(catalog))
    return CrudConfig(database=database, type_catalog=catalog)
