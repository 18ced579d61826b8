from typing import TYPE_CHECKING, Any, ClassVar, Final, Optional

import asyncmy
import asyncmy.errors  # pyright: ignore
from asyncmy.cursors import DictCursor  # pyright: ignore

from crudspec.core.dialects import Dialect, Operation
from crudspec.core.result import RawResult
from crudspec.driver import AsyncDriverAdapterBase
from crudspec.exceptions import (
    CheckViolationError,
    DatabaseConnectionError,
    DataError,
    DriverError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    SQLParsingError,
    TransactionError,
    UniqueViolationError,
)
from crudspec.utils.logging import get_logger

if TYPE_CHECKING:
    from crudspec.core.statement import QueryPlan

__all__ = ("AsyncmyDriver", "AsyncmyExceptionHandler", "to_pyformat")

logger = get_logger("adapters.asyncmy")

# MariaDB error numbers grouped by the error raised for them.
_ERROR_NUMBER_GROUPS: "Final[tuple[tuple[frozenset[int], type[DriverError], str], ...]]" = (
    (frozenset({1062, 1586}), UniqueViolationError, "unique constraint violation"),
    (frozenset({1216, 1217, 1451, 1452}), ForeignKeyViolationError, "foreign key constraint violation"),
    (frozenset({1048, 1364}), NotNullViolationError, "not-null constraint violation"),
    (frozenset({3819, 4025}), CheckViolationError, "check constraint violation"),
    (frozenset({2002, 2003, 2005, 2006, 2013}), DatabaseConnectionError, "connection error"),
    (frozenset({1205, 1213}), TransactionError, "transaction error"),
    (frozenset({1054, 1146, *range(1064, 1100)}), SQLParsingError, "SQL syntax error"),
    (frozenset({1264, 1265, 1366, 1406}), DataError, "data error"),
)

_SQLSTATE_CLASSES: "Final[dict[str, tuple[type[DriverError], str]]]" = {
    "23": (IntegrityError, "integrity constraint violation"),
    "42": (SQLParsingError, "SQL syntax error"),
    "08": (DatabaseConnectionError, "connection error"),
    "40": (TransactionError, "transaction error"),
    "22": (DataError, "data error"),
}


def to_pyformat(sql: str) -> str:
    """Rewrite ``?`` placeholders into the ``%s`` style asyncmy executes.

    Identifiers are validated before they reach the statement text, so every
    ``?`` is a placeholder and no ``%`` needs escaping.
    """
    return sql.replace("?", "%s")


class AsyncmyExceptionHandler:
    """Translate asyncmy failures raised inside the block into crudspec errors.

    The MariaDB error number decides first, then the SQLSTATE class when the
    server sent one.
    """

    __slots__ = ()

    async def __aenter__(self) -> None:
        return None

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> "Optional[bool]":
        if exc_type is None:
            return None
        if issubclass(exc_type, asyncmy.errors.Error):
            self._map_mysql_exception(exc_val)
        elif issubclass(exc_type, OSError):
            self._raise(exc_val, DatabaseConnectionError, "connection error", None)
        return None

    def _map_mysql_exception(self, e: Any) -> None:
        code = e.args[0] if e.args and isinstance(e.args[0], int) else None
        if code is not None:
            for numbers, error_class, description in _ERROR_NUMBER_GROUPS:
                if code in numbers:
                    self._raise(e, error_class, description, code)
        sqlstate = getattr(e, "sqlstate", None)
        if sqlstate and sqlstate[:2] in _SQLSTATE_CLASSES:
            error_class, description = _SQLSTATE_CLASSES[sqlstate[:2]]
            self._raise(e, error_class, description, sqlstate)
        self._raise(e, DriverError, "database error", code)

    @staticmethod
    def _raise(e: Any, error_class: "type[DriverError]", description: str, code: "Optional[object]") -> None:
        label = f"MariaDB {description} [{code}]" if code else f"MariaDB {description}"
        raise error_class(f"{label}: {e}") from e


class AsyncmyDriver(AsyncDriverAdapterBase):
    """Asyncmy MariaDB/MySQL driver adapter.

    Values bind positionally in plan order. Writes are committed explicitly
    since asyncmy connections do not autocommit, and the connection is closed
    after the statement.
    """

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.MARIADB
    releases_connection: "ClassVar[bool]" = True

    def handle_database_exceptions(self) -> AsyncmyExceptionHandler:
        return AsyncmyExceptionHandler()

    async def _execute_statement(self, plan: "QueryPlan") -> RawResult:
        values = plan.values()
        async with self.connection.cursor(DictCursor) as cursor:
            await cursor.execute(to_pyformat(plan.sql), values or None)
            if plan.operation is Operation.READ:
                rows = list(await cursor.fetchall() or [])
                column_names = tuple(column[0] for column in cursor.description or ())
                return RawResult(rows=rows, rows_affected=len(rows), column_names=column_names)
            rows_affected = cursor.rowcount
        await self.connection.commit()
        return RawResult(rows_affected=rows_affected if rows_affected is not None and rows_affected >= 0 else 0)

    async def _release_connection(self) -> None:
        await self.connection.ensure_closed()
        logger.debug("Closed MariaDB connection")
