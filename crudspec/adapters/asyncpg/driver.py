from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, ClassVar

import asyncpg

from crudspec.adapters.asyncpg.core import collect_rows, parse_status, raise_exception
from crudspec.core.dialects import Dialect, Operation
from crudspec.core.result import RawResult
from crudspec.driver import AsyncDriverAdapterBase
from crudspec.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from crudspec.core.statement import QueryPlan

__all__ = ("AsyncpgDriver",)

logger = get_logger("adapters.asyncpg")


class AsyncpgDriver(AsyncDriverAdapterBase):
    """AsyncPG PostgreSQL driver adapter.

    Values bind positionally in plan order against ``$1..$n`` placeholders.
    The connection is closed after the statement.
    """

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.POSTGRES
    releases_connection: "ClassVar[bool]" = True

    async def _execute_statement(self, plan: "QueryPlan") -> RawResult:
        values = plan.values()
        if plan.operation is Operation.READ:
            records = await self.connection.fetch(plan.sql, *values)
            rows, column_names = collect_rows(records)
            return RawResult(rows=rows, rows_affected=len(rows), column_names=column_names)

        status = await self.connection.execute(plan.sql, *values)
        return RawResult(rows_affected=parse_status(status) if isinstance(status, str) else 0)

    @asynccontextmanager
    async def handle_database_exceptions(self) -> "AsyncGenerator[None, None]":
        try:
            yield
        except (asyncpg.exceptions.PostgresError, asyncpg.exceptions.InterfaceError, OSError) as e:
            raise_exception(e)

    async def _release_connection(self) -> None:
        if not self.connection.is_closed():
            await self.connection.close()
            logger.debug("Closed PostgreSQL connection")
