from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, ClassVar

import pymssql

from crudspec.adapters.mssql.core import build_statement, raise_mssql_exception
from crudspec.core.dialects import Dialect, Operation
from crudspec.core.result import RawResult
from crudspec.driver import AsyncDriverAdapterBase
from crudspec.utils.sync_tools import async_

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from crudspec.core.statement import QueryPlan

__all__ = ("MssqlDriver",)


class MssqlDriver(AsyncDriverAdapterBase):
    """pymssql SQL Server driver adapter.

    pymssql is blocking, so each call runs in a worker thread. Values bind by
    name through ``sp_executesql``.
    """

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.MSSQL

    def _run(self, plan: "QueryPlan") -> RawResult:
        sql, parameters = build_statement(plan)
        cursor = self.connection.cursor(as_dict=True)
        try:
            if parameters is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, parameters)
            if plan.operation is Operation.READ:
                rows: list[dict[str, Any]] = list(cursor.fetchall() or [])
                column_names = tuple(column[0] for column in cursor.description or ())
                return RawResult(rows=rows, rows_affected=len(rows), column_names=column_names)
            rows_affected = cursor.rowcount
        finally:
            cursor.close()
        self.connection.commit()
        return RawResult(rows_affected=rows_affected if rows_affected is not None and rows_affected >= 0 else 0)

    async def _execute_statement(self, plan: "QueryPlan") -> RawResult:
        return await async_(self._run)(plan)

    @asynccontextmanager
    async def handle_database_exceptions(self) -> "AsyncGenerator[None, None]":
        try:
            yield
        except pymssql.Error as e:
            raise_mssql_exception(e)
