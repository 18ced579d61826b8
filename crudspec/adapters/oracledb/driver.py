from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, ClassVar

import oracledb

from crudspec.adapters.oracledb.core import build_input_sizes, collect_rows, raise_oracledb_exception
from crudspec.core.dialects import Dialect, Operation
from crudspec.core.result import RawResult
from crudspec.driver import AsyncDriverAdapterBase
from crudspec.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from crudspec.core.statement import QueryPlan

__all__ = ("OracleAsyncDriver",)

logger = get_logger("adapters.oracledb")


class OracleAsyncDriver(AsyncDriverAdapterBase):
    """Asynchronous Oracle driver adapter.

    Values bind by name against ``:name`` placeholders, with each bind's type
    declared through ``setinputsizes``. Connections come from the pool and are
    released by the configuration's connection context.
    """

    __slots__ = ()

    dialect: "ClassVar[Dialect]" = Dialect.ORACLE

    async def _execute_statement(self, plan: "QueryPlan") -> RawResult:
        cursor = self.connection.cursor()
        try:
            input_sizes = build_input_sizes(plan.parameters)
            if input_sizes:
                cursor.setinputsizes(**input_sizes)
            await cursor.execute(plan.sql, plan.named_values())
            if plan.operation is Operation.READ:
                rows, column_names = await collect_rows(await cursor.fetchall(), cursor.description)
                return RawResult(rows=rows, rows_affected=len(rows), column_names=column_names)
            rows_affected = cursor.rowcount
        finally:
            cursor.close()
        await self.connection.commit()
        return RawResult(rows_affected=rows_affected if rows_affected is not None and rows_affected >= 0 else 0)

    @asynccontextmanager
    async def handle_database_exceptions(self) -> "AsyncGenerator[None, None]":
        try:
            yield
        except oracledb.Error as e:
            raise_oracledb_exception(e)
