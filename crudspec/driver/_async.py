"""Asynchronous driver adapter base."""

import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any, ClassVar

from crudspec.core.dialects import Dialect
from crudspec.exceptions import ImproperConfigurationError
from crudspec.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from crudspec.core.result import RawResult
    from crudspec.core.statement import QueryPlan

__all__ = ("AsyncDriverAdapterBase",)

logger = get_logger("driver")


class AsyncDriverAdapterBase(ABC):
    """Executes one resolved :class:`QueryPlan` on a live connection.

    Subclasses bind parameters using their driver's calling convention and
    translate driver exceptions through :meth:`handle_database_exceptions`.
    Drivers whose connections are not pooled set ``releases_connection`` and
    close the connection after the statement, on success and on failure.
    """

    __slots__ = ("connection",)

    dialect: "ClassVar[Dialect]"
    releases_connection: "ClassVar[bool]" = False

    def __init__(self, connection: Any) -> None:
        self.connection = connection

    async def execute(self, plan: "QueryPlan") -> "RawResult":
        """Execute ``plan`` and capture the raw driver result.

        Args:
            plan: A plan whose parameters have been resolved.

        Raises:
            ImproperConfigurationError: If the plan targets another dialect or has not been resolved.
            DriverError: If the database rejects the statement or the connection fails.

        Returns:
            The driver-agnostic raw result.
        """
        try:
            if plan.dialect is not self.dialect:
                msg = f"{type(self).__name__} cannot execute a {plan.dialect.value} statement"
                raise ImproperConfigurationError(msg)
            if not plan.is_resolved:
                msg = "Statement parameters must be resolved before execution"
                raise ImproperConfigurationError(msg)

            log_with_context(
                logger,
                logging.DEBUG,
                "Executing statement",
                dialect=self.dialect.value,
                operation=plan.operation.value,
                sql=plan.sql,
                parameters=plan.describe_parameters(),
            )
            async with self.handle_database_exceptions():
                return await self._execute_statement(plan)
        finally:
            if self.releases_connection:
                await self._release_connection()

    @abstractmethod
    def handle_database_exceptions(self) -> "AbstractAsyncContextManager[None]":
        """Return a context manager that maps driver exceptions to :class:`DriverError` subclasses."""

    @abstractmethod
    async def _execute_statement(self, plan: "QueryPlan") -> "RawResult":
        """Run exactly one statement for ``plan``."""

    async def _release_connection(self) -> None:
        """Close the connection; only called when ``releases_connection`` is set."""
