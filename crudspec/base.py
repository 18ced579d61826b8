import logging
from typing import TYPE_CHECKING, Any, Optional

from crudspec.config import CrudConfig, get_connection
from crudspec.core.builder import build
from crudspec.core.dialects import Dialect, Operation
from crudspec.core.params import ParamSet
from crudspec.core.resolver import resolve
from crudspec.core.result import normalize
from crudspec.core.validation import validate
from crudspec.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Mapping

    from crudspec.core.catalog import TypeCatalog
    from crudspec.core.result import ExecutionResult
    from crudspec.core.statement import QueryPlan

__all__ = ("CrudSpec", "prepare")

logger = get_logger("base")


def prepare(
    dialect: Any,
    table: str,
    operation: Any,
    params: "Optional[Mapping[str, Any]]" = None,
    catalog: "Optional[TypeCatalog]" = None,
) -> "QueryPlan":
    """Validate, build and resolve one request without touching a database.

    Args:
        dialect: Target dialect.
        table: Table name.
        operation: CRUD operation name.
        params: Request parameters.
        catalog: Configured type entries.

    Raises:
        ValidationError: If the parameters do not fit the operation, or an identifier is not plain.
        UnsupportedOperationError: If the operation is unknown or not implemented for the dialect.
        UnsupportedDialectError: If the dialect is not recognized.
        ParamConfigError: If a configured type entry is malformed.
        UnsupportedTypeError: If a value cannot be typed.

    Returns:
        The plan with typed parameters in placeholder order.
    """
    dialect = Dialect.from_value(dialect)
    operation = Operation.from_value(operation)
    validate(operation, params)
    param_set = ParamSet.from_mapping(params)
    plan = build(dialect, table, operation, param_set)
    typed = resolve(dialect, param_set.select(plan.parameter_names), catalog)
    return plan.with_parameters(typed)


class CrudSpec:
    """Generic CRUD pipeline bound to one configured database.

    Example:
        ```python
        spec = CrudSpec(load_config_from_env())
        result = await spec.execute("Users", "READ", {"Username": "alice"})
        ```
    """

    __slots__ = ("config",)

    def __init__(self, config: CrudConfig) -> None:
        self.config = config

    @property
    def dialect(self) -> Dialect:
        return self.config.dialect

    def prepare(self, table: str, operation: Any, params: "Optional[Mapping[str, Any]]" = None) -> "QueryPlan":
        """Build the typed plan for a request on the configured dialect."""
        return prepare(self.dialect, table, operation, params, self.config.type_catalog)

    async def execute(
        self, table: str, operation: Any, params: "Optional[Mapping[str, Any]]" = None
    ) -> "ExecutionResult":
        """Run one CRUD request end to end.

        The statement is fully built and typed before a connection is requested,
        so request errors never open a connection.

        Args:
            table: Table name.
            operation: CRUD operation name.
            params: Request parameters.

        Returns:
            The canonical result.
        """
        plan = self.prepare(table, operation, params)
        log_with_context(
            logger,
            logging.INFO,
            f"Executing {plan.operation.value} on {plan.table}",
            dialect=plan.dialect.value,
            parameter_count=len(plan.parameters),
        )
        database = self.config.database
        async with get_connection(self.dialect, database) as connection:
            raw = await database.driver_type(connection).execute(plan)
        result = normalize(plan.operation, raw)
        logger.debug("%s on %s completed: %r", plan.operation.value, plan.table, type(result).__name__)
        return result

    async def close(self) -> None:
        """Release pooled resources held by the database configuration."""
        await self.config.database.close_pool()
