"""Dialect-specific SQL construction for single-table CRUD statements.

The builder emits statement text and the ordered list of placeholder names.
Values never enter the SQL text; they are typed afterwards by the resolver and
attached to the plan in placeholder order.
"""

from collections.abc import Callable
from typing import Any, Final

from crudspec.core.dialects import Operation, ParameterStyle, get_dialect_config
from crudspec.core.params import IDENTITY_KEY, RESERVED_CONTROL_KEYS, ParamSet
from crudspec.core.statement import QueryPlan
from crudspec.core.validation import validate_identifier
from crudspec.utils.logging import get_logger

__all__ = ("PlaceholderAllocator", "build")

logger = get_logger("core.builder")


class PlaceholderAllocator:
    """Hands out placeholders for one statement in allocation order.

    Positional styles number placeholders across the whole statement, so a
    NUMERIC statement always reads ``$1, $2, ... $n`` with no index reused.
    """

    __slots__ = ("_names", "style")

    def __init__(self, style: ParameterStyle) -> None:
        self.style = style
        self._names: list[str] = []

    def __call__(self, name: str) -> str:
        self._names.append(name)
        if self.style is ParameterStyle.QMARK:
            return "?"
        if self.style is ParameterStyle.NUMERIC:
            return f"${len(self._names)}"
        if self.style is ParameterStyle.NAMED_AT:
            return f"@{name}"
        return f":{name}"

    @property
    def names(self) -> "tuple[str, ...]":
        return tuple(self._names)


def _columns(param_set: ParamSet, exclude: "frozenset[str]" = frozenset()) -> "list[str]":
    return [validate_identifier(key) for key in param_set.keys_in_order if key not in exclude]


def _build_create(table: str, param_set: ParamSet, allocate: PlaceholderAllocator) -> str:
    columns = _columns(param_set)
    placeholders = [allocate(column) for column in columns]
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(placeholders)})"


def _build_read(table: str, param_set: ParamSet, allocate: PlaceholderAllocator) -> str:
    conditions = [f"{column} = {allocate(column)}" for column in _columns(param_set)]
    if not conditions:
        return f"SELECT * FROM {table}"
    return f"SELECT * FROM {table} WHERE {' AND '.join(conditions)}"


def _build_update(table: str, param_set: ParamSet, allocate: PlaceholderAllocator) -> str:
    assignments = [f"{column} = {allocate(column)}" for column in _columns(param_set, frozenset({IDENTITY_KEY}))]
    return f"UPDATE {table} SET {', '.join(assignments)} WHERE {IDENTITY_KEY} = {allocate(IDENTITY_KEY)}"


def _build_delete(table: str, param_set: ParamSet, allocate: PlaceholderAllocator) -> str:
    ignored = [key for key in param_set.keys_in_order if key != IDENTITY_KEY]
    if ignored:
        logger.debug("DELETE on %s ignores non-identity parameter(s): %s", table, ", ".join(ignored))
    return f"DELETE FROM {table} WHERE {IDENTITY_KEY} = {allocate(IDENTITY_KEY)}"


_BUILDERS: "Final[dict[Operation, Callable[[str, ParamSet, PlaceholderAllocator], str]]]" = {
    Operation.CREATE: _build_create,
    Operation.READ: _build_read,
    Operation.UPDATE: _build_update,
    Operation.DELETE: _build_delete,
}


def build(dialect: Any, table: str, operation: Any, param_set: "ParamSet | None" = None) -> QueryPlan:
    """Build the parameterized statement for one CRUD request.

    Args:
        dialect: Target dialect, a :class:`Dialect` or its name.
        table: Table name, optionally schema-qualified.
        operation: The operation, a :class:`Operation` or its name.
        param_set: Request parameters, already validated for ``operation``.

    Raises:
        UnsupportedDialectError: If the dialect is not recognized.
        UnsupportedOperationError: If the operation is unknown or not implemented for the dialect.
        ValidationError: If the table or a column is not a plain identifier.

    Returns:
        A plan with SQL text and placeholder names; parameters are attached later by the resolver.
    """
    config = get_dialect_config(dialect)
    operation = Operation.from_value(operation)
    config.ensure_supported(operation)
    table = validate_identifier(table, kind="table")
    # Control flags steer the request and are never columns.
    params = ParamSet.from_mapping(param_set).without(RESERVED_CONTROL_KEYS)

    allocate = PlaceholderAllocator(config.parameter_style)
    sql = _BUILDERS[operation](table, params, allocate)
    if operation is not Operation.READ:
        sql += config.statement_terminator

    logger.debug("Built %s statement for %s on %s: %s", operation.value, config.dialect.value, table, sql)
    return QueryPlan(
        dialect=config.dialect,
        table=table,
        operation=operation,
        sql=sql,
        parameter_names=allocate.names,
    )
