"""OracleDB helpers: bind sizes, row collection and exception mapping."""

from typing import TYPE_CHECKING, Any, Final, Optional

import oracledb

from crudspec.core.catalog import TypeKind
from crudspec.exceptions import (
    CheckViolationError,
    CrudSpecError,
    DatabaseConnectionError,
    DataError,
    DriverError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    OperationalError,
    SQLParsingError,
    TransactionError,
    UniqueViolationError,
)

if TYPE_CHECKING:
    from crudspec.core.statement import TypedParam

__all__ = ("build_input_sizes", "collect_rows", "raise_oracledb_exception")

# ORA codes grouped by the error raised for them.
_ERROR_GROUPS: "Final[tuple[tuple[frozenset[int], type[CrudSpecError], str], ...]]" = (
    (frozenset({1}), UniqueViolationError, "unique constraint violation"),
    (frozenset({2291, 2292}), ForeignKeyViolationError, "foreign key constraint violation"),
    (frozenset({2290}), CheckViolationError, "check constraint violation"),
    (frozenset({1400, 1407}), NotNullViolationError, "not-null constraint violation"),
    (frozenset({1017, 12154, 12505, 12514, 12541, 12545}), DatabaseConnectionError, "connection error"),
    (frozenset({60, 8176}), TransactionError, "transaction error"),
    (frozenset({1722, 1840, 1858, 12899}), DataError, "data error"),
    (frozenset({1652}), OperationalError, "operational error"),
)

# Half-open code ranges checked after the exact groups.
_ERROR_RANGES: "Final[tuple[tuple[range, type[CrudSpecError], str], ...]]" = (
    (range(2200, 2300), IntegrityError, "integrity constraint violation"),
    (range(900, 1000), SQLParsingError, "SQL syntax error"),
)

# Declared bind type per type name; bounded text binds by maximum length instead.
_DB_TYPES: "Final[dict[str, Any]]" = {
    "CLOB": oracledb.DB_TYPE_CLOB,
    "NCLOB": oracledb.DB_TYPE_NCLOB,
    "BOOLEAN": oracledb.DB_TYPE_BOOLEAN,
    "NUMBER": oracledb.DB_TYPE_NUMBER,
    "BINARY_DOUBLE": oracledb.DB_TYPE_BINARY_DOUBLE,
    "BINARY_FLOAT": oracledb.DB_TYPE_BINARY_FLOAT,
}


def build_input_sizes(parameters: "tuple[TypedParam, ...]") -> "dict[str, Any]":
    """Map each parameter name to the ``setinputsizes`` declaration for its type.

    Bounded text declares its maximum length, which oracledb treats as a
    string bind of that size.
    """
    sizes: dict[str, Any] = {}
    for param in parameters:
        descriptor = param.type
        if descriptor.kind is TypeKind.BOUNDED_TEXT and isinstance(descriptor.length, int):
            sizes[param.name] = descriptor.length
        elif descriptor.type_name in _DB_TYPES:
            sizes[param.name] = _DB_TYPES[descriptor.type_name]
    return sizes


async def _read_value(value: Any) -> Any:
    if isinstance(value, oracledb.AsyncLOB):
        return await value.read()
    return value


async def collect_rows(
    fetched: "Optional[list[Any]]", description: "Optional[list[Any]]"
) -> "tuple[list[dict[str, Any]], tuple[str, ...]]":
    """Build dictionary rows from tuples, reading LOB values."""
    column_names = tuple(column[0] for column in description or ())
    if not fetched:
        return [], column_names
    rows: list[dict[str, Any]] = []
    for row in fetched:
        values = [await _read_value(value) for value in row]
        rows.append(dict(zip(column_names, values)))
    return rows, column_names


def _classify(code: int) -> "tuple[type[CrudSpecError], str]":
    for codes, error_class, description in _ERROR_GROUPS:
        if code in codes:
            return error_class, description
    for code_range, error_class, description in _ERROR_RANGES:
        if code in code_range:
            return error_class, description
    return DriverError, "database error"


def raise_oracledb_exception(error: Any) -> None:
    """Re-raise an oracledb failure as the matching :class:`DriverError`.

    The ORA code comes from the ``_Error`` object oracledb passes as the first
    exception argument.
    """
    error_obj = error.args[0] if getattr(error, "args", None) else None
    code = getattr(error_obj, "code", None)
    if not code:
        raise DriverError(f"Oracle database error: {error}") from error
    error_class, description = _classify(code)
    raise error_class(f"Oracle {description} [ORA-{code:05d}]: {error}") from error
