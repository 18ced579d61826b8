"""pymssql helpers: typed ``sp_executesql`` statements and exception mapping."""

import re
from typing import TYPE_CHECKING, Any, Final, Optional

import pymssql

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
    SQLParsingError,
    TransactionError,
    UniqueViolationError,
)

if TYPE_CHECKING:
    from crudspec.core.statement import QueryPlan, TypedParam

__all__ = ("build_statement", "declare_parameter", "raise_mssql_exception")

# text/ntext cannot be declared as variables, so unbounded text travels as NVARCHAR(MAX).
_UNBOUNDED_DECLARATION: Final[str] = "NVARCHAR(MAX)"

_ERROR_CODE_MAPPING: "Final[dict[int, tuple[type[CrudSpecError], str]]]" = {
    2627: (UniqueViolationError, "unique constraint violation"),
    2601: (UniqueViolationError, "unique constraint violation"),
    515: (NotNullViolationError, "not-null constraint violation"),
    102: (SQLParsingError, "SQL syntax error"),
    156: (SQLParsingError, "SQL syntax error"),
    207: (SQLParsingError, "SQL syntax error"),
    208: (SQLParsingError, "SQL syntax error"),
    1205: (TransactionError, "transaction error"),
    245: (DataError, "data error"),
    2628: (DataError, "data error"),
    8114: (DataError, "data error"),
    8152: (DataError, "data error"),
    8169: (DataError, "data error"),
    18456: (DatabaseConnectionError, "connection error"),
    20002: (DatabaseConnectionError, "connection error"),
    20009: (DatabaseConnectionError, "connection error"),
}
MSSQL_CONSTRAINT_CONFLICT: Final[int] = 547
_CONSTRAINT_KIND_PATTERN: "Final[re.Pattern[str]]" = re.compile(r"\b(FOREIGN KEY|REFERENCE|CHECK)\b", re.IGNORECASE)


def declare_parameter(param: "TypedParam") -> str:
    """Render the ``sp_executesql`` declaration for one parameter, ``@Name NVARCHAR(255)``."""
    descriptor = param.type
    if descriptor.kind is TypeKind.TEXT and descriptor.type_name in {"TEXT", "NTEXT"}:
        return f"@{param.name} {_UNBOUNDED_DECLARATION}"
    return f"@{param.name} {descriptor}"


def _quote_unicode_literal(text: str) -> str:
    # pymssql formats parameters with the % operator, so a literal % must be doubled.
    return "N'" + text.replace("'", "''").replace("%", "%%") + "'"


def build_statement(plan: "QueryPlan") -> "tuple[str, Optional[dict[str, Any]]]":
    """Wrap ``plan`` in ``sp_executesql`` so every bind carries its declared type.

    Returns:
        The statement text and the pymssql parameter mapping, or the bare SQL and None
        when the plan has no parameters.
    """
    if not plan.parameters:
        return plan.sql, None
    declarations = ", ".join(declare_parameter(param) for param in plan.parameters)
    assignments = ", ".join(f"@{param.name} = %({param.name})s" for param in plan.parameters)
    sql = f"EXEC sp_executesql {_quote_unicode_literal(plan.sql)}, {_quote_unicode_literal(declarations)}, {assignments}"
    return sql, plan.named_values()


def _error_code(error: Any) -> "Optional[int]":
    args = getattr(error, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    number = getattr(error, "number", None)
    return number if isinstance(number, int) else None


def _raise_mssql_error(
    error: Any, code: "Optional[int]", error_class: "type[CrudSpecError]", description: str
) -> None:
    msg = f"SQL Server {description} [{code}]: {error}" if code else f"SQL Server {description}: {error}"
    raise error_class(msg) from error


def raise_mssql_exception(error: Any) -> None:
    """Raise crudspec exceptions for pymssql errors."""
    code = _error_code(error)
    if code == MSSQL_CONSTRAINT_CONFLICT:
        match = _CONSTRAINT_KIND_PATTERN.search(str(error))
        if match and match.group(1).upper() == "CHECK":
            _raise_mssql_error(error, code, CheckViolationError, "check constraint violation")
        _raise_mssql_error(error, code, ForeignKeyViolationError, "foreign key constraint violation")

    if code is not None:
        mapping = _ERROR_CODE_MAPPING.get(code)
        if mapping:
            error_class, error_desc = mapping
            _raise_mssql_error(error, code, error_class, error_desc)

    if isinstance(error, pymssql.IntegrityError):
        _raise_mssql_error(error, code, IntegrityError, "integrity constraint violation")
    if isinstance(error, pymssql.ProgrammingError):
        _raise_mssql_error(error, code, SQLParsingError, "SQL syntax error")
    if isinstance(error, pymssql.DataError):
        _raise_mssql_error(error, code, DataError, "data error")
    if isinstance(error, (pymssql.OperationalError, pymssql.InterfaceError)):
        _raise_mssql_error(error, code, DatabaseConnectionError, "connection error")
    _raise_mssql_error(error, code, DriverError, "database error")
