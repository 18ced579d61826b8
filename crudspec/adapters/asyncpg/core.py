"""AsyncPG helpers: command status parsing, row collection and SQLSTATE mapping."""

import re
from typing import Any, Final, Optional

import asyncpg

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

__all__ = ("collect_rows", "parse_status", "raise_exception")

# "INSERT 0 1", "UPDATE 3", "DELETE 2": the row count is the last number.
COMMAND_STATUS_PATTERN: "Final[re.Pattern[str]]" = re.compile(r"^[A-Z]+(?:\s+\d+)?\s+(\d+)$", re.IGNORECASE)

_SQLSTATE_MAPPING: "Final[dict[str, tuple[type[CrudSpecError], str]]]" = {
    "23505": (UniqueViolationError, "unique constraint violation"),
    "23503": (ForeignKeyViolationError, "foreign key constraint violation"),
    "23502": (NotNullViolationError, "not-null constraint violation"),
    "23514": (CheckViolationError, "check constraint violation"),
}

_SQLSTATE_CLASS_MAPPING: "Final[tuple[tuple[tuple[str, ...], type[CrudSpecError], str], ...]]" = (
    (("23",), IntegrityError, "integrity constraint violation"),
    (("42",), SQLParsingError, "SQL syntax error"),
    (("08",), DatabaseConnectionError, "connection error"),
    (("40",), TransactionError, "transaction error"),
    (("22",), DataError, "data error"),
    (("53", "54", "55", "57", "58"), OperationalError, "operational error"),
)


def parse_status(status: "Optional[str]") -> int:
    """Return the row count from an asyncpg command status, or 0 when there is none."""
    if not status:
        return 0
    match = COMMAND_STATUS_PATTERN.match(status.strip())
    return int(match.group(1)) if match else 0


def collect_rows(records: "Optional[list[Any]]") -> "tuple[list[dict[str, Any]], tuple[str, ...]]":
    """Convert ``asyncpg.Record`` objects to dictionaries plus the column names."""
    if not records:
        return [], ()
    return [dict(record) for record in records], tuple(records[0].keys())


def _raise(error: Any, sqlstate: "Optional[str]", error_class: "type[CrudSpecError]", description: str) -> None:
    msg = f"PostgreSQL {description} [{sqlstate}]: {error}" if sqlstate else f"PostgreSQL {description}: {error}"
    raise error_class(msg) from error


def raise_exception(error: Any) -> None:
    """Re-raise an asyncpg failure as the matching :class:`DriverError`.

    Server errors are classified by SQLSTATE, exact code first and then class.
    Client-side connection failures carry no SQLSTATE.
    """
    if isinstance(error, (asyncpg.exceptions.ConnectionDoesNotExistError, OSError)):
        _raise(error, None, DatabaseConnectionError, "connection error")

    sqlstate = getattr(error, "sqlstate", None)
    if not sqlstate:
        _raise(error, None, DriverError, "database error")
        return

    if sqlstate in _SQLSTATE_MAPPING:
        error_class, description = _SQLSTATE_MAPPING[sqlstate]
        _raise(error, sqlstate, error_class, description)
    for prefixes, error_class, description in _SQLSTATE_CLASS_MAPPING:
        if sqlstate.startswith(prefixes):
            _raise(error, sqlstate, error_class, description)
    _raise(error, sqlstate, DriverError, "database error")
