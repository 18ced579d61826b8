"""Dialect and operation registry.

Components:
- Dialect: the closed set of supported database engines
- Operation: the closed set of CRUD operations
- ParameterStyle: placeholder syntax used by each dialect
- DialectConfig: per-dialect placeholder style, operation support and terminator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

from crudspec.exceptions import UnsupportedDialectError, UnsupportedOperationError

__all__ = (
    "DIALECT_CONFIGS",
    "Dialect",
    "DialectConfig",
    "Operation",
    "ParameterStyle",
    "get_dialect_config",
)


class Dialect(str, Enum):
    """Supported database engines."""

    MSSQL = "MSSQL"
    ORACLE = "ORACLE"
    MARIADB = "MARIADB"
    POSTGRES = "POSTGRES"

    @classmethod
    def from_value(cls, value: Any) -> "Dialect":
        """Parse a dialect name case-insensitively.

        Args:
            value: A :class:`Dialect` or its name.

        Raises:
            UnsupportedDialectError: If the value does not name a supported dialect.

        Returns:
            The matching dialect.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        msg = f"Unsupported database type: {value!r}"
        raise UnsupportedDialectError(msg)


class Operation(str, Enum):
    """Supported CRUD operations."""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @classmethod
    def from_value(cls, value: Any) -> "Operation":
        """Parse an operation name case-insensitively.

        Raises:
            UnsupportedOperationError: If the value does not name a supported operation.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        msg = f"Unsupported operation: {value!r}"
        raise UnsupportedOperationError(msg)


class ParameterStyle(str, Enum):
    """Parameter style enumeration.

    Supported parameter styles:
    - QMARK: ? placeholders
    - NUMERIC: $1, $2 placeholders
    - NAMED_AT: @name placeholders
    - NAMED_COLON: :name placeholders
    """

    QMARK = "qmark"
    NUMERIC = "numeric"
    NAMED_AT = "named_at"
    NAMED_COLON = "named_colon"

    @property
    def is_positional(self) -> bool:
        """Whether values bind by statement position rather than by name."""
        return self in {ParameterStyle.QMARK, ParameterStyle.NUMERIC}


@dataclass(frozen=True)
class DialectConfig:
    """Static SQL-generation settings for one dialect.

    Attributes:
        dialect: The dialect these settings describe.
        parameter_style: Placeholder syntax emitted by the query builder.
        supported_operations: Operations this system implements for the dialect.
        statement_terminator: Appended to INSERT/UPDATE/DELETE statements.
    """

    dialect: Dialect
    parameter_style: ParameterStyle
    supported_operations: "frozenset[Operation]"
    statement_terminator: str = ";"

    def supports(self, operation: Operation) -> bool:
        return operation in self.supported_operations

    def ensure_supported(self, operation: Operation) -> None:
        """Raise when ``operation`` is not implemented for this dialect.

        Raises:
            UnsupportedOperationError: If the operation is not supported.
        """
        if not self.supports(operation):
            msg = f"{operation.value} operation is not supported for {self.dialect.value} in this implementation."
            raise UnsupportedOperationError(msg)


_ALL_OPERATIONS: Final = frozenset(Operation)

DIALECT_CONFIGS: "Final[dict[Dialect, DialectConfig]]" = {
    Dialect.MSSQL: DialectConfig(
        dialect=Dialect.MSSQL, parameter_style=ParameterStyle.NAMED_AT, supported_operations=_ALL_OPERATIONS
    ),
    # oracledb rejects a trailing semicolon on single statements.
    Dialect.ORACLE: DialectConfig(
        dialect=Dialect.ORACLE,
        parameter_style=ParameterStyle.NAMED_COLON,
        supported_operations=frozenset({Operation.READ, Operation.UPDATE}),
        statement_terminator="",
    ),
    Dialect.MARIADB: DialectConfig(
        dialect=Dialect.MARIADB, parameter_style=ParameterStyle.QMARK, supported_operations=_ALL_OPERATIONS
    ),
    Dialect.POSTGRES: DialectConfig(
        dialect=Dialect.POSTGRES, parameter_style=ParameterStyle.NUMERIC, supported_operations=_ALL_OPERATIONS
    ),
}


def get_dialect_config(dialect: Any) -> DialectConfig:
    """Look up the settings for ``dialect``.

    Raises:
        UnsupportedDialectError: If the dialect is not recognized.
    """
    return DIALECT_CONFIGS[Dialect.from_value(dialect)]
