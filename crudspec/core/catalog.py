"""Dialect type catalog.

Maps a field to a dialect-native bind type through three decision tables,
consulted in order:

1. Configured entries (``{dialect: {field: {"type": ..., "length": ...}}}``)
2. Field name heuristics (:data:`FIELD_NAME_RULES`)
3. Runtime value type (:data:`VALUE_TYPE_RULES`)

The per-dialect vocabulary (:data:`DIALECT_TYPES`) defines which type names
are valid for a dialect and which :class:`TypeKind` each belongs to. The kind
drives value coercion in the resolver.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Final, Optional, Union

import msgspec

from crudspec.core.dialects import Dialect
from crudspec.exceptions import ImproperConfigurationError, ParamConfigError, UnsupportedTypeError
from crudspec.utils.logging import get_logger
from crudspec.utils.serializers import from_json

__all__ = (
    "CATEGORY_TYPES",
    "DIALECT_TYPES",
    "FIELD_NAME_RULES",
    "UNBOUNDED_LENGTH",
    "VALUE_TYPE_RULES",
    "FieldCategory",
    "TypeCatalog",
    "TypeDescriptor",
    "TypeKind",
    "category_for_name",
    "category_for_value",
    "lookup_type",
)

logger = get_logger("core.catalog")

UNBOUNDED_LENGTH: Final[str] = "MAX"
"""Length marker for SQL Server's ``NVARCHAR(MAX)`` family."""


class TypeKind(str, Enum):
    """Value family of a bind type; selects the coercion applied to values."""

    IDENTIFIER = "identifier"
    BOUNDED_TEXT = "bounded_text"
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMERIC = "numeric"


@dataclass(frozen=True)
class TypeDescriptor:
    """Dialect-native bind type plus its length attribute.

    Attributes:
        type_name: Upper-case native type name (``NVARCHAR``, ``UUID``, ``CLOB`` ...).
        kind: Value family of the type.
        length: Maximum length for bounded text types, ``"MAX"`` for SQL Server's unbounded variants.
    """

    type_name: str
    kind: TypeKind
    length: "Optional[Union[int, str]]" = None

    def __str__(self) -> str:
        if self.length is None:
            return self.type_name
        return f"{self.type_name}({self.length})"

    @property
    def is_bounded(self) -> bool:
        return self.kind is TypeKind.BOUNDED_TEXT and isinstance(self.length, int)


# Type name -> kind, per dialect. Names are matched upper-case.
DIALECT_TYPES: "Final[dict[Dialect, dict[str, TypeKind]]]" = {
    Dialect.MSSQL: {
        "UNIQUEIDENTIFIER": TypeKind.IDENTIFIER,
        "NVARCHAR": TypeKind.BOUNDED_TEXT,
        "VARCHAR": TypeKind.BOUNDED_TEXT,
        "NCHAR": TypeKind.BOUNDED_TEXT,
        "CHAR": TypeKind.BOUNDED_TEXT,
        "TEXT": TypeKind.TEXT,
        "NTEXT": TypeKind.TEXT,
        "BIT": TypeKind.BOOLEAN,
        "TINYINT": TypeKind.INTEGER,
        "SMALLINT": TypeKind.INTEGER,
        "INT": TypeKind.INTEGER,
        "BIGINT": TypeKind.INTEGER,
        "DECIMAL": TypeKind.NUMERIC,
        "NUMERIC": TypeKind.NUMERIC,
        "FLOAT": TypeKind.NUMERIC,
        "REAL": TypeKind.NUMERIC,
    },
    Dialect.ORACLE: {
        "VARCHAR2": TypeKind.BOUNDED_TEXT,
        "NVARCHAR2": TypeKind.BOUNDED_TEXT,
        "CHAR": TypeKind.BOUNDED_TEXT,
        "NCHAR": TypeKind.BOUNDED_TEXT,
        "CLOB": TypeKind.TEXT,
        "NCLOB": TypeKind.TEXT,
        "BOOLEAN": TypeKind.BOOLEAN,
        "NUMBER": TypeKind.NUMERIC,
        "BINARY_DOUBLE": TypeKind.NUMERIC,
        "BINARY_FLOAT": TypeKind.NUMERIC,
    },
    Dialect.MARIADB: {
        "UUID": TypeKind.IDENTIFIER,
        "CHAR": TypeKind.BOUNDED_TEXT,
        "VARCHAR": TypeKind.BOUNDED_TEXT,
        "TEXT": TypeKind.TEXT,
        "MEDIUMTEXT": TypeKind.TEXT,
        "LONGTEXT": TypeKind.TEXT,
        "BOOLEAN": TypeKind.BOOLEAN,
        "TINYINT": TypeKind.INTEGER,
        "SMALLINT": TypeKind.INTEGER,
        "INT": TypeKind.INTEGER,
        "BIGINT": TypeKind.INTEGER,
        "DECIMAL": TypeKind.NUMERIC,
        "DOUBLE": TypeKind.NUMERIC,
        "FLOAT": TypeKind.NUMERIC,
    },
    Dialect.POSTGRES: {
        "UUID": TypeKind.IDENTIFIER,
        "VARCHAR": TypeKind.BOUNDED_TEXT,
        "CHAR": TypeKind.BOUNDED_TEXT,
        "TEXT": TypeKind.TEXT,
        "BOOLEAN": TypeKind.BOOLEAN,
        "SMALLINT": TypeKind.INTEGER,
        "INTEGER": TypeKind.INTEGER,
        "INT": TypeKind.INTEGER,
        "BIGINT": TypeKind.INTEGER,
        "NUMERIC": TypeKind.NUMERIC,
        "REAL": TypeKind.NUMERIC,
        "DOUBLE PRECISION": TypeKind.NUMERIC,
    },
}


class FieldCategory(str, Enum):
    """Semantic family of a field, decided from its name or runtime value."""

    IDENTITY = "identity"
    LABEL = "label"
    LOGIN_NAME = "login_name"
    SHORT_LABEL = "short_label"
    LONG_TEXT = "long_text"
    FLAG = "flag"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DEFAULT_TEXT = "default_text"

    @property
    def lowercases_value(self) -> bool:
        """Login names are stored lower-case regardless of how the caller spelled them."""
        return self is FieldCategory.LOGIN_NAME


FIELD_NAME_RULES: "Final[tuple[tuple[frozenset[str], FieldCategory], ...]]" = (
    (frozenset({"ID"}), FieldCategory.IDENTITY),
    (
        frozenset(
            {"Name", "Description", "Building", "Owner", "Role", "Location", "Route", "Email", "DisplayName", "Team"}
        ),
        FieldCategory.LABEL,
    ),
    (frozenset({"Username", "AuthenticatedUsername"}), FieldCategory.LOGIN_NAME),
    (frozenset({"UITheme", "UITHeme"}), FieldCategory.SHORT_LABEL),
    (frozenset({"Bio", "PasswordHash", "Image", "AvatarURL"}), FieldCategory.LONG_TEXT),
    (frozenset({"SQL_USER"}), FieldCategory.FLAG),
)
"""Field name heuristics, first match wins."""

# bool precedes int: bool is a subclass of int.
VALUE_TYPE_RULES: "Final[tuple[tuple[tuple[type, ...], FieldCategory], ...]]" = (
    ((bool,), FieldCategory.FLAG),
    ((int,), FieldCategory.INTEGER),
    ((float,), FieldCategory.DECIMAL),
    ((str, type(None)), FieldCategory.DEFAULT_TEXT),
)
"""Runtime value type fallback, first match wins."""


def _t(type_name: str, kind: TypeKind, length: "Optional[Union[int, str]]" = None) -> TypeDescriptor:
    return TypeDescriptor(type_name=type_name, kind=kind, length=length)


CATEGORY_TYPES: "Final[dict[Dialect, dict[FieldCategory, TypeDescriptor]]]" = {
    Dialect.MSSQL: {
        FieldCategory.IDENTITY: _t("UNIQUEIDENTIFIER", TypeKind.IDENTIFIER),
        FieldCategory.LABEL: _t("NVARCHAR", TypeKind.BOUNDED_TEXT, 255),
        FieldCategory.LOGIN_NAME: _t("NVARCHAR", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.SHORT_LABEL: _t("NVARCHAR", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.LONG_TEXT: _t("TEXT", TypeKind.TEXT),
        FieldCategory.FLAG: _t("BIT", TypeKind.BOOLEAN),
        FieldCategory.INTEGER: _t("INT", TypeKind.INTEGER),
        FieldCategory.DECIMAL: _t("FLOAT", TypeKind.NUMERIC),
        FieldCategory.DEFAULT_TEXT: _t("NVARCHAR", TypeKind.BOUNDED_TEXT, 255),
    },
    Dialect.ORACLE: {
        FieldCategory.IDENTITY: _t("VARCHAR2", TypeKind.BOUNDED_TEXT, 36),
        FieldCategory.LABEL: _t("VARCHAR2", TypeKind.BOUNDED_TEXT, 255),
        FieldCategory.LOGIN_NAME: _t("VARCHAR2", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.SHORT_LABEL: _t("VARCHAR2", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.LONG_TEXT: _t("CLOB", TypeKind.TEXT),
        FieldCategory.FLAG: _t("BOOLEAN", TypeKind.BOOLEAN),
        FieldCategory.INTEGER: _t("NUMBER", TypeKind.NUMERIC),
        FieldCategory.DECIMAL: _t("NUMBER", TypeKind.NUMERIC),
        FieldCategory.DEFAULT_TEXT: _t("VARCHAR2", TypeKind.BOUNDED_TEXT, 255),
    },
    Dialect.MARIADB: {
        FieldCategory.IDENTITY: _t("CHAR", TypeKind.BOUNDED_TEXT, 36),
        FieldCategory.LABEL: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 255),
        FieldCategory.LOGIN_NAME: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.SHORT_LABEL: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.LONG_TEXT: _t("TEXT", TypeKind.TEXT),
        FieldCategory.FLAG: _t("BOOLEAN", TypeKind.BOOLEAN),
        FieldCategory.INTEGER: _t("INT", TypeKind.INTEGER),
        FieldCategory.DECIMAL: _t("DOUBLE", TypeKind.NUMERIC),
        FieldCategory.DEFAULT_TEXT: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 255),
    },
    Dialect.POSTGRES: {
        FieldCategory.IDENTITY: _t("UUID", TypeKind.IDENTIFIER),
        FieldCategory.LABEL: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 255),
        FieldCategory.LOGIN_NAME: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.SHORT_LABEL: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 50),
        FieldCategory.LONG_TEXT: _t("TEXT", TypeKind.TEXT),
        FieldCategory.FLAG: _t("BOOLEAN", TypeKind.BOOLEAN),
        FieldCategory.INTEGER: _t("INTEGER", TypeKind.INTEGER),
        FieldCategory.DECIMAL: _t("DOUBLE PRECISION", TypeKind.NUMERIC),
        FieldCategory.DEFAULT_TEXT: _t("VARCHAR", TypeKind.BOUNDED_TEXT, 255),
    },
}
"""Bind type per field category, per dialect."""


def category_for_name(name: str) -> "Optional[FieldCategory]":
    for names, category in FIELD_NAME_RULES:
        if name in names:
            return category
    return None


def category_for_value(name: str, value: Any) -> FieldCategory:
    """Pick a category from the runtime type of ``value``.

    Raises:
        UnsupportedTypeError: If no rule matches the value's type.
    """
    for value_types, category in VALUE_TYPE_RULES:
        if isinstance(value, value_types):
            return category
    msg = f"Unsupported parameter value type {type(value).__name__}"
    raise UnsupportedTypeError(msg, field=name)


def _parse_entry(dialect: Dialect, field: str, entry: Any) -> TypeDescriptor:
    """Turn one configured catalog entry into a descriptor.

    Raises:
        ParamConfigError: If the entry is malformed, names an unknown type, or lacks a required length.
    """
    if not isinstance(entry, Mapping):
        msg = f"Type configuration for {dialect.value} must be an object with a 'type' key"
        raise ParamConfigError(msg, field=field)

    raw_type = entry.get("type")
    if not isinstance(raw_type, str) or not raw_type.strip():
        msg = f"Type configuration for {dialect.value} is missing 'type'"
        raise ParamConfigError(msg, field=field)

    type_name = " ".join(raw_type.upper().split())
    kind = DIALECT_TYPES[dialect].get(type_name)
    if kind is None:
        msg = f"Unknown {dialect.value} type {raw_type!r}"
        raise ParamConfigError(msg, field=field)

    length = entry.get("length", entry.get("size"))
    if kind is not TypeKind.BOUNDED_TEXT:
        return TypeDescriptor(type_name=type_name, kind=kind)

    if length is None:
        msg = f"{type_name} requires an explicit length"
        raise ParamConfigError(msg, field=field)
    if isinstance(length, str) and length.strip().upper() == UNBOUNDED_LENGTH and dialect is Dialect.MSSQL:
        return TypeDescriptor(type_name=type_name, kind=TypeKind.TEXT, length=UNBOUNDED_LENGTH)
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        msg = f"{type_name} length must be a positive integer, got {length!r}"
        raise ParamConfigError(msg, field=field)
    return TypeDescriptor(type_name=type_name, kind=kind, length=length)


class TypeCatalog:
    """Configured per-dialect, per-field type entries.

    Read-only after construction; shared by all requests.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: "Optional[Mapping[Any, Mapping[str, Any]]]" = None) -> None:
        normalized: dict[Dialect, dict[str, Any]] = {}
        for dialect_key, fields in (entries or {}).items():
            dialect = Dialect.from_value(dialect_key)
            if not isinstance(fields, Mapping):
                msg = f"Type catalog section for {dialect.value} must be an object"
                raise ParamConfigError(msg)
            normalized.setdefault(dialect, {}).update(fields)
        self._entries = normalized

    @classmethod
    def from_file(cls, path: "Union[str, Path]") -> "TypeCatalog":
        """Load a catalog from a JSON file.

        Raises:
            ImproperConfigurationError: If the file cannot be read or is not a JSON object.
        """
        file_path = Path(path)
        try:
            data = from_json(file_path.read_bytes())
        except OSError as e:
            msg = f"Cannot read type catalog {file_path}: {e}"
            raise ImproperConfigurationError(msg) from e
        except msgspec.DecodeError as e:
            msg = f"Type catalog {file_path} is not valid JSON: {e}"
            raise ImproperConfigurationError(msg) from e
        if not isinstance(data, dict):
            msg = f"Type catalog {file_path} must contain a JSON object"
            raise ImproperConfigurationError(msg)
        catalog = cls(data)
        logger.debug("Loaded type catalog from %s", file_path)
        return catalog

    def lookup(self, dialect: Dialect, field: str) -> "Optional[TypeDescriptor]":
        """Return the configured type for ``field``, or None when it is not configured.

        Raises:
            ParamConfigError: If the configured entry is invalid.
        """
        entry = self._entries.get(dialect, {}).get(field)
        if entry is None:
            return None
        return _parse_entry(dialect, field, entry)

    def validate(self) -> None:
        """Parse every entry eagerly.

        Raises:
            ParamConfigError: On the first invalid entry.
        """
        for dialect, fields in self._entries.items():
            for field, entry in fields.items():
                _parse_entry(dialect, field, entry)

    def __len__(self) -> int:
        return sum(len(fields) for fields in self._entries.values())

    def __repr__(self) -> str:
        sections = ", ".join(f"{dialect.value}={len(fields)}" for dialect, fields in self._entries.items())
        return f"TypeCatalog({sections})"


def lookup_type(
    dialect: Dialect, name: str, value: Any, catalog: "Optional[TypeCatalog]" = None
) -> "tuple[TypeDescriptor, Optional[FieldCategory]]":
    """Resolve the bind type of one field.

    Args:
        dialect: Target dialect.
        name: Field name.
        value: Raw value, used only when no configured entry or name rule applies.
        catalog: Configured entries.

    Raises:
        ParamConfigError: If a configured entry is invalid.
        UnsupportedTypeError: If the value type has no mapping.

    Returns:
        The descriptor, and the name-based category when one matched.
    """
    name_category = category_for_name(name)
    if catalog is not None:
        configured = catalog.lookup(dialect, name)
        if configured is not None:
            return configured, name_category
    if name_category is not None:
        return CATEGORY_TYPES[dialect][name_category], name_category
    return CATEGORY_TYPES[dialect][category_for_value(name, value)], None
