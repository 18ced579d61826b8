"""Parameter shape validation per operation.

Runs before any SQL is built or any connection is requested.
"""

import re
from collections.abc import Mapping
from typing import Any, Callable, Final

from crudspec.core.dialects import Operation
from crudspec.core.params import IDENTITY_KEY, RESERVED_CONTROL_KEYS
from crudspec.exceptions import ValidationError

__all__ = ("validate", "validate_identifier")

COLUMN_PATTERN: "Final[re.Pattern[str]]" = re.compile(r"^[A-Za-z_][A-Za-z0-9_$#]*$")
TABLE_PATTERN: "Final[re.Pattern[str]]" = re.compile(r"^[A-Za-z_][A-Za-z0-9_$#]*(?:\.[A-Za-z_][A-Za-z0-9_$#]*)?$")
"""Plain identifier, optionally qualified with a schema (``dbo.Users``)."""


def _has_identity(params: "Mapping[str, Any]") -> bool:
    return params.get(IDENTITY_KEY) is not None


def _data_fields(params: "Mapping[str, Any]", exclude: "frozenset[str]" = frozenset()) -> "list[str]":
    return [key for key in params if key not in RESERVED_CONTROL_KEYS and key not in exclude]


def _validate_create(params: Any) -> None:
    if not isinstance(params, Mapping) or not _data_fields(params):
        msg = (
            "Missing or invalid parameters for CREATE operation. "
            "Please provide a non-empty object with necessary fields."
        )
        raise ValidationError(msg, operation=Operation.CREATE.value)


def _validate_read(params: Any) -> None:
    if params is not None and not isinstance(params, Mapping):
        msg = "Invalid parameters for READ operation. Please provide an object of field filters."
        raise ValidationError(msg, operation=Operation.READ.value)


def _validate_update(params: Any) -> None:
    if (
        not isinstance(params, Mapping)
        or not _has_identity(params)
        or not _data_fields(params, frozenset({IDENTITY_KEY}))
    ):
        msg = (
            f"Missing or invalid parameters for UPDATE operation. "
            f'Please provide an object with "{IDENTITY_KEY}" field and at least one other field to update.'
        )
        raise ValidationError(msg, operation=Operation.UPDATE.value)


def _validate_delete(params: Any) -> None:
    if not isinstance(params, Mapping) or not _has_identity(params):
        msg = f'Missing or invalid parameters for DELETE operation. Please provide an object with "{IDENTITY_KEY}" field.'
        raise ValidationError(msg, operation=Operation.DELETE.value)


_VALIDATORS: "Final[dict[Operation, Callable[[Any], None]]]" = {
    Operation.CREATE: _validate_create,
    Operation.READ: _validate_read,
    Operation.UPDATE: _validate_update,
    Operation.DELETE: _validate_delete,
}


def validate(operation: Operation, params: Any) -> None:
    """Check the shape of ``params`` for ``operation``.

    Args:
        operation: The requested operation.
        params: The raw parameters, a mapping or None.

    Raises:
        ValidationError: If the parameters violate the operation's invariant.
    """
    _VALIDATORS[Operation.from_value(operation)](params)


def validate_identifier(name: Any, kind: str = "column") -> str:
    """Ensure ``name`` is a plain SQL identifier that is safe to splice into statement text.

    Args:
        name: The table or column name.
        kind: ``"table"`` accepts a schema-qualified name; anything else must be a bare identifier.

    Raises:
        ValidationError: If the name is not a plain identifier.

    Returns:
        The name, unchanged.
    """
    pattern = TABLE_PATTERN if kind == "table" else COLUMN_PATTERN
    if not isinstance(name, str) or not pattern.match(name):
        msg = f"Invalid {kind} name: {name!r}"
        raise ValidationError(msg)
    return name
