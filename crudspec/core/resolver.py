"""Parameter resolution: attach a dialect type to every bound value and coerce it."""

import math
import uuid
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any, Final, Optional

from crudspec.core.catalog import TypeCatalog, TypeDescriptor, TypeKind, lookup_type
from crudspec.core.dialects import Dialect
from crudspec.core.params import ParamSet
from crudspec.core.statement import TypedParam
from crudspec.exceptions import UnsupportedTypeError
from crudspec.utils.logging import get_logger

__all__ = ("coerce_value", "resolve", "resolve_param")

logger = get_logger("core.resolver")

_TRUE_STRINGS: Final = frozenset({"true", "1", "yes"})
_FALSE_STRINGS: Final = frozenset({"false", "0", "no"})


def _fail(name: str, value: Any, descriptor: TypeDescriptor) -> UnsupportedTypeError:
    msg = f"Cannot bind {type(value).__name__} value as {descriptor}"
    return UnsupportedTypeError(msg, field=name)


def _coerce_text(name: str, value: Any, descriptor: TypeDescriptor) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, bool):
        raise _fail(name, value, descriptor)
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    raise _fail(name, value, descriptor)


def _coerce_identifier(name: str, value: Any, descriptor: TypeDescriptor) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, str):
        return value
    raise _fail(name, value, descriptor)


def _coerce_boolean(name: str, value: Any, descriptor: TypeDescriptor) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in {0, 1}:
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise _fail(name, value, descriptor)


def _coerce_integer(name: str, value: Any, descriptor: TypeDescriptor) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise _fail(name, value, descriptor)


def _coerce_numeric(name: str, value: Any, descriptor: TypeDescriptor) -> Any:
    if isinstance(value, bool):
        raise _fail(name, value, descriptor)
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        if value.is_finite():
            return value
    elif isinstance(value, float):
        if math.isfinite(value):
            return value
    elif isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(Decimal(text))
        except (InvalidOperation, ValueError):
            pass
        else:
            # Finite decimals beyond the float range overflow to infinity.
            if math.isfinite(number):
                return number
    raise _fail(name, value, descriptor)


_COERCERS: "Final[dict[TypeKind, Callable[[str, Any, TypeDescriptor], Any]]]" = {
    TypeKind.IDENTIFIER: _coerce_identifier,
    TypeKind.BOUNDED_TEXT: _coerce_text,
    TypeKind.TEXT: _coerce_text,
    TypeKind.BOOLEAN: _coerce_boolean,
    TypeKind.INTEGER: _coerce_integer,
    TypeKind.NUMERIC: _coerce_numeric,
}


def coerce_value(dialect: Dialect, name: str, value: Any, descriptor: TypeDescriptor) -> Any:
    """Convert ``value`` to the Python type the driver expects for ``descriptor``.

    Args:
        dialect: Target dialect.
        name: Field name, used in error messages.
        value: The raw value.
        descriptor: The resolved bind type.

    Raises:
        UnsupportedTypeError: If the value cannot be represented as the type.

    Returns:
        The coerced value. None is returned unchanged.
    """
    if value is None:
        return None
    coerced = _COERCERS[descriptor.kind](name, value, descriptor)
    if descriptor.kind is TypeKind.BOOLEAN and dialect is Dialect.MARIADB:
        return int(coerced)
    return coerced


def resolve_param(
    dialect: Dialect, name: str, value: Any, catalog: "Optional[TypeCatalog]" = None
) -> TypedParam:
    """Resolve a single field to a :class:`TypedParam`."""
    descriptor, category = lookup_type(dialect, name, value, catalog)
    if category is not None and category.lowercases_value and isinstance(value, str):
        value = value.lower()
    return TypedParam(name=name, type=descriptor, value=coerce_value(dialect, name, value, descriptor))


def resolve(dialect: Dialect, param_set: ParamSet, catalog: "Optional[TypeCatalog]" = None) -> "tuple[TypedParam, ...]":
    """Attach a dialect type to every parameter, preserving order.

    Args:
        dialect: Target dialect.
        param_set: The parameters to bind, already projected onto the statement's placeholders.
        catalog: Configured type entries, consulted before the name and value heuristics.

    Raises:
        ParamConfigError: If a configured entry is malformed.
        UnsupportedTypeError: If a value has no type mapping or cannot be coerced.

    Returns:
        One typed parameter per input key, in the input order.
    """
    dialect = Dialect.from_value(dialect)
    typed = tuple(resolve_param(dialect, name, param_set[name], catalog) for name in param_set.keys_in_order)
    if typed:
        logger.debug(
            "Resolved %d parameter(s) for %s: %s",
            len(typed),
            dialect.value,
            ", ".join(f"{param.name}:{param.type}" for param in typed),
        )
    return typed

