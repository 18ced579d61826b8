"""JSON serialization utilities for crudspec.

Thin wrappers over :mod:`msgspec.json` used by the structured log formatter
and the type catalog loader.
"""

from decimal import Decimal
from typing import Any, Literal, overload
from uuid import UUID

import msgspec

__all__ = ("from_json", "to_json")


def _default_encoder(value: Any) -> Any:
    """Fallback for values msgspec cannot encode natively.

    Args:
        value: Value to encode.

    Returns:
        A JSON compatible representation.
    """
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    return repr(value)


_encoder = msgspec.json.Encoder(enc_hook=_default_encoder)
_decoder = msgspec.json.Decoder()


@overload
def to_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def to_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def to_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode data to JSON string or bytes.

    Args:
        data: Data to encode.
        as_bytes: Whether to return bytes instead of string.

    Returns:
        JSON string or bytes representation based on as_bytes parameter.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def from_json(data: "str | bytes") -> Any:
    """Decode JSON string or bytes to Python object.

    Args:
        data: JSON string or bytes to decode.

    Returns:
        Decoded Python object.
    """
    return _decoder.decode(data)
