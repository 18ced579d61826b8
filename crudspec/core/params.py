"""Ordered parameter sets for CRUD requests."""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Final

from mypy_extensions import mypyc_attr

from crudspec.exceptions import ValidationError

__all__ = ("IDENTITY_KEY", "RESERVED_CONTROL_KEYS", "ParamSet")

IDENTITY_KEY: Final[str] = "ID"
"""Primary key column used by UPDATE and DELETE."""

RESERVED_CONTROL_KEYS: "Final[frozenset[str]]" = frozenset({"partialMatch"})
"""Request flags that travel with the parameters but never become columns or binds."""


@mypyc_attr(allow_interpreted_subclasses=False)
class ParamSet(Mapping[str, Any]):
    """Ordered name to value mapping for a single request.

    The key order is stored explicitly and drives column order in INSERT
    statements and placeholder order for positional dialects.
    """

    __slots__ = ("_keys", "_values")

    def __init__(self, items: "Iterable[tuple[str, Any]]" = ()) -> None:
        keys: list[str] = []
        values: dict[str, Any] = {}
        for key, value in items:
            if not isinstance(key, str):
                msg = f"Parameter names must be strings, got {type(key).__name__}"
                raise ValidationError(msg)
            if key not in values:
                keys.append(key)
            values[key] = value
        self._keys: tuple[str, ...] = tuple(keys)
        self._values = values

    @classmethod
    def from_mapping(cls, params: "Mapping[str, Any] | None") -> "ParamSet":
        """Build a parameter set preserving the mapping's iteration order.

        Args:
            params: Mapping of field names to raw values, or None for an empty set.

        Raises:
            ValidationError: If ``params`` is not a mapping or has non-string keys.

        Returns:
            The parameter set.
        """
        if params is None:
            return cls()
        if isinstance(params, ParamSet):
            return params
        if not isinstance(params, Mapping):
            msg = f"Parameters must be an object, got {type(params).__name__}"
            raise ValidationError(msg)
        return cls(params.items())

    @property
    def keys_in_order(self) -> "tuple[str, ...]":
        return self._keys

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> "Iterator[str]":
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __repr__(self) -> str:
        pairs = ", ".join(f"{key}={self._values[key]!r}" for key in self._keys)
        return f"ParamSet({pairs})"

    def select(self, names: "Iterable[str]") -> "ParamSet":
        """Project the set onto ``names``, in the order given.

        Raises:
            KeyError: If a name is not present.
        """
        return ParamSet((name, self._values[name]) for name in names)

    def without(self, names: "Iterable[str]") -> "ParamSet":
        """Return a copy without ``names``, keeping the remaining order."""
        excluded = set(names)
        return ParamSet((key, self._values[key]) for key in self._keys if key not in excluded)

    def to_dict(self) -> "dict[str, Any]":
        return {key: self._values[key] for key in self._keys}
