"""Executable statement objects produced by the query builder."""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from crudspec.core.catalog import TypeDescriptor
from crudspec.core.dialects import Dialect, Operation

__all__ = ("QueryPlan", "TypedParam")


@dataclass(frozen=True)
class TypedParam:
    """A bind value with its resolved dialect type.

    Attributes:
        name: Field name, also the placeholder name for named dialects.
        type: Resolved bind type.
        value: Normalized and coerced value. None binds as NULL.
    """

    name: str
    type: TypeDescriptor
    value: Any

    def __repr__(self) -> str:
        # Values may carry credentials; keep them out of reprs and logs.
        return f"TypedParam(name={self.name!r}, type={self.type!s})"


@dataclass(frozen=True)
class QueryPlan:
    """One parameterized statement ready for execution.

    ``parameter_names`` lists the bound fields in placeholder order. Until the
    resolver has run ``parameters`` is empty; :meth:`with_parameters` attaches
    the typed values and checks they line up with the placeholders.
    """

    dialect: Dialect
    table: str
    operation: Operation
    sql: str
    parameter_names: "tuple[str, ...]" = ()
    parameters: "tuple[TypedParam, ...]" = field(default=())

    @property
    def is_resolved(self) -> bool:
        return len(self.parameters) == len(self.parameter_names) and all(
            param.name == name for param, name in zip(self.parameters, self.parameter_names)
        )

    def with_parameters(self, parameters: "tuple[TypedParam, ...]") -> "QueryPlan":
        """Return a copy carrying ``parameters``.

        Raises:
            ValueError: If the parameter names do not match the placeholder order.
        """
        names = tuple(param.name for param in parameters)
        if names != self.parameter_names:
            msg = f"Typed parameters {names!r} do not match placeholders {self.parameter_names!r}"
            raise ValueError(msg)
        return replace(self, parameters=tuple(parameters))

    def values(self) -> "list[Any]":
        """Bind values in placeholder order."""
        return [param.value for param in self.parameters]

    def named_values(self) -> "dict[str, Any]":
        return {param.name: param.value for param in self.parameters}

    def describe_parameters(self) -> "list[dict[str, Optional[str]]]":
        """Parameter names and types for logging; values are omitted."""
        return [{"name": param.name, "type": str(param.type)} for param in self.parameters]
