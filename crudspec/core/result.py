"""Canonical execution results.

Drivers return a :class:`RawResult`; :func:`normalize` turns it into the
operation's canonical result, whose ``to_dict`` form is what the request
boundary sends back to callers.
"""

from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Optional

from mypy_extensions import mypyc_attr

from crudspec.core.dialects import Operation

__all__ = ("CreateResult", "ExecutionResult", "RawResult", "ReadResult", "WriteResult", "normalize")


class RawResult(NamedTuple):
    """Driver-agnostic capture of one statement execution.

    Attributes:
        rows: Rows as dictionaries keyed by column name, or None when the statement returned no result set.
        rows_affected: Row count reported by the driver, or None when it reports nothing.
        column_names: Column names of the result set, in order.
    """

    rows: "Optional[list[dict[str, Any]]]" = None
    rows_affected: "Optional[int]" = None
    column_names: "tuple[str, ...]" = ()


@mypyc_attr(allow_interpreted_subclasses=True)
class ExecutionResult(ABC):
    """Base class for canonical results."""

    __slots__ = ()

    @abstractmethod
    def to_dict(self) -> "dict[str, Any]":
        """Return the JSON-ready representation."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExecutionResult) or type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self.to_dict())))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"


class ReadResult(ExecutionResult):
    """Rows returned by a READ. Never None; an unmatched filter yields an empty list."""

    __slots__ = ("rows",)

    def __init__(self, rows: "Optional[list[dict[str, Any]]]" = None) -> None:
        self.rows: list[dict[str, Any]] = list(rows) if rows else []

    def __len__(self) -> int:
        return len(self.rows)

    def to_dict(self) -> "dict[str, Any]":
        return {"rows": self.rows}


class WriteResult(ExecutionResult):
    """Outcome of an UPDATE or DELETE."""

    __slots__ = ("affected_rows",)

    def __init__(self, affected_rows: int = 0) -> None:
        self.affected_rows = affected_rows

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> "dict[str, Any]":
        return {"success": True, "affectedRows": self.affected_rows}


class CreateResult(ExecutionResult):
    """Outcome of a CREATE; no row count is surfaced."""

    __slots__ = ()

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> "dict[str, Any]":
        return {"success": True}


def normalize(operation: Any, raw: RawResult) -> ExecutionResult:
    """Map a raw driver result to the canonical result for ``operation``.

    Args:
        operation: The executed operation.
        raw: What the driver captured.

    Returns:
        :class:`ReadResult` for READ, :class:`WriteResult` for UPDATE and DELETE, :class:`CreateResult` for CREATE.
    """
    operation = Operation.from_value(operation)
    if operation is Operation.READ:
        return ReadResult(raw.rows)
    if operation is Operation.CREATE:
        return CreateResult()
    return WriteResult(raw.rows_affected if raw.rows_affected is not None and raw.rows_affected >= 0 else 0)
