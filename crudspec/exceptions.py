from typing import Any, Optional

__all__ = (
    "CheckViolationError",
    "CrudSpecError",
    "DataError",
    "DatabaseConnectionError",
    "DriverError",
    "ForeignKeyViolationError",
    "ImproperConfigurationError",
    "IntegrityError",
    "MissingDependencyError",
    "NotNullViolationError",
    "OperationalError",
    "ParamConfigError",
    "SQLParsingError",
    "TransactionError",
    "UniqueViolationError",
    "UnsupportedDialectError",
    "UnsupportedOperationError",
    "UnsupportedTypeError",
    "ValidationError",
)


class CrudSpecError(Exception):
    """Base exception class from which all crudspec exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``CrudSpecError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(CrudSpecError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install crudspec[{install_package or package}]' to install crudspec with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(CrudSpecError):
    """Improper Configuration error.

    Raised when process configuration (environment, connection settings, type catalog files) cannot be loaded.
    """


# -- Request errors --
class ValidationError(CrudSpecError):
    """The parameter set does not satisfy the shape required by the operation."""

    operation: Optional[str]

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(detail=message)
        self.operation = operation


class UnsupportedOperationError(CrudSpecError):
    """The operation is unknown, or not implemented for the active dialect."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Unsupported operation"
        super().__init__(message)


class UnsupportedDialectError(CrudSpecError):
    """The dialect is not one of the recognized database types."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Unsupported database type"
        super().__init__(message)


# -- Parameter typing errors --
class ParamConfigError(CrudSpecError):
    """A parameter's type configuration is missing required attributes or is malformed."""

    field: Optional[str]

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        detail_message = message
        if field:
            detail_message = f"{message} (Field: {field})"
        super().__init__(detail=detail_message)
        self.field = field


class UnsupportedTypeError(CrudSpecError):
    """A parameter value cannot be mapped to, or coerced into, a bind type."""

    field: Optional[str]

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        detail_message = message
        if field:
            detail_message = f"{message} (Field: {field})"
        super().__init__(detail=detail_message)
        self.field = field


# -- Driver errors --
class DriverError(CrudSpecError):
    """Base class for failures raised by the underlying database driver."""


class DatabaseConnectionError(DriverError):
    """A connection could not be established or was lost."""


class SQLParsingError(DriverError):
    """The engine rejected the statement text."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing SQL statement."
        super().__init__(message)


class IntegrityError(DriverError):
    """Data integrity error."""


class UniqueViolationError(IntegrityError):
    """A unique or primary key constraint was violated."""


class ForeignKeyViolationError(IntegrityError):
    """A foreign key constraint was violated."""


class NotNullViolationError(IntegrityError):
    """A not-null constraint was violated."""


class CheckViolationError(IntegrityError):
    """A check constraint was violated."""


class TransactionError(DriverError):
    """Deadlock, serialization failure, or other transaction-level failure."""


class DataError(DriverError):
    """The engine rejected a bound value (bad format, out of range, truncation)."""


class OperationalError(DriverError):
    """Resource or operational failure reported by the engine."""
