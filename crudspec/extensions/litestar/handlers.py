"""Request handler and exception handlers for the generic query endpoint."""

from typing import TYPE_CHECKING, Any, Final

import msgspec
from litestar import Request, Response, post
from litestar.exceptions import ValidationException
from litestar.status_codes import HTTP_200_OK, HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from crudspec.base import CrudSpec
from crudspec.exceptions import (
    CrudSpecError,
    UnsupportedDialectError,
    UnsupportedOperationError,
    UnsupportedTypeError,
    ValidationError,
)
from crudspec.utils.logging import get_logger

if TYPE_CHECKING:
    from litestar.handlers import HTTPRouteHandler

__all__ = (
    "DEFAULT_QUERY_PATH",
    "QueryRequest",
    "create_query_handler",
    "crudspec_exception_handler",
    "internal_exception_handler",
    "request_validation_exception_handler",
)

logger = get_logger("extensions.litestar.handlers")

DEFAULT_QUERY_PATH: Final[str] = "/api/query"

CLIENT_ERRORS: "Final[tuple[type[CrudSpecError], ...]]" = (
    ValidationError,
    UnsupportedOperationError,
    UnsupportedDialectError,
    UnsupportedTypeError,
)


class QueryRequest(msgspec.Struct):
    """Body of a generic query request."""

    table: str
    operation: str
    params: Any = None


def _error_response(message: str, error_type: str, status_code: int) -> "Response[dict[str, str]]":
    return Response(content={"error": message, "type": error_type}, status_code=status_code)


def crudspec_exception_handler(request: "Request[Any, Any, Any]", exc: CrudSpecError) -> "Response[dict[str, str]]":
    """Turn a pipeline error into a structured JSON error.

    Caller errors map to 400; configuration and driver errors map to 500.
    """
    if isinstance(exc, CLIENT_ERRORS):
        logger.info("Rejected request: %s", exc)
        return _error_response(str(exc), type(exc).__name__, HTTP_400_BAD_REQUEST)
    logger.error("Error executing query: %s", exc, exc_info=exc)
    return _error_response(str(exc), type(exc).__name__, HTTP_500_INTERNAL_SERVER_ERROR)


def internal_exception_handler(request: "Request[Any, Any, Any]", exc: Exception) -> "Response[dict[str, str]]":
    """Report unexpected failures in the same shape as pipeline errors."""
    logger.error("Unexpected error executing query: %s", exc, exc_info=exc)
    return _error_response(str(exc) or "Internal Server Error", type(exc).__name__, HTTP_500_INTERNAL_SERVER_ERROR)


def request_validation_exception_handler(
    request: "Request[Any, Any, Any]", exc: ValidationException
) -> "Response[dict[str, str]]":
    """Report malformed request bodies in the same shape as pipeline errors."""
    return _error_response(exc.detail, ValidationError.__name__, HTTP_400_BAD_REQUEST)


async def execute_query(data: QueryRequest, crud_spec: CrudSpec) -> "dict[str, Any]":
    """Run one generic CRUD request against the configured database."""
    result = await crud_spec.execute(data.table, data.operation, data.params)
    return result.to_dict()


def create_query_handler(path: str = DEFAULT_QUERY_PATH) -> "HTTPRouteHandler":
    """Register :func:`execute_query` as a POST route at ``path``."""
    return post(path, status_code=HTTP_200_OK, name="crudspec:query")(execute_query)
