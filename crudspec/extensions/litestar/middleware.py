"""Correlation id propagation for HTTP requests."""

from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from litestar.datastructures import Headers, MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import ASGIMiddleware

from crudspec.utils.logging import correlation_context, get_logger

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

__all__ = ("CORRELATION_HEADER", "CorrelationMiddleware")

logger = get_logger("extensions.litestar.middleware")

CORRELATION_HEADER = "x-correlation-id"


class CorrelationMiddleware(ASGIMiddleware):
    """Bind a correlation id to every HTTP request.

    The id is taken from the request header when the client sent one and
    generated otherwise. Every log record emitted while the request runs
    carries it, and the response echoes it back in the same header unless
    the handler already set one.
    """

    scopes = (ScopeType.HTTP,)

    def __init__(self, header_name: str = CORRELATION_HEADER) -> None:
        self.header_name = header_name.lower()

    def _resolve_id(self, scope: "Scope") -> str:
        incoming: Optional[str] = Headers.from_scope(scope).get(self.header_name)
        return incoming or str(uuid4())

    async def handle(self, scope: "Scope", receive: "Receive", send: "Send", next_app: "ASGIApp") -> None:
        correlation_id = self._resolve_id(scope)

        async def send_with_header(message: "Message") -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableScopeHeaders.from_message(message)
                if self.header_name not in response_headers:
                    response_headers[self.header_name] = correlation_id
            await send(message)

        with correlation_context(correlation_id):
            logger.debug("Handling request %s", scope.get("path", ""))
            try:
                await next_app(scope, receive, send_with_header)
            except Exception:
                logger.exception("Request %s failed", scope.get("path", ""))
                raise
