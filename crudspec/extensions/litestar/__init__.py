from crudspec.extensions.litestar.handlers import DEFAULT_QUERY_PATH, QueryRequest
from crudspec.extensions.litestar.middleware import CorrelationMiddleware
from crudspec.extensions.litestar.plugin import CrudSpecPlugin, create_app

__all__ = ("DEFAULT_QUERY_PATH", "CorrelationMiddleware", "CrudSpecPlugin", "QueryRequest", "create_app")
