from typing import TYPE_CHECKING, Optional, Union

from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.di import Provide
from litestar.exceptions import ValidationException
from litestar.plugins import InitPluginProtocol
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from crudspec.base import CrudSpec
from crudspec.config import CrudConfig, load_config_from_env
from crudspec.exceptions import CrudSpecError
from crudspec.extensions.litestar.handlers import (
    DEFAULT_QUERY_PATH,
    create_query_handler,
    crudspec_exception_handler,
    internal_exception_handler,
    request_validation_exception_handler,
)
from crudspec.extensions.litestar.middleware import CorrelationMiddleware
from crudspec.utils.logging import configure_logging, get_logger

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

__all__ = ("DEFAULT_DEPENDENCY_KEY", "CrudSpecPlugin", "create_app")

logger = get_logger("extensions.litestar")

DEFAULT_DEPENDENCY_KEY = "crud_spec"


class CrudSpecPlugin(InitPluginProtocol):
    """Exposes the CRUD pipeline as ``POST /api/query``."""

    __slots__ = ("_crud_spec", "cors_config", "enable_correlation_middleware", "path")

    def __init__(
        self,
        config: "Union[CrudConfig, CrudSpec]",
        *,
        path: str = DEFAULT_QUERY_PATH,
        enable_correlation_middleware: bool = True,
        cors_config: "Union[CORSConfig, bool]" = True,
    ) -> None:
        """Initialize ``CrudSpecPlugin``.

        Args:
            config: Deployment configuration, or an already built pipeline.
            path: Route of the query endpoint.
            enable_correlation_middleware: Add :class:`CorrelationMiddleware` to the application.
            cors_config: CORS settings for the application. ``True`` allows every origin,
                ``False`` leaves CORS off. An application that already has a CORS config keeps it.
        """
        self._crud_spec = config if isinstance(config, CrudSpec) else CrudSpec(config)
        self.path = path
        self.enable_correlation_middleware = enable_correlation_middleware
        self.cors_config: Optional[CORSConfig] = (
            cors_config if isinstance(cors_config, CORSConfig) else (CORSConfig() if cors_config else None)
        )

    @property
    def crud_spec(self) -> CrudSpec:
        return self._crud_spec

    def provide_crud_spec(self) -> CrudSpec:
        return self._crud_spec

    async def on_shutdown(self) -> None:
        await self._crud_spec.close()
        logger.debug("Closed database resources")

    def on_app_init(self, app_config: "AppConfig") -> "AppConfig":
        """Configure application for use with crudspec.

        Args:
            app_config: The :class:`AppConfig <.config.app.AppConfig>` instance.

        Returns:
            The updated :class:`AppConfig <.config.app.AppConfig>` instance.
        """
        logger.info("Initializing crudspec plugin for %s at %s", self._crud_spec.dialect.value, self.path)

        app_config.route_handlers.append(create_query_handler(self.path))
        app_config.dependencies[DEFAULT_DEPENDENCY_KEY] = Provide(self.provide_crud_spec, sync_to_thread=False)
        app_config.exception_handlers[CrudSpecError] = crudspec_exception_handler
        app_config.exception_handlers[ValidationException] = request_validation_exception_handler
        app_config.exception_handlers[HTTP_500_INTERNAL_SERVER_ERROR] = internal_exception_handler
        app_config.signature_types.append(CrudSpec)
        app_config.on_shutdown.append(self.on_shutdown)
        if self.cors_config is not None and app_config.cors_config is None:
            app_config.cors_config = self.cors_config

        if self.enable_correlation_middleware and not any(
            isinstance(middleware, CorrelationMiddleware) for middleware in app_config.middleware
        ):
            app_config.middleware.append(CorrelationMiddleware())
        return app_config


def create_app(
    config: "Optional[CrudConfig]" = None,
    *,
    debug: bool = False,
    log_level: "Optional[str]" = None,
    cors_config: "Union[CORSConfig, bool]" = True,
) -> Litestar:
    """Build the Litestar application serving the query endpoint.

    Args:
        config: Deployment configuration. Loaded from the environment when omitted.
        debug: Litestar debug mode.
        log_level: Configure crudspec logging at this level when given.
        cors_config: Passed to :class:`CrudSpecPlugin`; every origin is allowed by default.

    Returns:
        The application.
    """
    if log_level is not None:
        configure_logging(level=log_level)
    return Litestar(plugins=[CrudSpecPlugin(config or load_config_from_env(), cors_config=cors_config)], debug=debug)
