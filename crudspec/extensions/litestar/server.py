"""Serve the query endpoint with uvicorn."""

import os
from collections.abc import Mapping
from typing import Final, Optional

from dotenv import load_dotenv

from crudspec.exceptions import ImproperConfigurationError, MissingDependencyError
from crudspec.extensions.litestar.plugin import create_app

__all__ = ("DEFAULT_HOST", "DEFAULT_PORT", "resolve_port", "run")

DEFAULT_HOST: Final[str] = "0.0.0.0"  # noqa: S104
DEFAULT_PORT: Final[int] = 3100


def resolve_port(environ: "Optional[Mapping[str, str]]" = None) -> int:
    """Return the listening port from ``PORT``, or :data:`DEFAULT_PORT` when unset.

    Raises:
        ImproperConfigurationError: If ``PORT`` is not a valid TCP port.
    """
    raw = (os.environ if environ is None else environ).get("PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError as e:
        msg = f"PORT must be an integer, got {raw!r}"
        raise ImproperConfigurationError(msg) from e
    if not 0 < port < 65536:  # noqa: PLR2004
        msg = f"PORT out of range: {port}"
        raise ImproperConfigurationError(msg)
    return port


def run(host: "Optional[str]" = None, port: "Optional[int]" = None, log_level: str = "INFO") -> None:
    """Load the environment, build the application and serve it until interrupted.

    Args:
        host: Interface to bind. Defaults to ``HOST`` or all interfaces.
        port: Port to bind. Defaults to ``PORT`` or 3100.
        log_level: Level for crudspec logging.

    Raises:
        MissingDependencyError: If uvicorn is not installed.
    """
    try:
        import uvicorn
    except ImportError as e:
        raise MissingDependencyError(package="uvicorn", install_package="serve") from e

    load_dotenv(override=False)
    app = create_app(log_level=log_level)
    uvicorn.run(app, host=host or os.environ.get("HOST", DEFAULT_HOST), port=port or resolve_port())
