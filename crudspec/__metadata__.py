"""Metadata for the project."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ("__project__", "__version__")

try:
    __version__ = version("crudspec")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
__project__ = "crudspec"
