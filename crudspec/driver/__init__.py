"""Driver adapter base classes."""

from crudspec.driver._async import AsyncDriverAdapterBase

__all__ = ("AsyncDriverAdapterBase",)
