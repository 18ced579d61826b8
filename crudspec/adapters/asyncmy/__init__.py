from crudspec.adapters.asyncmy.config import AsyncmyConfig, AsyncmyConnectionConfig
from crudspec.adapters.asyncmy.driver import AsyncmyDriver

__all__ = ("AsyncmyConfig", "AsyncmyConnectionConfig", "AsyncmyDriver")
