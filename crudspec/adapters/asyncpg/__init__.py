from crudspec.adapters.asyncpg.config import AsyncpgConfig, AsyncpgConnectionConfig
from crudspec.adapters.asyncpg.driver import AsyncpgDriver

__all__ = ("AsyncpgConfig", "AsyncpgConnectionConfig", "AsyncpgDriver")
