from crudspec.adapters.mssql.config import MssqlConfig, MssqlConnectionConfig
from crudspec.adapters.mssql.driver import MssqlDriver

__all__ = ("MssqlConfig", "MssqlConnectionConfig", "MssqlDriver")
