from crudspec.adapters.oracledb.config import OracleAsyncConfig, OracleConnectionParams, OraclePoolParams
from crudspec.adapters.oracledb.driver import OracleAsyncDriver

__all__ = ("OracleAsyncConfig", "OracleAsyncDriver", "OracleConnectionParams", "OraclePoolParams")
