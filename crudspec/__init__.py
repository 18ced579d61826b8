"""crudspec: one generic CRUD endpoint over MSSQL, Oracle, MariaDB and PostgreSQL."""

from crudspec import base, config, core, driver, exceptions, utils
from crudspec.__metadata__ import __version__
from crudspec.base import CrudSpec, prepare
from crudspec.config import CrudConfig, get_connection, load_config_from_env
from crudspec.core import (
    CreateResult,
    Dialect,
    ExecutionResult,
    Operation,
    ParamSet,
    QueryPlan,
    ReadResult,
    TypeCatalog,
    TypedParam,
    WriteResult,
    build,
    normalize,
    resolve,
    validate,
)
from crudspec.exceptions import (
    CrudSpecError,
    DriverError,
    ParamConfigError,
    UnsupportedDialectError,
    UnsupportedOperationError,
    UnsupportedTypeError,
    ValidationError,
)

__all__ = (
    "CreateResult",
    "CrudConfig",
    "CrudSpec",
    "CrudSpecError",
    "Dialect",
    "DriverError",
    "ExecutionResult",
    "Operation",
    "ParamConfigError",
    "ParamSet",
    "QueryPlan",
    "ReadResult",
    "TypeCatalog",
    "TypedParam",
    "UnsupportedDialectError",
    "UnsupportedOperationError",
    "UnsupportedTypeError",
    "ValidationError",
    "WriteResult",
    "__version__",
    "base",
    "build",
    "config",
    "core",
    "driver",
    "exceptions",
    "get_connection",
    "load_config_from_env",
    "normalize",
    "prepare",
    "resolve",
    "utils",
    "validate",
)
