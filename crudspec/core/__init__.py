"""crudspec core: the dialect-agnostic request pipeline.

- dialects.py: Dialect, Operation and per-dialect placeholder settings
- params.py: ordered parameter sets
- validation.py: per-operation parameter shape checks
- builder.py: SQL text and placeholder allocation
- catalog.py: dialect type vocabulary and typing decision tables
- resolver.py: typed, normalized bind values
- statement.py: QueryPlan and TypedParam
- result.py: canonical execution results
"""

from crudspec.core.builder import PlaceholderAllocator, build
from crudspec.core.catalog import FieldCategory, TypeCatalog, TypeDescriptor, TypeKind, lookup_type
from crudspec.core.dialects import DIALECT_CONFIGS, Dialect, DialectConfig, Operation, ParameterStyle, get_dialect_config
from crudspec.core.params import IDENTITY_KEY, RESERVED_CONTROL_KEYS, ParamSet
from crudspec.core.resolver import coerce_value, resolve
from crudspec.core.result import CreateResult, ExecutionResult, RawResult, ReadResult, WriteResult, normalize
from crudspec.core.statement import QueryPlan, TypedParam
from crudspec.core.validation import validate, validate_identifier

__all__ = (
    "DIALECT_CONFIGS",
    "IDENTITY_KEY",
    "RESERVED_CONTROL_KEYS",
    "CreateResult",
    "Dialect",
    "DialectConfig",
    "ExecutionResult",
    "FieldCategory",
    "Operation",
    "ParamSet",
    "ParameterStyle",
    "PlaceholderAllocator",
    "QueryPlan",
    "RawResult",
    "ReadResult",
    "TypeCatalog",
    "TypeDescriptor",
    "TypeKind",
    "TypedParam",
    "WriteResult",
    "build",
    "coerce_value",
    "get_dialect_config",
    "lookup_type",
    "normalize",
    "resolve",
    "validate",
    "validate_identifier",
)
