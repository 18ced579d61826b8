import pytest

from crudspec.core.dialects import DIALECT_CONFIGS, Dialect, Operation, ParameterStyle, get_dialect_config
from crudspec.exceptions import UnsupportedDialectError, UnsupportedOperationError


@pytest.mark.parametrize("value", ["postgres", "POSTGRES", " Postgres ", Dialect.POSTGRES])
def test_dialect_from_value_is_case_insensitive(value: object) -> None:
    assert Dialect.from_value(value) is Dialect.POSTGRES


@pytest.mark.parametrize("value", ["SQLITE", "", None, 3])
def test_unknown_dialect_raises(value: object) -> None:
    with pytest.raises(UnsupportedDialectError, match="Unsupported database type"):
        Dialect.from_value(value)


def test_unknown_operation_raises() -> None:
    assert Operation.from_value("read") is Operation.READ
    with pytest.raises(UnsupportedOperationError, match="Unsupported operation"):
        Operation.from_value("COMPARE")


@pytest.mark.parametrize(
    ("dialect", "style"),
    [
        (Dialect.MSSQL, ParameterStyle.NAMED_AT),
        (Dialect.ORACLE, ParameterStyle.NAMED_COLON),
        (Dialect.MARIADB, ParameterStyle.QMARK),
        (Dialect.POSTGRES, ParameterStyle.NUMERIC),
    ],
)
def test_parameter_style_per_dialect(dialect: Dialect, style: ParameterStyle) -> None:
    assert get_dialect_config(dialect).parameter_style is style


def test_positional_styles() -> None:
    assert ParameterStyle.QMARK.is_positional
    assert ParameterStyle.NUMERIC.is_positional
    assert not ParameterStyle.NAMED_AT.is_positional
    assert not ParameterStyle.NAMED_COLON.is_positional


def test_oracle_supports_only_read_and_update() -> None:
    config = DIALECT_CONFIGS[Dialect.ORACLE]
    assert config.supports(Operation.READ)
    assert config.supports(Operation.UPDATE)
    for operation in (Operation.CREATE, Operation.DELETE):
        with pytest.raises(UnsupportedOperationError, match=f"{operation.value} operation is not supported for ORACLE"):
            config.ensure_supported(operation)


def test_other_dialects_support_everything() -> None:
    for dialect in (Dialect.MSSQL, Dialect.MARIADB, Dialect.POSTGRES):
        config = get_dialect_config(dialect.value.lower())
        assert all(config.supports(operation) for operation in Operation)
        assert config.statement_terminator == ";"
