from __future__ import annotations

from pathlib import Path

import pytest

from crudspec.core.catalog import TypeCatalog

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def empty_catalog() -> TypeCatalog:
    return TypeCatalog()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "types.json"
    path.write_text(
        '{"POSTGRES": {"Age": {"type": "INTEGER"}, "Nickname": {"type": "VARCHAR", "length": 30}},'
        ' "MSSQL": {"Notes": {"type": "NVARCHAR", "length": "MAX"}}}'
    )
    return path
