from pathlib import Path

import pytest

from partsloader.errors import ConfigurationError
from partsloader.tables import ColumnDefinition, list_tables, load_table_definitions


REPO_ROOT = Path(__file__).resolve().parents[1]


def test_sample_registry_loads() -> None:
    tables = load_table_definitions(REPO_ROOT / "tables.yaml")

    assert list_tables(tables) == ["001", "200", "203"]
    suppliers = tables["001"]
    assert suppliers.table == "data_suppliers"
    assert suppliers.reference is True
    assert suppliers.supplier is False
    assert suppliers.columns[0] == ColumnDefinition(name="supplier_id", type="smallint", start=0, width=4)


def test_table_name_defaults_to_file_key(tmp_path: Path) -> None:
    registry = tmp_path / "tables.yaml"
    registry.write_text(
        'tables:\n  "320":\n    supplier: true\n    columns:\n      - {name: code, start: 0, width: 3}\n',
        encoding="utf-8",
    )

    table = load_table_definitions(registry)["320"]

    assert table.table == "320"
    assert table.columns[0].type == "string"


@pytest.mark.parametrize(
    "column",
    [
        "{name: code, type: float, start: 0, width: 3}",
        "{name: code, type: string, start: -1, width: 3}",
        "{name: code, type: string, start: 0, width: 0}",
        "{name: code, type: string, width: 3}",
    ],
)
def test_invalid_columns_are_rejected(tmp_path: Path, column: str) -> None:
    registry = tmp_path / "tables.yaml"
    registry.write_text(f'tables:\n  "320":\n    reference: true\n    columns:\n      - {column}\n', encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_table_definitions(registry)


def test_table_without_sources_is_rejected(tmp_path: Path) -> None:
    registry = tmp_path / "tables.yaml"
    registry.write_text('tables:\n  "320":\n    columns:\n      - {name: code, start: 0, width: 3}\n', encoding="utf-8")

    with pytest.raises(ConfigurationError, match="neither reference nor supplier"):
        load_table_definitions(registry)


def test_missing_registry_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_table_definitions(tmp_path / "nope.yaml")
