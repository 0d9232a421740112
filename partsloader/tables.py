"""Declarative table layouts for the fixed-width catalog files.

Layouts live in a YAML registry next to the deployment::

    tables:
      "001":
        table: data_suppliers
        reference: true
        columns:
          - {name: supplier_id, type: smallint, start: 0, width: 4}
          - {name: brand, type: string, start: 4, width: 20}

``start`` is a 0-based byte offset into the line.
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from partsloader.errors import ConfigurationError


INTEGER_TYPES = frozenset({"integer", "smallint", "bigint"})
COLUMN_TYPES = frozenset({"boolean", "date", "string"}) | INTEGER_TYPES


@dataclass(frozen=True)
class ColumnDefinition:
    name: str
    type: str
    start: int
    width: int

    @property
    def end(self) -> int:
        return self.start + self.width


@dataclass(frozen=True)
class TableDefinition:
    name: str
    table: str
    columns: tuple[ColumnDefinition, ...]
    reference: bool = False
    supplier: bool = False


def _parse_column(table_name: str, raw: dict[str, object]) -> ColumnDefinition:
    try:
        column = ColumnDefinition(
            name=str(raw["name"]),
            type=str(raw.get("type", "string")),
            start=int(raw["start"]),
            width=int(raw["width"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"table '{table_name}': invalid column definition {raw!r}") from exc

    if column.type not in COLUMN_TYPES:
        raise ConfigurationError(f"table '{table_name}': unknown type '{column.type}' for column '{column.name}'")
    if column.start < 0 or column.width <= 0:
        raise ConfigurationError(f"table '{table_name}': column '{column.name}' has an invalid byte range")
    return column


def parse_table_definition(name: str, raw: dict[str, object]) -> TableDefinition:
    columns = tuple(_parse_column(name, column) for column in raw.get("columns") or [])
    if not columns:
        raise ConfigurationError(f"table '{name}' declares no columns")

    definition = TableDefinition(
        name=name,
        table=str(raw.get("table") or name),
        columns=columns,
        reference=bool(raw.get("reference", False)),
        supplier=bool(raw.get("supplier", False)),
    )
    if not (definition.reference or definition.supplier):
        raise ConfigurationError(f"table '{name}' has neither reference nor supplier files")
    return definition


def load_table_definitions(path: str | Path) -> dict[str, TableDefinition]:
    registry_path = Path(path)
    if not registry_path.exists():
        raise ConfigurationError(f"table registry not found: {registry_path}")

    raw = yaml.safe_load(registry_path.read_text(encoding="utf-8")) or {}
    tables = raw.get("tables") or {}
    if not isinstance(tables, dict):
        raise ConfigurationError(f"{registry_path}: 'tables' must be a mapping")

    # YAML keys like 001 arrive as ints unless quoted.
    return {str(name): parse_table_definition(str(name), cfg or {}) for name, cfg in tables.items()}


def list_tables(definitions: dict[str, TableDefinition]) -> list[str]:
    return sorted(definitions)
