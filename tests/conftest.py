from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

import pytest

from partsloader.config import Settings
from partsloader.database import build_session_factory
from partsloader.importer import ImportManager
from partsloader.tables import ColumnDefinition, TableDefinition


PART_COLUMNS = (
    ColumnDefinition(name="part_code", type="string", start=0, width=6),
    ColumnDefinition(name="quantity", type="integer", start=6, width=4),
    ColumnDefinition(name="valid_from", type="date", start=10, width=8),
)


def part_line(code: str, quantity: str, valid_from: str) -> str:
    return f"{code:<6}{quantity:>4}{valid_from:<8}"


def write_fixed_width(path: Path, lines: Iterable[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="latin-1", newline="") as outfile:
        for line in lines:
            outfile.write(line)
            outfile.write("\r\n")
    return path


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "data" / "reference").mkdir(parents=True, exist_ok=True)
    (tmp_path / "data" / "supplier").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def test_settings(temp_workspace: Path) -> Settings:
    return Settings(
        app_name="partsloader",
        database_url=f"sqlite:///{temp_workspace / 'test.db'}",
        log_level="INFO",
        reference_dir=str(temp_workspace / "data" / "reference"),
        supplier_dir=str(temp_workspace / "data" / "supplier"),
        output_dir=str(temp_workspace / "sql"),
        tables_file=str(temp_workspace / "tables.yaml"),
        import_file=None,
        batch_size=5000,
        strict_input=False,
        file_encoding="latin-1",
        schedule_hour_utc=3,
        schedule_minute_utc=0,
    )


@pytest.fixture()
def strict_settings(test_settings: Settings) -> Settings:
    return replace(test_settings, strict_input=True)


@pytest.fixture()
def parts_table() -> TableDefinition:
    return TableDefinition(name="400", table="parts", columns=PART_COLUMNS, reference=True, supplier=True)


@pytest.fixture()
def manager(test_settings: Settings) -> ImportManager:
    return ImportManager(test_settings)


@pytest.fixture()
def ledger_manager(test_settings: Settings) -> ImportManager:
    session_factory = build_session_factory(test_settings.database_url)
    return ImportManager(test_settings, session_factory=session_factory)
