from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
import logging
from pathlib import Path

from sqlalchemy.orm import Session, sessionmaker

from partsloader.config import Settings
from partsloader.emitter import SqlBatchEmitter
from partsloader.formatter import format_column
from partsloader.locator import FileLocator
from partsloader.reader import FixedWidthReader
from partsloader.run_store import (
    mark_run_failed,
    mark_run_succeeded,
    record_imported_file,
    record_missing_file,
    start_import_run,
)
from partsloader.schemas import ImportResult
from partsloader.tables import TableDefinition


logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".processed"
PARTIAL_SUFFIX = ".part"


class ImportManager:
    """Converts a table's fixed-width files into batched SQL scripts.

    Scripts are written to ``settings.output_dir`` and replayed separately,
    so nothing here commits to the destination database. When a session
    factory is given, every table import is also recorded in the ledger.
    ``after_import`` runs once a script is complete and before its source
    is marked processed; an error there leaves the source in place.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        locator: FileLocator | None = None,
        session_factory: sessionmaker[Session] | None = None,
        after_import: Callable[[str, Path], None] | None = None,
    ) -> None:
        self.settings = settings
        self.locator = locator or FileLocator(settings)
        self.session_factory = session_factory
        self.after_import = after_import

    def script_path(self, source_path: str | Path) -> Path:
        return Path(self.settings.output_dir) / f"{Path(source_path).name}.sql"

    def import_file(self, path: str | Path, table: TableDefinition) -> int:
        emitter = SqlBatchEmitter(table.table, table.columns, self.settings.batch_size)
        script_path = self.script_path(path)
        # Scripts only appear under their final name once complete.
        partial_path = script_path.with_name(f"{script_path.name}{PARTIAL_SUFFIX}")
        strict = self.settings.strict_input
        row_count = 0

        reader = FixedWidthReader(path, table.columns, encoding=self.settings.file_encoding, strict=strict)
        with reader:
            script_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with partial_path.open("w", encoding="utf-8") as sink:
                    rows = reader.rows()
                    raw_row = next(rows, None)
                    while raw_row is not None:
                        row_count += 1
                        values = [
                            format_column(column.type, raw_row[column_id], strict=strict)
                            for column_id, column in enumerate(table.columns)
                        ]
                        # Look ahead so the last row of the file closes its statement.
                        raw_row = next(rows, None)
                        sink.write(emitter.emit(values, has_more=raw_row is not None))
            except BaseException:
                partial_path.unlink(missing_ok=True)
                raise
            partial_path.replace(script_path)

        logger.info(
            "file converted",
            extra={"path": str(path), "table": table.table, "rows": row_count, "statements": emitter.statements},
        )
        return row_count

    def import_table(self, table: TableDefinition) -> ImportResult:
        result: ImportResult = {}

        with self._ledger() as db:
            run = start_import_run(db, table_name=table.table) if db is not None else None
            try:
                for file_name in self.locator.find_files(table):
                    try:
                        row_count = self.import_file(file_name, table)
                    except FileNotFoundError:
                        logger.warning("input file missing, skipped", extra={"path": file_name, "table": table.name})
                        result[file_name] = None
                        if run is not None:
                            record_missing_file(db, run, source_path=file_name)
                        continue

                    if self.after_import is not None:
                        self.after_import(file_name, self.script_path(file_name))

                    Path(file_name).rename(f"{file_name}{PROCESSED_SUFFIX}")
                    result[file_name] = row_count
                    if run is not None:
                        record_imported_file(
                            db,
                            run,
                            source_path=file_name,
                            script_path=str(self.script_path(file_name)),
                            row_count=row_count,
                        )
            except Exception as exc:
                if run is not None:
                    mark_run_failed(db, run, error=str(exc))
                logger.exception("table import failed", extra={"table": table.name})
                raise

            if run is not None:
                mark_run_succeeded(db, run)

        return result

    def import_all(self, tables: dict[str, TableDefinition]) -> dict[str, ImportResult]:
        return {name: self.import_table(tables[name]) for name in sorted(tables)}

    def _ledger(self) -> AbstractContextManager[Session | None]:
        if self.session_factory is None:
            return nullcontext()
        return self.session_factory()
