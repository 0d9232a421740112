import argparse
import logging
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from partsloader.config import Settings, get_settings
from partsloader.database import apply_script, build_session_factory, bulk_load_session
from partsloader.errors import ConfigurationError, PartsLoaderError
from partsloader.importer import ImportManager
from partsloader.scheduler import start_scheduler
from partsloader.schemas import ImportResult
from partsloader.tables import TableDefinition, list_tables, load_table_definitions


logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert fixed-width catalog files into bulk-load SQL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("tables", help="list the tables in the registry")

    import_parser = subparsers.add_parser("import", help="convert table files to SQL scripts")
    import_parser.add_argument(
        "--table",
        action="append",
        dest="tables",
        help="table to import (repeatable, default: all tables)",
    )
    import_parser.add_argument("--apply", action="store_true", help="also replay the scripts on DATABASE_URL")

    apply_parser = subparsers.add_parser("apply", help="replay generated SQL scripts on DATABASE_URL")
    apply_parser.add_argument("scripts", nargs="*", help="scripts to apply (default: every script in OUTPUT_DIR)")

    schedule_parser = subparsers.add_parser("schedule", help="start daily import scheduler")
    schedule_parser.add_argument("--run-now", action="store_true", help="also import once immediately")

    return parser.parse_args()


def select_tables(definitions: dict[str, TableDefinition], names: list[str] | None) -> dict[str, TableDefinition]:
    if not names:
        return definitions
    unknown = sorted(set(names) - set(definitions))
    if unknown:
        raise ConfigurationError(f"unknown table(s): {', '.join(unknown)}")
    return {name: definitions[name] for name in names}


def print_results(results: dict[str, ImportResult]) -> None:
    for name, result in results.items():
        if not result:
            print(f"table={name} files=0")
        for file_name, row_count in result.items():
            rows = "missing" if row_count is None else row_count
            print(f"table={name} file={file_name} rows={rows}")


def run_import(settings: Settings, table_names: list[str] | None, *, apply: bool) -> dict[str, ImportResult]:
    if settings.import_file and (not table_names or len(table_names) != 1):
        raise ConfigurationError("IMPORT_FILE requires exactly one --table")

    tables = select_tables(load_table_definitions(settings.tables_file), table_names)
    session_factory = build_session_factory(settings.database_url)

    if not apply:
        return ImportManager(settings, session_factory=session_factory).import_all(tables)

    with bulk_load_session(settings.database_url) as connection:

        def apply_and_commit(source_path: str, script_path: Path) -> None:
            # Sources are only renamed once their rows are committed.
            apply_script(connection, script_path)
            connection.commit()

        manager = ImportManager(settings, session_factory=session_factory, after_import=apply_and_commit)
        return manager.import_all(tables)


def run_apply(settings: Settings, scripts: list[str]) -> int:
    paths = [Path(script) for script in scripts] or sorted(Path(settings.output_dir).glob("*.sql"))
    statements = 0
    with bulk_load_session(settings.database_url) as connection:
        for path in paths:
            statements += apply_script(connection, path)
        connection.commit()
    print(f"scripts={len(paths)} statements={statements}")
    return statements


def main() -> None:
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        if args.command == "tables":
            for name in list_tables(load_table_definitions(settings.tables_file)):
                print(name)
        elif args.command == "import":
            print_results(run_import(settings, args.tables, apply=args.apply))
        elif args.command == "apply":
            run_apply(settings, args.scripts)
        elif args.command == "schedule":
            start_scheduler(settings, build_session_factory(settings.database_url), run_now=args.run_now)
    except PartsLoaderError as exc:
        logger.error("run aborted", extra={"error": str(exc)})
        print(f"error={exc}")
        raise SystemExit(1) from exc
    except SQLAlchemyError as exc:
        logger.error("database statement failed", extra={"error": str(exc)})
        # DBAPI errors carry the server message without the statement text.
        print(f"error={getattr(exc, 'orig', None) or exc}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
