import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from partsloader.config import Settings
from partsloader.errors import PartsLoaderError
from partsloader.importer import ImportManager
from partsloader.schemas import TableImportSummary
from partsloader.tables import load_table_definitions


logger = logging.getLogger(__name__)


def _run_daily_import(settings: Settings, session_factory: sessionmaker[Session]) -> None:
    # Files imported earlier carry the .processed suffix and are not rediscovered.
    try:
        tables = load_table_definitions(settings.tables_file)
        results = ImportManager(settings, session_factory=session_factory).import_all(tables)
    except PartsLoaderError as exc:
        logger.error("scheduled import failed", extra={"error": str(exc)})
        return

    for name, result in results.items():
        summary = TableImportSummary.from_result(name, result)
        logger.info(
            "scheduled table import completed",
            extra={
                "table": summary.table_name,
                "files_imported": summary.files_imported,
                "files_missing": summary.files_missing,
                "rows_total": summary.rows_total,
            },
        )


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        _run_daily_import,
        "cron",
        args=[settings, session_factory],
        hour=settings.schedule_hour_utc,
        minute=settings.schedule_minute_utc,
        id="daily_import",
        replace_existing=True,
    )

    logger.info(
        "scheduler started",
        extra={
            "schedule_hour_utc": settings.schedule_hour_utc,
            "schedule_minute_utc": settings.schedule_minute_utc,
        },
    )

    if run_now:
        _run_daily_import(settings, session_factory)

    scheduler.start()
