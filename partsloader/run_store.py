from sqlalchemy.orm import Session

from partsloader.db_models import ImportedFile, ImportRun, utc_now


def start_import_run(db: Session, *, table_name: str) -> ImportRun:
    run = ImportRun(table_name=table_name, status="running", started_at=utc_now())
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def record_imported_file(db: Session, run: ImportRun, *, source_path: str, script_path: str, row_count: int) -> None:
    db.add(
        ImportedFile(
            run_id=run.id,
            source_path=source_path,
            script_path=script_path,
            row_count=row_count,
            status="imported",
        )
    )
    run.files_total += 1
    run.rows_total += row_count
    db.commit()


def record_missing_file(db: Session, run: ImportRun, *, source_path: str) -> None:
    db.add(ImportedFile(run_id=run.id, source_path=source_path, row_count=None, status="missing"))
    run.files_total += 1
    run.files_missing += 1
    db.commit()


def mark_run_succeeded(db: Session, run: ImportRun) -> None:
    run.status = "succeeded"
    run.completed_at = utc_now()
    run.error = None
    db.commit()


def mark_run_failed(db: Session, run: ImportRun, *, error: str) -> None:
    # A failed file may leave the session mid-transaction.
    db.rollback()
    run.status = "failed"
    run.error = error
    run.completed_at = utc_now()
    db.commit()

