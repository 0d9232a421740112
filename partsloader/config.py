from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    reference_dir: str
    supplier_dir: str
    output_dir: str
    tables_file: str
    import_file: str | None
    batch_size: int
    strict_input: bool
    file_encoding: str
    schedule_hour_utc: int
    schedule_minute_utc: int


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "partsloader"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./partsloader.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        reference_dir=os.getenv("REFERENCE_DIR", "./data/reference"),
        supplier_dir=os.getenv("SUPPLIER_DIR", "./data/supplier"),
        output_dir=os.getenv("OUTPUT_DIR", "./sql"),
        tables_file=os.getenv("TABLES_FILE", "./tables.yaml"),
        # Debug escape hatch: a single file replaces all discovery.
        import_file=os.getenv("IMPORT_FILE") or None,
        batch_size=int(os.getenv("BATCH_SIZE", "5000")),
        strict_input=_env_flag("STRICT_INPUT", "false"),
        file_encoding=os.getenv("FILE_ENCODING", "latin-1"),
        schedule_hour_utc=int(os.getenv("SCHEDULE_HOUR_UTC", "3")),
        schedule_minute_utc=int(os.getenv("SCHEDULE_MINUTE_UTC", "0")),
    )
