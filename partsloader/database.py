from collections.abc import Iterator
from contextlib import contextmanager
import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from partsloader.db_models import Base
from partsloader.errors import ScriptError


logger = logging.getLogger(__name__)

MYSQL_DIALECTS = frozenset({"mysql", "mariadb"})
BULK_LOAD_STATEMENTS = (
    "SET autocommit=0",
    "SET unique_checks=0",
    "SET foreign_key_checks=0",
)


def build_session_factory(database_url: str) -> sessionmaker[Session]:
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, future=True, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def tune_connection(connection: Connection) -> None:
    """Switch a connection to bulk-load mode.

    The session variables stay set until the connection is closed, so only
    call this on a connection dedicated to one import session.
    """
    if connection.dialect.name not in MYSQL_DIALECTS:
        return

    for statement in BULK_LOAD_STATEMENTS:
        connection.exec_driver_sql(statement)
    logger.info("connection tuned for bulk load", extra={"dialect": connection.dialect.name})


@contextmanager
def bulk_load_session(database_url: str) -> Iterator[Connection]:
    # NullPool: the tuned connection is closed on exit instead of going back to a pool.
    engine = create_engine(database_url, future=True, echo=False, poolclass=NullPool)
    try:
        with engine.connect() as connection:
            tune_connection(connection)
            yield connection
    finally:
        engine.dispose()


def iter_statements(script_path: str | Path) -> Iterator[str]:
    pending: list[str] = []
    with Path(script_path).open("r", encoding="utf-8") as script:
        for line in script:
            line = line.rstrip("\n")
            if not line.strip():
                continue
            pending.append(line)
            if line.endswith(";"):
                yield "\n".join(pending)
                pending = []

    if pending:
        raise ScriptError(f"unterminated statement at end of {script_path}")


def apply_script(connection: Connection, script_path: str | Path) -> int:
    """Replay a generated script on ``connection``; the caller commits."""
    count = 0
    for statement in iter_statements(script_path):
        # Literal values may contain '%', so skip driver-side interpolation.
        connection.exec_driver_sql(statement, execution_options={"no_parameters": True})
        count += 1
    logger.info("script applied", extra={"script": str(script_path), "statements": count})
    return count
