"""Batched ``INSERT IGNORE`` script generation.

Each row becomes one line. The first row of a batch carries the statement
prefix, the last row of a batch (or of the file) closes it with ``;``.
"""

from collections.abc import Sequence
import re

from pymysql.converters import escape_string
from sqlalchemy.dialects import mysql

from partsloader.errors import ConfigurationError
from partsloader.tables import INTEGER_TYPES, ColumnDefinition


DEFAULT_BATCH_SIZE = 5000

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")
_PREPARER = mysql.dialect().identifier_preparer


def batch_flags(row_index: int, batch_size: int, *, has_more: bool) -> tuple[bool, bool]:
    is_first = row_index % batch_size == 1
    is_last = row_index % batch_size == 0 or not has_more
    return is_first, is_last


def _integer_literal(value: str | None) -> str:
    if value is None:
        return "NULL"
    match = _LEADING_INT.match(value)
    number = int(match.group(1)) if match else 0
    # Zero and negative ids mean "no value" in the catalog data.
    return str(number) if number > 0 else "NULL"


def _string_literal(value: str | None) -> str:
    if value is None:
        return "NULL"
    return f"'{escape_string(value)}'"


def render_value(column_type: str, value: str | None) -> str:
    if column_type in INTEGER_TYPES:
        return _integer_literal(value)
    return _string_literal(value)


def render_prefix(table: str, columns: Sequence[ColumnDefinition]) -> str:
    column_list = ", ".join(_PREPARER.quote_identifier(column.name) for column in columns)
    return f"INSERT IGNORE INTO {_PREPARER.quote(table)} ({column_list}) VALUES "


def render_row(
    table: str,
    columns: Sequence[ColumnDefinition],
    values: Sequence[str | None],
    *,
    is_first: bool,
    is_last: bool,
) -> str:
    literals = ", ".join(render_value(column.type, value) for column, value in zip(columns, values))
    prefix = render_prefix(table, columns) if is_first else ""
    terminator = ";" if is_last else ","
    return f"{prefix} ({literals}){terminator}\n"


class SqlBatchEmitter:
    def __init__(self, table: str, columns: Sequence[ColumnDefinition], batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 2:
            raise ConfigurationError(f"batch size must be at least 2, got {batch_size}")
        self.table = table
        self.columns = list(columns)
        self.batch_size = batch_size
        self.row_index = 0
        self.rows_since_flush = 0
        self.statements = 0

    def emit(self, values: Sequence[str | None], *, has_more: bool) -> str:
        self.row_index += 1
        is_first, is_last = batch_flags(self.row_index, self.batch_size, has_more=has_more)
        if is_first:
            self.statements += 1

        self.rows_since_flush += 1
        if is_last:
            self.rows_since_flush = 0

        return render_row(self.table, self.columns, values, is_first=is_first, is_last=is_last)
