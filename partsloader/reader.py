from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import BinaryIO

from partsloader.errors import MalformedInputError
from partsloader.tables import ColumnDefinition


RawRow = dict[int, str]


class FixedWidthReader:
    """Streams one fixed-width file as raw column slices.

    Slicing works on bytes so multi-byte characters never shift the columns
    that follow them. Lines shorter than the layout give truncated or empty
    slices unless ``strict`` is set.
    """

    def __init__(
        self,
        path: str | Path,
        columns: Sequence[ColumnDefinition],
        *,
        encoding: str = "latin-1",
        strict: bool = False,
    ) -> None:
        self.path = Path(path)
        self.columns = list(columns)
        self.encoding = encoding
        self.strict = strict
        self._decode_errors = "strict" if strict else "replace"
        self._handle: BinaryIO | None = None

    def open(self) -> "FixedWidthReader":
        if not self.path.is_file():
            raise FileNotFoundError(f"input file not found: {self.path}")
        try:
            self._handle = self.path.open("rb")
        except OSError as exc:
            # Unreadable inputs are skipped like missing ones.
            raise FileNotFoundError(f"input file cannot be opened: {self.path}: {exc}") from exc
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "FixedWidthReader":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def rows(self) -> Iterator[RawRow]:
        if self._handle is None:
            raise RuntimeError(f"reader for {self.path} is not open")

        for line_number, line in enumerate(self._handle, start=1):
            yield self._slice(line.rstrip(b"\r\n"), line_number)

    def _slice(self, line: bytes, line_number: int) -> RawRow:
        row: RawRow = {}
        for column_id, column in enumerate(self.columns):
            if self.strict and len(line) < column.end:
                raise MalformedInputError(
                    f"line is {len(line)} bytes, column '{column.name}' needs {column.end}",
                    path=str(self.path),
                    line_number=line_number,
                )
            row[column_id] = line[column.start : column.end].decode(self.encoding, errors=self._decode_errors)
        return row
