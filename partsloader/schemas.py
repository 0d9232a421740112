from dataclasses import dataclass


# Source path -> imported row count, or None when the file could not be opened.
ImportResult = dict[str, int | None]


@dataclass(frozen=True)
class TableImportSummary:
    table_name: str
    files_imported: int
    files_missing: int
    rows_total: int

    @classmethod
    def from_result(cls, table_name: str, result: ImportResult) -> "TableImportSummary":
        counts = [count for count in result.values() if count is not None]
        return cls(
            table_name=table_name,
            files_imported=len(counts),
            files_missing=len(result) - len(counts),
            rows_total=sum(counts),
        )
