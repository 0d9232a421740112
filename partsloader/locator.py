import logging
from pathlib import Path

from partsloader.config import Settings
from partsloader.errors import ConfigurationError
from partsloader.tables import TableDefinition


logger = logging.getLogger(__name__)

# Supplier 9999 is the distributor's test supplier and carries no real data.
IGNORED_SUPPLIERS = frozenset({"9999"})


class FileLocator:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def find_files(self, table: TableDefinition) -> list[str]:
        if self.settings.import_file:
            logger.info("using file override", extra={"path": self.settings.import_file})
            return [self.settings.import_file]

        files: list[str] = []

        if table.reference:
            reference_file = Path(self.settings.reference_dir) / f"{table.name}.dat"
            if reference_file.is_file():
                files.append(str(reference_file))

        if table.supplier:
            for supplier in self.list_suppliers():
                if supplier in IGNORED_SUPPLIERS:
                    continue
                supplier_file = Path(self.settings.supplier_dir) / supplier / f"{table.name}.{supplier}"
                if supplier_file.is_file():
                    files.append(str(supplier_file))

        logger.debug("resolved table files", extra={"table": table.name, "files": len(files)})
        return files

    def list_suppliers(self) -> list[str]:
        supplier_root = Path(self.settings.supplier_dir)
        suppliers: list[str] = []
        if supplier_root.is_dir():
            suppliers = sorted(entry.name for entry in supplier_root.iterdir() if entry.is_dir())

        if not suppliers:
            raise ConfigurationError(f"supplier directories not found in {supplier_root}")
        return suppliers
