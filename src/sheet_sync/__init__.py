"""Sheet Sync - bidirectional JSON dataset and xlsx workbook conversion."""

from sheet_sync.models import Dataset, SheetSchema
from sheet_sync.services.conversion import json_to_xlsx, xlsx_to_json

__all__ = ["Dataset", "SheetSchema", "json_to_xlsx", "xlsx_to_json"]
__version__ = "0.1.0"


def main() -> None:
    """Run the sheet-sync command line interface."""
    from sheet_sync.cli import main as cli_main

    cli_main()
