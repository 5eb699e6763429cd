"""Conversion runs between dataset JSON files and workbooks.

Each run gets its own run ID in the log context and a performance summary.
"""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from sheet_sync.services.dataset_io import load_dataset, save_dataset
from sheet_sync.services.workbook_reader import DatasetWorkbookReader
from sheet_sync.services.workbook_writer import DatasetWorkbookWriter
from sheet_sync.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)


def json_to_xlsx(
    json_path: Path,
    xlsx_path: Path,
    writer: DatasetWorkbookWriter | None = None,
) -> Path:
    """Generate a workbook from a dataset file.

    Returns:
        The written workbook path.
    """
    with LogContext(run_id=uuid4().hex[:8]):
        with timed_operation(logger, "json-to-xlsx") as metrics:
            dataset = load_dataset(json_path)
            (writer or DatasetWorkbookWriter()).write(dataset, xlsx_path, metrics)
        logger.log_conversion_result(
            direction="json-to-xlsx",
            source=str(json_path),
            target=str(xlsx_path),
            sheets=metrics.sheets_processed,
            rows=metrics.rows_processed,
            formulas=metrics.formulas_translated,
        )
    return xlsx_path


def xlsx_to_json(
    xlsx_path: Path,
    json_path: Path,
    backup_dir: Path | None = None,
    reader: DatasetWorkbookReader | None = None,
) -> Path:
    """Re-absorb an edited workbook into a dataset file.

    An existing dataset at ``json_path`` is copied into ``backup_dir`` first.

    Returns:
        The written dataset path.
    """
    with LogContext(run_id=uuid4().hex[:8]):
        with timed_operation(logger, "xlsx-to-json") as metrics:
            dataset = (reader or DatasetWorkbookReader()).read(xlsx_path, metrics)
            save_dataset(dataset, json_path, backup_dir=backup_dir)
        logger.log_conversion_result(
            direction="xlsx-to-json",
            source=str(xlsx_path),
            target=str(json_path),
            sheets=metrics.sheets_processed,
            rows=metrics.rows_processed,
            formulas=metrics.formulas_translated,
        )
    return json_path
