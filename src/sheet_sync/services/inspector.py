"""Structure dump of a workbook for troubleshooting conversions."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.worksheet.worksheet import Worksheet

from sheet_sync.services.workbook_reader import open_workbook
from sheet_sync.utils.exceptions import SheetSyncFileNotFoundError
from sheet_sync.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CellPreview:
    address: str
    column: str
    value: Any
    formula: str | None = None


@dataclass
class SheetReport:
    """Used range, header and first data rows of one worksheet."""

    name: str
    min_row: int
    max_row: int
    min_column: int
    max_column: int
    columns: list[str]
    preview: list[list[CellPreview]] = field(default_factory=list)
    formula_columns: list[str] = field(default_factory=list)

    def preview_frame(self) -> pd.DataFrame:
        records = [
            {
                "cell": cell.address,
                "column": cell.column,
                "value": "(empty)" if cell.value is None else cell.value,
                "formula": cell.formula or "",
            }
            for row in self.preview
            for cell in row
        ]
        return pd.DataFrame(records, columns=["cell", "column", "value", "formula"])


def inspect_workbook(path: Path, preview_rows: int = 2) -> list[SheetReport]:
    """Describe every worksheet of ``path``.

    Args:
        path: Workbook to inspect.
        preview_rows: Number of data rows (after the header) to include.

    Raises:
        SheetSyncFileNotFoundError: If ``path`` does not exist.
        WorkbookReadError: If the file is not a readable workbook.
    """
    if not path.exists():
        raise SheetSyncFileNotFoundError(str(path))
    workbook = open_workbook(path, data_only=False)
    reports = [_inspect_sheet(ws, preview_rows) for ws in workbook.worksheets]
    logger.debug("Workbook inspected", path=str(path), sheets=len(reports))
    return reports


def _inspect_sheet(sheet: Worksheet, preview_rows: int) -> SheetReport:
    columns = [
        "" if cell.value is None else str(cell.value)
        for cell in sheet[sheet.min_row][sheet.min_column - 1 : sheet.max_column]
    ]
    report = SheetReport(
        name=sheet.title,
        min_row=sheet.min_row,
        max_row=sheet.max_row,
        min_column=sheet.min_column,
        max_column=sheet.max_column,
        columns=columns,
    )

    formula_columns: set[str] = set()
    for offset, row in enumerate(
        sheet.iter_rows(
            min_row=sheet.min_row + 1,
            max_row=sheet.max_row,
            min_col=sheet.min_column,
            max_col=sheet.max_column,
        )
    ):
        previews: list[CellPreview] = []
        for column, cell in zip(columns, row, strict=True):
            formula = (
                str(getattr(cell.value, "text", cell.value))
                if cell.data_type == "f"
                else None
            )
            if formula and column:
                formula_columns.add(column)
            previews.append(
                CellPreview(
                    address=cell.coordinate,
                    column=column,
                    value=cell.value,
                    formula=formula,
                )
            )
        if offset < preview_rows:
            report.preview.append(previews)

    report.formula_columns = [c for c in columns if c in formula_columns]
    return report


def render_report(reports: list[SheetReport]) -> str:
    """Human-readable text for :func:`inspect_workbook` results."""
    blocks: list[str] = []
    for report in reports:
        lines = [
            "=" * 60,
            f"Sheet: {report.name}",
            f"Range: rows {report.min_row}-{report.max_row}, "
            f"columns {report.min_column}-{report.max_column} "
            f"(0-based rows {report.min_row - 1}-{report.max_row - 1}, "
            f"columns {report.min_column - 1}-{report.max_column - 1})",
            f"Columns: {report.columns}",
        ]
        frame = report.preview_frame()
        if not frame.empty:
            lines.append(frame.to_string(index=False))
        if report.formula_columns:
            lines.append(f"Formula columns: {report.formula_columns}")
        blocks.append("\n".join(lines))
    return "\n".join(blocks)
