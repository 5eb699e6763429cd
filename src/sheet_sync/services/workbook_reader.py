"""Re-absorb an edited workbook into a dataset (xlsx -> JSON)."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import ValidationError as PydanticValidationError

from sheet_sync.config import settings
from sheet_sync.formula import FormulaDirectory, decompile_formula
from sheet_sync.models import Dataset, Row, SheetSchema
from sheet_sync.services.value_normalizer import ValueNormalizer
from sheet_sync.utils.exceptions import (
    DatasetValidationError,
    FormulaDivergenceError,
    FormulaError,
    FormulaTranslationError,
    SheetSyncFileNotFoundError,
    WorkbookReadError,
)
from sheet_sync.utils.logging import LogContext, PerformanceMetrics, get_logger

logger = get_logger(__name__)

DivergencePolicy = Literal["error", "warn"]


def open_workbook(path: Path, *, data_only: bool) -> Workbook:
    """Load ``path`` with openpyxl, wrapping unreadable files.

    Raises:
        WorkbookReadError: If the file is not a readable xlsx workbook.
    """
    try:
        return load_workbook(filename=path, data_only=data_only)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise WorkbookReadError(
            f"Cannot read workbook {path}: {e}", file_path=str(path)
        ) from e


@dataclass
class _SheetScan:
    """Values and raw positional formulas of one worksheet."""

    name: str
    columns: list[str]
    rows: list[Row] = field(default_factory=list)
    formula_cells: dict[str, list[tuple[int, str]]] = field(default_factory=dict)


class DatasetWorkbookReader:
    """Read workbooks produced (and edited) from datasets."""

    def __init__(
        self,
        normalizer: ValueNormalizer | None = None,
        formula_divergence: DivergencePolicy | None = None,
        schema_ref: str | None = None,
    ) -> None:
        self.normalizer = normalizer or ValueNormalizer(settings.column_conventions())
        self.formula_divergence = formula_divergence or settings.formula_divergence
        self.schema_ref = schema_ref if schema_ref is not None else settings.schema_ref

    def read(self, path: Path, metrics: PerformanceMetrics | None = None) -> Dataset:
        """Read every worksheet of ``path`` into a dataset.

        Formulas are decompiled once all sheets are scanned so cross-sheet
        ranges resolve against the whole workbook.

        Raises:
            SheetSyncFileNotFoundError: If ``path`` does not exist.
            WorkbookReadError: If the file is not a readable workbook.
            FormulaDivergenceError: If rows of a formula column disagree and
                the divergence policy is "error".
            DatasetValidationError: If the sheets violate dataset rules
                (e.g. duplicate header names).
        """
        if not path.exists():
            raise SheetSyncFileNotFoundError(str(path))

        # Load twice: once to capture formulas, once for cached values
        workbook = open_workbook(path, data_only=False)
        computed_wb = open_workbook(path, data_only=True)

        scans = [
            self._scan_sheet(workbook[name], computed_wb[name])
            for name in workbook.sheetnames
        ]
        directory = FormulaDirectory.from_sheets(scans)

        sheets: list[SheetSchema] = []
        for scan in scans:
            with LogContext(sheet=scan.name):
                formulas = self._decompile_sheet(scan, directory)
            try:
                sheets.append(
                    SheetSchema(
                        name=scan.name,
                        columns=scan.columns,
                        formulas=formulas or None,
                        rows=scan.rows,
                    )
                )
            except PydanticValidationError as e:
                messages = [error["msg"] for error in e.errors()]
                raise DatasetValidationError(
                    f"Sheet {scan.name!r} cannot be represented as a dataset sheet",
                    errors=messages,
                ) from e
            if metrics is not None:
                metrics.sheets_processed += 1
                metrics.rows_processed += len(scan.rows)
                metrics.formulas_translated += len(formulas)

        logger.info("Workbook read", path=str(path), sheets=len(sheets))
        return Dataset(schema_ref=self.schema_ref, sheets=sheets)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _scan_sheet(self, sheet: Worksheet, computed_sheet: Worksheet) -> _SheetScan:
        """Collect header, normalized rows and formula text of one worksheet.

        Columns are read from column A so that header positions match the
        column letters used in formulas.
        """
        header_row = sheet.min_row
        header = [
            _header_text(cell.value)
            for cell in next(
                sheet.iter_rows(
                    min_row=header_row,
                    max_row=header_row,
                    min_col=1,
                    max_col=sheet.max_column,
                )
            )
        ]
        while header and not header[-1]:
            header.pop()
        scan = _SheetScan(name=sheet.title, columns=header)
        if not header:
            return scan

        row_iter = sheet.iter_rows(
            min_row=header_row + 1,
            max_row=sheet.max_row,
            min_col=1,
            max_col=len(header),
        )
        computed_iter = computed_sheet.iter_rows(
            min_row=header_row + 1,
            max_row=sheet.max_row,
            min_col=1,
            max_col=len(header),
            values_only=True,
        )
        for row_cells, computed_values in zip(row_iter, computed_iter, strict=True):
            record: Row = {}
            for column, cell, computed in zip(
                header, row_cells, computed_values, strict=True
            ):
                if not column:
                    continue
                value = cell.value
                if cell.data_type == "f":
                    formula = getattr(cell.value, "text", cell.value)
                    scan.formula_cells.setdefault(column, []).append(
                        (cell.row, str(formula))
                    )
                    value = computed
                record[column] = self.normalizer.from_cell(
                    column, value, cell.number_format
                )
            scan.rows.append(record)
        return scan

    def _decompile_sheet(
        self, scan: _SheetScan, directory: FormulaDirectory
    ) -> dict[str, str]:
        """Decompile each formula column; every row must agree with the first."""
        formulas: dict[str, str] = {}
        for column, cells in scan.formula_cells.items():
            (first_row, first_text), *rest = cells
            symbolic = self._decompile_cell(
                scan, column, first_text, first_row, directory
            )
            for row, positional in rest:
                other = self._decompile_cell(scan, column, positional, row, directory)
                if other != symbolic:
                    self._diverged(scan.name, column, symbolic, other, row, first_row)
                    break
            formulas[column] = symbolic
            logger.debug("Formula decompiled", column=column, formula=symbolic)
        return formulas

    @staticmethod
    def _decompile_cell(
        scan: _SheetScan,
        column: str,
        positional: str,
        row: int,
        directory: FormulaDirectory,
    ) -> str:
        try:
            return decompile_formula(positional, scan.columns, row, directory)
        except FormulaError as e:
            raise FormulaTranslationError(
                f"Cannot decompile {positional!r} in {scan.name}!{column} "
                f"row {row}: {e.message}",
                sheet=scan.name,
                column=column,
                formula=positional,
            ) from e

    def _diverged(
        self,
        sheet: str,
        column: str,
        expected: str,
        found: str,
        row: int,
        first_row: int,
    ) -> None:
        error = FormulaDivergenceError(
            sheet=sheet,
            column=column,
            expected=expected,
            found=found,
            row=row,
            first_row=first_row,
        )
        if self.formula_divergence == "error":
            raise error
        logger.warning("Formula rows diverge, keeping first row", **error.details)


def _header_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
