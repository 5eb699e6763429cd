"""Materialize a dataset as an openpyxl workbook (JSON -> xlsx)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from sheet_sync.config import Settings, settings
from sheet_sync.formula import (
    FIRST_DATA_ROW,
    HEADER_ROW,
    FormulaDirectory,
    compile_formula,
)
from sheet_sync.models import Dataset, SheetSchema
from sheet_sync.services.value_normalizer import ValueNormalizer
from sheet_sync.utils.exceptions import (
    DatasetValidationError,
    FileWriteError,
    FormulaError,
    FormulaTranslationError,
)
from sheet_sync.utils.logging import LogContext, PerformanceMetrics, get_logger

logger = get_logger(__name__)

TEXT_FORMAT = "@"


@dataclass
class WorkbookWriteOptions:
    """Display formats applied to generated cells."""

    number_format: str = "0.00"
    percent_number_format: str = "0.00%"

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> WorkbookWriteOptions:
        s = s or settings
        return cls(
            number_format=s.number_format,
            percent_number_format=s.percent_number_format,
        )


class DatasetWorkbookWriter:
    """Write datasets to workbooks, compiling symbolic formulas per row."""

    def __init__(
        self,
        normalizer: ValueNormalizer | None = None,
        options: WorkbookWriteOptions | None = None,
    ) -> None:
        self.normalizer = normalizer or ValueNormalizer(settings.column_conventions())
        self.options = options or WorkbookWriteOptions.from_settings()

    def build(
        self, dataset: Dataset, metrics: PerformanceMetrics | None = None
    ) -> Workbook:
        """Build an in-memory workbook with one worksheet per sheet.

        Args:
            dataset: Dataset to materialize.
            metrics: Optional metrics object updated with sheet/row/formula counts.

        Returns:
            The workbook, flagged for full recalculation on load.

        Raises:
            DatasetValidationError: If the dataset has no sheets or a sheet
                name is not a valid worksheet title.
            FormulaTranslationError: If a formula cannot be compiled.
        """
        if not dataset.sheets:
            raise DatasetValidationError("Dataset has no sheets to write")

        directory = FormulaDirectory.from_sheets(dataset.sheets)
        workbook = Workbook()
        workbook.remove(workbook.active)
        # openpyxl stores no cached formula results.
        workbook.calculation.fullCalcOnLoad = True

        for sheet in dataset.sheets:
            with LogContext(sheet=sheet.name):
                try:
                    worksheet = workbook.create_sheet(title=sheet.name)
                except ValueError as e:
                    raise DatasetValidationError(
                        f"Invalid sheet name {sheet.name!r}: {e}",
                        errors=[str(e)],
                    ) from e
                formula_cells = self._write_sheet(worksheet, sheet, directory)
                logger.debug(
                    "Sheet written", rows=sheet.row_count, formula_cells=formula_cells
                )
            if metrics is not None:
                metrics.sheets_processed += 1
                metrics.rows_processed += sheet.row_count
                metrics.formulas_translated += formula_cells

        return workbook

    def write(
        self,
        dataset: Dataset,
        path: Path,
        metrics: PerformanceMetrics | None = None,
    ) -> Path:
        """Build the workbook and save it to ``path``.

        Raises:
            FileWriteError: If the workbook cannot be saved.
        """
        workbook = self.build(dataset, metrics)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            workbook.save(path)
        except OSError as e:
            raise FileWriteError(f"Cannot save {path}: {e}", file_path=str(path)) from e
        logger.info("Workbook written", path=str(path), sheets=len(dataset.sheets))
        return path

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _write_sheet(
        self, worksheet: Worksheet, sheet: SheetSchema, directory: FormulaDirectory
    ) -> int:
        conventions = self.normalizer.conventions
        for index, column in enumerate(sheet.columns, start=1):
            if column:
                self._set_text(worksheet, HEADER_ROW, index, column)

        dropped: set[str] = set()
        formula_cells = 0
        for offset, record in enumerate(sheet.rows):
            row = FIRST_DATA_ROW + offset
            dropped.update(key for key in record if key not in sheet.columns)
            for index, column in enumerate(sheet.columns, start=1):
                if not column or sheet.formula_for(column) is not None:
                    continue
                value = self.normalizer.to_cell(column, record.get(column))
                if value is None:
                    continue
                if isinstance(value, str):
                    cell = self._set_text(worksheet, row, index, value)
                else:
                    cell = worksheet.cell(row=row, column=index, value=value)
                if conventions.is_calendar(column):
                    cell.number_format = TEXT_FORMAT
            formula_cells += self._write_formulas(worksheet, sheet, row, directory)

        if dropped:
            logger.debug("Row keys outside columns dropped", keys=sorted(dropped))
        return formula_cells

    def _write_formulas(
        self,
        worksheet: Worksheet,
        sheet: SheetSchema,
        row: int,
        directory: FormulaDirectory,
    ) -> int:
        conventions = self.normalizer.conventions
        written = 0
        for column, formula in (sheet.formulas or {}).items():
            symbolic = formula[1:] if formula.startswith("=") else formula
            try:
                positional = compile_formula(symbolic, sheet.columns, row, directory)
            except FormulaError as e:
                raise FormulaTranslationError(
                    f"Cannot compile formula for {sheet.name}!{column}: {e.message}",
                    sheet=sheet.name,
                    column=column,
                    formula=formula,
                ) from e
            cell = worksheet.cell(
                row=row, column=sheet.columns.index(column) + 1, value="=" + positional
            )
            cell.number_format = (
                self.options.percent_number_format
                if conventions.is_percent(column)
                else self.options.number_format
            )
            written += 1
        return written

    @staticmethod
    def _set_text(worksheet: Worksheet, row: int, column: int, text: str) -> Cell:
        cell = worksheet.cell(row=row, column=column)
        cell.value = text
        # Text beginning with "=" is data, not a formula.
        cell.data_type = "s"
        return cell
