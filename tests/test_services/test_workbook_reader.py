"""Tests for DatasetWorkbookReader."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from sheet_sync.models import Dataset
from sheet_sync.services.workbook_reader import DatasetWorkbookReader
from sheet_sync.services.workbook_writer import DatasetWorkbookWriter
from sheet_sync.utils.exceptions import (
    DatasetValidationError,
    ErrorCode,
    FormulaDivergenceError,
    SheetSyncFileNotFoundError,
    WorkbookReadError,
)
from sheet_sync.utils.logging import PerformanceMetrics


def _save(workbook: Workbook, path: Path) -> Path:
    workbook.save(path)
    return path


def _diverging_workbook(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "S"
    ws.append(["a", "b"])
    ws.append([1, "=A2*2"])
    ws.append([2, "=A3*3"])
    return _save(wb, path)


@pytest.fixture
def reader() -> DatasetWorkbookReader:
    return DatasetWorkbookReader(formula_divergence="error", schema_ref="schema.json")


class TestRoundTrip:
    """Workbooks generated from a dataset read back to the same dataset."""

    def test_formulas_and_values(
        self,
        tmp_path: Path,
        reader: DatasetWorkbookReader,
        sales_dataset: Dataset,
    ) -> None:
        path = DatasetWorkbookWriter().write(sales_dataset, tmp_path / "t.xlsx")
        dataset = reader.read(path)

        assert dataset.schema_ref == "schema.json"
        assert [s.name for s in dataset.sheets] == ["销售明细", "汇总"]
        for original in sales_dataset.sheets:
            sheet = dataset.sheet(original.name)
            assert sheet.columns == original.columns
            assert sheet.formulas == original.formulas
            assert sheet.row_count == original.row_count
            for read_row, original_row in zip(sheet.rows, original.rows, strict=True):
                for column, value in original_row.items():
                    assert read_row[column] == value

    def test_metrics(
        self,
        tmp_path: Path,
        reader: DatasetWorkbookReader,
        sales_dataset: Dataset,
    ) -> None:
        path = DatasetWorkbookWriter().write(sales_dataset, tmp_path / "t.xlsx")
        metrics = PerformanceMetrics(operation="test")
        reader.read(path, metrics)
        assert metrics.sheets_processed == 2
        assert metrics.rows_processed == 4
        assert metrics.formulas_translated == 2


class TestUserEditedWorkbooks:
    """Workbooks edited by hand in a spreadsheet application."""

    def test_native_dates_and_serials(
        self, tmp_path: Path, reader: DatasetWorkbookReader
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "明细"
        ws.append(["日期", "月份", "销量"])
        ws.append([datetime(2025, 2, 3), "2025/2", 3.0])
        ws.append([45691, datetime(2025, 3, 9), 4])
        dataset = reader.read(_save(wb, tmp_path / "edited.xlsx"))

        rows = dataset.sheet("明细").rows
        assert rows[0] == {"日期": "2025-02-03", "月份": "2025-02", "销量": 3}
        assert rows[1] == {"日期": "2025-02-03", "月份": "2025-03", "销量": 4}

    def test_percent_cells(self, tmp_path: Path, reader: DatasetWorkbookReader) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "利润"
        ws.append(["占比", "毛利率%"])
        ws.append([0.332, 33.2])
        ws["A2"].number_format = "0.0%"
        dataset = reader.read(_save(wb, tmp_path / "p.xlsx"))
        assert dataset.sheet("利润").rows == [{"占比": "33.2%", "毛利率%": "33.2%"}]

    def test_absolute_same_row_reference(
        self, tmp_path: Path, reader: DatasetWorkbookReader
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "S"
        ws.append(["a", "b"])
        ws.append([1, "=$A$2+1"])
        ws.append([2, "=$A3+1"])
        dataset = reader.read(_save(wb, tmp_path / "abs.xlsx"))
        assert dataset.sheet("S").formulas == {"b": "a+1"}

    def test_blank_header_columns_skipped(
        self, tmp_path: Path, reader: DatasetWorkbookReader
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "S"
        ws.append(["a", None, "c", None])
        ws.append([1, "ignored", 3])
        dataset = reader.read(_save(wb, tmp_path / "blank.xlsx"))
        sheet = dataset.sheet("S")
        assert sheet.columns == ["a", "", "c"]
        assert sheet.rows == [{"a": 1, "c": 3}]

    def test_numeric_header_text(
        self, tmp_path: Path, reader: DatasetWorkbookReader
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "S"
        ws.append([2024.0, "x"])
        dataset = reader.read(_save(wb, tmp_path / "num.xlsx"))
        assert dataset.sheet("S").columns == ["2024", "x"]

    def test_empty_worksheet(self, tmp_path: Path, reader: DatasetWorkbookReader) -> None:
        wb = Workbook()
        wb.active.title = "空"
        dataset = reader.read(_save(wb, tmp_path / "empty.xlsx"))
        assert dataset.sheet("空").columns == []
        assert dataset.sheet("空").rows == []


class TestFormulaDivergence:
    """Rows of one formula column that decompile differently."""

    def test_error_policy(self, tmp_path: Path, reader: DatasetWorkbookReader) -> None:
        path = _diverging_workbook(tmp_path / "d.xlsx")
        with pytest.raises(FormulaDivergenceError) as exc_info:
            reader.read(path)
        error = exc_info.value
        assert error.error_code == ErrorCode.FORMULA_DIVERGENCE
        assert error.expected == "a*2"
        assert error.found == "a*3"
        assert error.row == 3
        assert error.first_row == 2

    def test_warn_policy_keeps_first_row(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = _diverging_workbook(tmp_path / "d.xlsx")
        reader = DatasetWorkbookReader(formula_divergence="warn")
        with caplog.at_level(logging.WARNING):
            dataset = reader.read(path)
        assert dataset.sheet("S").formulas == {"b": "a*2"}
        assert "Formula rows diverge" in caplog.text


class TestReadErrors:
    """Files that cannot be read."""

    def test_missing_file(self, tmp_path: Path, reader: DatasetWorkbookReader) -> None:
        with pytest.raises(SheetSyncFileNotFoundError):
            reader.read(tmp_path / "missing.xlsx")

    def test_not_a_workbook(self, tmp_path: Path, reader: DatasetWorkbookReader) -> None:
        path = tmp_path / "fake.xlsx"
        path.write_text("not a workbook", encoding="utf-8")
        with pytest.raises(WorkbookReadError) as exc_info:
            reader.read(path)
        assert exc_info.value.details["file_path"] == str(path)

    def test_duplicate_headers(
        self, tmp_path: Path, reader: DatasetWorkbookReader
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "S"
        ws.append(["a", "a"])
        with pytest.raises(DatasetValidationError):
            reader.read(_save(wb, tmp_path / "dup.xlsx"))
