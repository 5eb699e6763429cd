"""Tests for the workbook inspector."""

from __future__ import annotations

from pathlib import Path

import pytest

from sheet_sync.models import Dataset
from sheet_sync.services.inspector import inspect_workbook, render_report
from sheet_sync.services.workbook_writer import DatasetWorkbookWriter
from sheet_sync.utils.exceptions import SheetSyncFileNotFoundError, WorkbookReadError


@pytest.fixture
def workbook_path(tmp_path: Path, sales_dataset: Dataset) -> Path:
    return DatasetWorkbookWriter().write(sales_dataset, tmp_path / "t.xlsx")


def test_reports_ranges_and_formula_columns(workbook_path: Path) -> None:
    reports = inspect_workbook(workbook_path)
    sales, summary = reports

    assert sales.name == "销售明细"
    assert (sales.min_row, sales.max_row) == (1, 4)
    assert (sales.min_column, sales.max_column) == (1, 4)
    assert sales.columns == ["日期", "销量", "售价", "金额"]
    assert sales.formula_columns == ["金额"]
    assert len(sales.preview) == 2
    assert sales.preview[0][3].formula == "=B2*C2"
    assert sales.preview[0][0].address == "A2"

    assert summary.formula_columns == ["总额"]


def test_preview_rows_limit(workbook_path: Path) -> None:
    reports = inspect_workbook(workbook_path, preview_rows=1)
    assert len(reports[0].preview) == 1
    # formula columns are collected from every row, not just the preview
    assert reports[0].formula_columns == ["金额"]


def test_preview_frame(workbook_path: Path) -> None:
    frame = inspect_workbook(workbook_path)[0].preview_frame()
    assert list(frame.columns) == ["cell", "column", "value", "formula"]
    assert len(frame) == 8
    assert frame.iloc[0]["value"] == "2025-02-01"


def test_render_report(workbook_path: Path) -> None:
    text = render_report(inspect_workbook(workbook_path))
    assert "Sheet: 销售明细" in text
    assert "Sheet: 汇总" in text
    assert "Formula columns: ['金额']" in text
    assert "0-based rows 0-3" in text


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SheetSyncFileNotFoundError):
        inspect_workbook(tmp_path / "missing.xlsx")


def test_unreadable_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.xlsx"
    path.write_text("not a workbook", encoding="utf-8")
    with pytest.raises(WorkbookReadError) as exc_info:
        inspect_workbook(path)
    assert exc_info.value.file_path == str(path)
    assert exc_info.value.get_exit_status() == 2
