"""Tests for DatasetWorkbookWriter."""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import load_workbook

from sheet_sync.models import Dataset
from sheet_sync.services.workbook_writer import (
    DatasetWorkbookWriter,
    WorkbookWriteOptions,
)
from sheet_sync.utils.exceptions import DatasetValidationError
from sheet_sync.utils.logging import PerformanceMetrics


@pytest.fixture
def writer() -> DatasetWorkbookWriter:
    return DatasetWorkbookWriter(options=WorkbookWriteOptions())


class TestBuild:
    """Tests for the in-memory workbook."""

    def test_one_worksheet_per_sheet(
        self, writer: DatasetWorkbookWriter, sales_dataset: Dataset
    ) -> None:
        workbook = writer.build(sales_dataset)
        assert workbook.sheetnames == ["销售明细", "汇总"]
        assert workbook.calculation.fullCalcOnLoad is True

    def test_header_and_values(
        self, writer: DatasetWorkbookWriter, sales_dataset: Dataset
    ) -> None:
        ws = writer.build(sales_dataset)["销售明细"]
        assert [c.value for c in ws[1]] == ["日期", "销量", "售价", "金额"]
        assert ws["A2"].value == "2025-02-01"
        assert ws["A2"].data_type == "s"
        assert ws["A2"].number_format == "@"
        assert ws["B3"].value == 5
        assert ws["C2"].value == 10.5

    def test_same_sheet_formula_per_row(
        self, writer: DatasetWorkbookWriter, sales_dataset: Dataset
    ) -> None:
        ws = writer.build(sales_dataset)["销售明细"]
        assert [ws.cell(row=r, column=4).value for r in (2, 3, 4)] == [
            "=B2*C2",
            "=B3*C3",
            "=B4*C4",
        ]
        assert ws["D2"].number_format == "0.00"

    def test_cross_sheet_formula(
        self, writer: DatasetWorkbookWriter, sales_dataset: Dataset
    ) -> None:
        ws = writer.build(sales_dataset)["汇总"]
        assert ws["A2"].value == "2025-02"
        assert ws["B2"].value == "=SUMPRODUCT(销售明细!$B$2:$B$4,销售明细!$C$2:$C$4)"

    def test_percent_formula_format(self, writer: DatasetWorkbookWriter) -> None:
        dataset = Dataset.model_validate(
            {
                "sheets": [
                    {
                        "name": "利润",
                        "columns": ["收入", "成本", "毛利率%"],
                        "formulas": {"毛利率%": "=(收入-成本)/收入"},
                        "rows": [{"收入": 100, "成本": 60}],
                    }
                ]
            }
        )
        ws = writer.build(dataset)["利润"]
        assert ws["C2"].value == "=(A2-B2)/A2"
        assert ws["C2"].number_format == "0.00%"

    def test_stored_formula_values_ignored(self, writer: DatasetWorkbookWriter) -> None:
        dataset = Dataset.model_validate(
            {
                "sheets": [
                    {
                        "name": "S",
                        "columns": ["a", "b"],
                        "formulas": {"b": "a*2"},
                        "rows": [{"a": 1, "b": 999}],
                    }
                ]
            }
        )
        ws = writer.build(dataset)["S"]
        assert ws["B2"].value == "=A2*2"

    def test_text_starting_with_equals_stays_text(
        self, writer: DatasetWorkbookWriter
    ) -> None:
        dataset = Dataset.model_validate(
            {"sheets": [{"name": "S", "columns": ["备注"], "rows": [{"备注": "=1+1"}]}]}
        )
        cell = writer.build(dataset)["S"]["A2"]
        assert cell.value == "=1+1"
        assert cell.data_type == "s"

    def test_unknown_keys_and_blanks_skipped(
        self, writer: DatasetWorkbookWriter
    ) -> None:
        dataset = Dataset.model_validate(
            {
                "sheets": [
                    {
                        "name": "S",
                        "columns": ["a", "b"],
                        "rows": [{"a": "", "b": 2, "stray": 3}],
                    }
                ]
            }
        )
        ws = writer.build(dataset)["S"]
        assert ws["A2"].value is None
        assert ws["B2"].value == 2
        assert ws.max_column == 2

    def test_metrics_updated(
        self, writer: DatasetWorkbookWriter, sales_dataset: Dataset
    ) -> None:
        metrics = PerformanceMetrics(operation="test")
        writer.build(sales_dataset, metrics)
        assert metrics.sheets_processed == 2
        assert metrics.rows_processed == 4
        assert metrics.formulas_translated == 4

    def test_empty_dataset_rejected(self, writer: DatasetWorkbookWriter) -> None:
        with pytest.raises(DatasetValidationError):
            writer.build(Dataset(sheets=[]))

    def test_invalid_sheet_title_rejected(self, writer: DatasetWorkbookWriter) -> None:
        dataset = Dataset.model_validate(
            {"sheets": [{"name": "a/b", "columns": ["x"], "rows": []}]}
        )
        with pytest.raises(DatasetValidationError):
            writer.build(dataset)


class TestWrite:
    """Tests for saving to disk."""

    def test_write_creates_file(
        self, tmp_path: Path, writer: DatasetWorkbookWriter, sales_dataset: Dataset
    ) -> None:
        path = writer.write(sales_dataset, tmp_path / "render-template" / "t.xlsx")
        assert path.exists()
        workbook = load_workbook(path)
        assert workbook["汇总"]["B2"].value == (
            "=SUMPRODUCT(销售明细!$B$2:$B$4,销售明细!$C$2:$C$4)"
        )
