from __future__ import annotations

import logging
from typing import Any

import pytest

from sheet_sync.formula import FormulaDirectory
from sheet_sync.models import Dataset
from sheet_sync.utils.logging import clear_context


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    """Undo log context and configure_logging() calls made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    clear_context()
    yield
    clear_context()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def sales_document() -> dict[str, Any]:
    """Two-sheet dataset: daily sales and a summary with a cross-sheet formula."""
    return {
        "$schema": "../schema/schema.json",
        "sheets": [
            {
                "name": "销售明细",
                "columns": ["日期", "销量", "售价", "金额"],
                "formulas": {"金额": "销量*售价"},
                "rows": [
                    {"日期": "2025-02-01", "销量": 3, "售价": 10.5},
                    {"日期": "2025-02-02", "销量": 5, "售价": 9},
                    {"日期": "2025-02-03", "销量": 2, "售价": 12},
                ],
            },
            {
                "name": "汇总",
                "columns": ["月份", "总额"],
                "formulas": {"总额": "SUMPRODUCT(销售明细!销量,销售明细!售价)"},
                "rows": [{"月份": "2025-02"}],
            },
        ],
    }


@pytest.fixture
def sales_dataset(sales_document: dict[str, Any]) -> Dataset:
    return Dataset.model_validate(sales_document)


@pytest.fixture
def sales_directory(sales_dataset: Dataset) -> FormulaDirectory:
    return FormulaDirectory.from_sheets(sales_dataset.sheets)
