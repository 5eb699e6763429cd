"""Tests for the json-to-xlsx and xlsx-to-json conversion runs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from sheet_sync.services.conversion import json_to_xlsx, xlsx_to_json
from sheet_sync.services.dataset_io import load_dataset
from sheet_sync.services.workbook_reader import DatasetWorkbookReader
from sheet_sync.utils.exceptions import SheetSyncFileNotFoundError
from sheet_sync.utils.logging import get_run_id


@pytest.fixture
def json_path(tmp_path: Path, sales_document: dict[str, Any]) -> Path:
    path = tmp_path / "data" / "店铺数据统计.json"
    path.parent.mkdir()
    path.write_text(json.dumps(sales_document, ensure_ascii=False), encoding="utf-8")
    return path


class TestJsonToXlsx:
    """Tests for json_to_xlsx."""

    def test_writes_workbook(self, tmp_path: Path, json_path: Path) -> None:
        target = tmp_path / "render-template" / "店铺数据统计-模板.xlsx"
        assert json_to_xlsx(json_path, target) == target
        assert target.exists()

    def test_logs_result_with_run_id(
        self,
        tmp_path: Path,
        json_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO):
            json_to_xlsx(json_path, tmp_path / "out.xlsx")
        assert "Conversion completed" in caplog.text
        assert "direction=json-to-xlsx" in caplog.text
        assert "formulas=4" in caplog.text
        assert get_run_id() is None

    def test_missing_dataset(self, tmp_path: Path) -> None:
        with pytest.raises(SheetSyncFileNotFoundError):
            json_to_xlsx(tmp_path / "missing.json", tmp_path / "out.xlsx")


class TestXlsxToJson:
    """Tests for xlsx_to_json."""

    def test_round_trip_with_backup(
        self, tmp_path: Path, json_path: Path, sales_document: dict[str, Any]
    ) -> None:
        workbook = json_to_xlsx(json_path, tmp_path / "edited.xlsx")
        backup_dir = tmp_path / "backup"

        xlsx_to_json(
            workbook,
            json_path,
            backup_dir=backup_dir,
            reader=DatasetWorkbookReader(schema_ref="../schema/schema.json"),
        )

        backup = json.loads((backup_dir / json_path.name).read_text(encoding="utf-8"))
        assert backup == sales_document

        dataset = load_dataset(json_path)
        assert dataset.schema_ref == "../schema/schema.json"
        for sheet in sales_document["sheets"]:
            assert dataset.sheet(sheet["name"]).formulas == sheet["formulas"]
        assert dataset.sheet("销售明细").rows[2]["日期"] == "2025-02-03"

    def test_missing_workbook(self, tmp_path: Path) -> None:
        with pytest.raises(SheetSyncFileNotFoundError):
            xlsx_to_json(tmp_path / "missing.xlsx", tmp_path / "out.json")
