"""Conversion services: value normalization, workbook I/O and dataset I/O."""

from sheet_sync.services.conversion import json_to_xlsx, xlsx_to_json
from sheet_sync.services.dataset_io import load_dataset, save_dataset
from sheet_sync.services.value_normalizer import ValueNormalizer
from sheet_sync.services.workbook_reader import DatasetWorkbookReader
from sheet_sync.services.workbook_writer import DatasetWorkbookWriter

__all__ = [
    "DatasetWorkbookReader",
    "DatasetWorkbookWriter",
    "ValueNormalizer",
    "json_to_xlsx",
    "load_dataset",
    "save_dataset",
    "xlsx_to_json",
]
