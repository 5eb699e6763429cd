"""Loading and saving dataset JSON files."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from sheet_sync.config import settings
from sheet_sync.models import Dataset
from sheet_sync.services.dataset_validator import DatasetValidator
from sheet_sync.utils.exceptions import (
    DatasetParseError,
    FileWriteError,
    SheetSyncFileNotFoundError,
)
from sheet_sync.utils.logging import get_logger

logger = get_logger(__name__)


def load_dataset(path: Path, validator: DatasetValidator | None = None) -> Dataset:
    """Read and validate a dataset file.

    Raises:
        SheetSyncFileNotFoundError: If ``path`` does not exist.
        DatasetParseError: If the file is not valid JSON.
        DatasetValidationError: If the document is not a valid dataset.
    """
    if not path.exists():
        raise SheetSyncFileNotFoundError(str(path))
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DatasetParseError(
            f"Invalid JSON in {path}: {e.msg} (line {e.lineno}, column {e.colno})",
            details={"file_path": str(path)},
        ) from e

    dataset = (validator or DatasetValidator()).validate(document)
    logger.info("Dataset loaded", path=str(path), sheets=len(dataset.sheets))
    return dataset


def dumps_dataset(dataset: Dataset, indent: int | None = None) -> str:
    """Pretty-print a dataset, keeping non-ASCII text readable."""
    text = json.dumps(
        dataset.to_json_dict(),
        ensure_ascii=False,
        indent=settings.json_indent if indent is None else indent,
    )
    return text + "\n"


def save_dataset(
    dataset: Dataset,
    path: Path,
    backup_dir: Path | None = None,
    indent: int | None = None,
) -> Path | None:
    """Write a dataset, first copying any existing file into ``backup_dir``.

    Returns:
        The backup path, or None when nothing was backed up.

    Raises:
        FileWriteError: If the file or its backup cannot be written.
    """
    backup_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if backup_dir is not None and path.exists():
            backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = backup_dir / path.name
            shutil.copyfile(path, backup_path)
            logger.info("Previous dataset backed up", backup=str(backup_path))
        path.write_text(dumps_dataset(dataset, indent), encoding="utf-8")
    except OSError as e:
        raise FileWriteError(f"Cannot write {path}: {e}", file_path=str(path)) from e

    logger.info("Dataset written", path=str(path), sheets=len(dataset.sheets))
    return backup_path
