"""Utilities package for sheet-sync.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from sheet_sync.utils.exceptions import (
    DatasetError,
    ErrorCode,
    FileError,
    FormatError,
    FormulaDivergenceError,
    FormulaError,
    FormulaTranslationError,
    SheetSyncError,
)
from sheet_sync.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Exceptions
    "DatasetError",
    "ErrorCode",
    "FileError",
    "FormatError",
    "FormulaDivergenceError",
    "FormulaError",
    "FormulaTranslationError",
    "SheetSyncError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
