"""Centralized exception classes for sheet-sync.

This module provides a hierarchy of custom exceptions with error codes,
process exit status mapping, and structured error details for consistent
error handling throughout the converters and the CLI.

Exception Hierarchy:
    SheetSyncError (base)
    ├── FileError
    │   ├── SheetSyncFileNotFoundError
    │   ├── WorkbookReadError
    │   └── FileWriteError
    ├── DatasetError
    │   ├── DatasetParseError
    │   └── DatasetValidationError
    └── FormulaError
        ├── FormatError
        ├── FormulaTranslationError
        └── FormulaDivergenceError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: File/workbook errors
    - E2xxx: Dataset (JSON document) errors
    - E3xxx: Formula translation errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_READ_ERROR = "E1002"
    FILE_WRITE_ERROR = "E1003"
    WORKBOOK_READ_ERROR = "E1004"

    # Dataset errors (E2xxx)
    DATASET_PARSE_ERROR = "E2001"
    DATASET_VALIDATION_FAILED = "E2002"

    # Formula errors (E3xxx)
    INVALID_COORDINATE = "E3001"
    FORMULA_TRANSLATION_FAILED = "E3002"
    FORMULA_DIVERGENCE = "E3003"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class ExitStatusMixin:
    """Mixin that provides a process exit status for exceptions.

    The CLI uses this to decide how to terminate when a conversion fails.
    Subclasses should set the `exit_status` class attribute.
    """

    exit_status: int = 1

    def get_exit_status(self) -> int:
        """Get the process exit status for this exception.

        Returns:
            Exit status appropriate for this error.
        """
        return self.exit_status


class SheetSyncError(Exception, ExitStatusMixin):
    """Base exception for all sheet-sync errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    exit_status: int = 1

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for reporting.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# File Errors (E1xxx)
# =============================================================================


class FileError(SheetSyncError):
    """Base class for file-related errors."""

    exit_status: int = 2

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic file.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class SheetSyncFileNotFoundError(FileError):
    """Raised when an input dataset or workbook does not exist.

    Note: Prefixed to avoid shadowing built-in FileNotFoundError.
    """

    def __init__(
        self,
        file_path: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = message or f"File not found: {file_path}"
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_NOT_FOUND,
            file_path=file_path,
            details=details,
        )


class WorkbookReadError(FileError):
    """Raised when openpyxl cannot open or parse a workbook."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_READ_ERROR,
            file_path=file_path,
            details=details,
        )


class FileWriteError(FileError):
    """Raised when an output file or its backup cannot be written."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_WRITE_ERROR,
            file_path=file_path,
            details=details,
        )


# =============================================================================
# Dataset Errors (E2xxx)
# =============================================================================


class DatasetError(SheetSyncError):
    """Base class for errors in the canonical JSON dataset."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATASET_VALIDATION_FAILED,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation errors.

        Args:
            message: Main error message.
            error_code: Error code.
            errors: List of specific validation error messages.
            details: Additional details.
        """
        details = details or {}
        if errors:
            details["validation_errors"] = errors
        super().__init__(message, error_code, details)
        self.errors = errors or []


class DatasetParseError(DatasetError):
    """Raised when a dataset file is not valid JSON."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.DATASET_PARSE_ERROR,
            details=details,
        )


class DatasetValidationError(DatasetError):
    """Raised when a dataset does not match the sheet document schema."""

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.DATASET_VALIDATION_FAILED,
            errors=errors,
            details=details,
        )


# =============================================================================
# Formula Errors (E3xxx)
# =============================================================================


class FormulaError(SheetSyncError):
    """Base class for formula translation errors.

    Carries the sheet, column and formula text the failure relates to so the
    message names the offending cell group.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FORMULA_TRANSLATION_FAILED,
        sheet: str | None = None,
        column: str | None = None,
        formula: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if sheet is not None:
            details["sheet"] = sheet
        if column is not None:
            details["column"] = column
        if formula is not None:
            details["formula"] = formula
        super().__init__(message, error_code, details)
        self.sheet = sheet
        self.column = column
        self.formula = formula


class FormatError(FormulaError):
    """Raised when coordinate text cannot be decoded (e.g. non-alphabetic letters)."""

    def __init__(
        self,
        message: str,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if value is not None:
            details["value"] = value
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_COORDINATE,
            details=details,
        )
        self.value = value


class FormulaTranslationError(FormulaError):
    """Raised when a formula cannot be fully translated between forms.

    A half-translated formula is silently wrong, so the whole conversion run
    is aborted instead.
    """

    def __init__(
        self,
        message: str,
        sheet: str | None = None,
        column: str | None = None,
        formula: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.FORMULA_TRANSLATION_FAILED,
            sheet=sheet,
            column=column,
            formula=formula,
            details=details,
        )


class FormulaDivergenceError(FormulaError):
    """Raised when rows of one column decompile to different symbolic formulas."""

    def __init__(
        self,
        sheet: str,
        column: str,
        expected: str,
        found: str,
        row: int,
        first_row: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["expected"] = expected
        details["found"] = found
        details["row"] = row
        details["first_row"] = first_row
        message = (
            f"Formula in {sheet}!{column} row {row} ({found!r}) differs from "
            f"row {first_row} ({expected!r})"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FORMULA_DIVERGENCE,
            sheet=sheet,
            column=column,
            formula=found,
            details=details,
        )
        self.expected = expected
        self.found = found
        self.row = row
        self.first_row = first_row
