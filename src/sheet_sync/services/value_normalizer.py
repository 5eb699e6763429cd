"""Canonicalization of cell values between workbook storage and JSON.

Date and month columns are stored in JSON as ``YYYY-MM-DD`` / ``YYYY-MM``
strings and written to workbooks as text cells, so the spreadsheet
application cannot reformat them when a user edits the sheet. On the way
back a text cell, a native date cell or a day serial are all accepted.

Percentage columns are stored as ``"33.2%"`` strings. Workbook percent cells
hold the underlying fraction (0.332) while plain numeric cells may already
hold the scaled number (33.2); magnitudes up to the configured threshold are
treated as fractions.

Nothing here raises: values that cannot be normalized are passed through
unchanged so user data is never destroyed.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

from openpyxl.utils.datetime import from_excel

from sheet_sync.config import ColumnConventions
from sheet_sync.models import CellValue

# Serials outside this window are ordinary numbers, not dates.
_SERIAL_MIN = 1
_SERIAL_MAX = 100000

_DATE_TEXT = re.compile(
    r"^\s*(\d{4})[-/.](\d{1,2})(?:[-/.](\d{1,2}))?(?:[ T]\d{1,2}:\d{2}(?::\d{2})?)?\s*$"
)


class ValueNormalizer:
    """Converts between raw cell values and canonical JSON row values."""

    def __init__(self, conventions: ColumnConventions | None = None) -> None:
        self.conventions = conventions or ColumnConventions()

    # ------------------------------------------------------------------ #
    # Workbook -> JSON
    # ------------------------------------------------------------------ #

    def from_cell(
        self, column: str, value: Any, number_format: str | None = None
    ) -> CellValue:
        """Normalize a value read from a worksheet cell.

        Args:
            column: Header name of the cell's column.
            value: Raw value from openpyxl (cached result for formula cells).
            number_format: The cell's number format, used to detect percents.

        Returns:
            A string or number suitable for the JSON dataset.
        """
        if self.conventions.is_calendar(column):
            normalized = self.normalize_calendar(column, value)
        else:
            normalized = self._plain(value)
        if self.conventions.is_percent(column) or (
            number_format is not None and "%" in number_format
        ):
            return self.normalize_percent(normalized)
        return normalized

    def normalize_calendar(self, column: str, value: Any) -> CellValue:
        """Return the canonical date/month string for any accepted encoding."""
        month_only = self.conventions.is_month(column)
        if isinstance(value, (datetime, date)):
            return _format_day(value, month_only)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if _SERIAL_MIN <= value < _SERIAL_MAX:
                return _format_day(from_excel(value), month_only)
            return self._plain(value)
        if isinstance(value, str):
            return _normalize_date_text(value, month_only)
        return self._plain(value)

    def normalize_percent(self, value: CellValue) -> CellValue:
        """Render a value as ``"xx.x%"``; unparsable values pass through."""
        if value == "":
            return ""
        if isinstance(value, str):
            if value.endswith("%"):
                return value
            try:
                number = float(value)
            except ValueError:
                return value
            if not math.isfinite(number):
                return value
        else:
            number = float(value)
        if abs(number) <= self.conventions.percent_fraction_threshold:
            number *= 100
        return f"{number:.{self.conventions.percent_decimals}f}%"

    @staticmethod
    def _plain(value: Any) -> CellValue:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, (int, float, str)):
            return value
        if isinstance(value, datetime):
            if value.time() == datetime.min.time():
                return value.date().isoformat()
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return str(value)

    # ------------------------------------------------------------------ #
    # JSON -> Workbook
    # ------------------------------------------------------------------ #

    def to_cell(self, column: str, value: CellValue | None) -> CellValue | None:
        """Return the value to store in a worksheet cell.

        Date and month values are always written as canonical text.
        """
        if value is None or value == "":
            return None
        if self.conventions.is_calendar(column):
            normalized = self.normalize_calendar(column, value)
            return str(normalized)
        return value


def _format_day(value: date, month_only: bool) -> str:
    if month_only:
        return f"{value.year:04d}-{value.month:02d}"
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _normalize_date_text(text: str, month_only: bool) -> str:
    match = _DATE_TEXT.match(text)
    if match is None:
        return text
    year, month = int(match.group(1)), int(match.group(2))
    day = match.group(3)
    if day is None and not month_only:
        return text
    try:
        parsed = date(year, month, int(day) if day else 1)
    except ValueError:
        return text
    return _format_day(parsed, month_only)
