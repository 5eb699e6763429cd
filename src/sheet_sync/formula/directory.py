"""Per-run lookup of every sheet's column order and data row count."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from sheet_sync.formula.coordinates import absolute_column_range

HEADER_ROW = 1
FIRST_DATA_ROW = 2

_PLAIN_SHEET_NAME = re.compile(r"[^\W\d][\w.]*")
_CELL_LIKE_NAME = re.compile(r"[A-Za-z]{1,3}[0-9]+|[Rr][0-9]*[Cc][0-9]*")


class _SheetLike(Protocol):
    name: str
    columns: list[str]
    rows: list[Any]


def quote_sheet_name(name: str) -> str:
    """Return ``name`` as it must appear before ``!`` in a workbook formula.

    Plain identifiers (including CJK names) stay bare; anything else is wrapped
    in single quotes with embedded quotes doubled.
    """
    if _PLAIN_SHEET_NAME.fullmatch(name) and not _CELL_LIKE_NAME.fullmatch(name):
        return name
    return "'" + name.replace("'", "''") + "'"


def unquote_sheet_name(text: str) -> str:
    """Strip the quotes added by :func:`quote_sheet_name`; bare names pass through."""
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        return text[1:-1].replace("''", "'")
    return text


@dataclass(frozen=True)
class SheetInfo:
    """Column order and data row count of one sheet."""

    columns: tuple[str, ...]
    row_count: int

    @property
    def first_row(self) -> int:
        return FIRST_DATA_ROW

    @property
    def last_row(self) -> int:
        # An empty sheet still addresses its first data row.
        return max(FIRST_DATA_ROW, FIRST_DATA_ROW + self.row_count - 1)

    def column_index(self, column: str) -> int | None:
        try:
            return self.columns.index(column)
        except ValueError:
            return None

    def column_at(self, index: int) -> str | None:
        if 0 <= index < len(self.columns):
            return self.columns[index]
        return None


class FormulaDirectory(Mapping[str, SheetInfo]):
    """Read-only mapping of sheet name to :class:`SheetInfo`.

    Built once per conversion from the full dataset and consulted by both the
    compiler and the decompiler to turn ``Sheet!Column`` into an absolute
    range and back.
    """

    def __init__(self, sheets: Mapping[str, SheetInfo] | None = None) -> None:
        self._sheets: dict[str, SheetInfo] = dict(sheets or {})
        self._names_longest_first = sorted(self._sheets, key=len, reverse=True)

    @classmethod
    def from_sheets(cls, sheets: Iterable[_SheetLike]) -> FormulaDirectory:
        """Build the directory from sheet models (anything with name/columns/rows)."""
        return cls(
            {
                sheet.name: SheetInfo(tuple(sheet.columns), len(sheet.rows))
                for sheet in sheets
            }
        )

    def __getitem__(self, name: str) -> SheetInfo:
        return self._sheets[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sheets)

    def __len__(self) -> int:
        return len(self._sheets)

    @property
    def names_longest_first(self) -> list[str]:
        return list(self._names_longest_first)

    def range_reference(self, sheet: str, column: str) -> str | None:
        """Return ``Sheet!$X$2:$X$n`` for a column, or None when unknown."""
        info = self._sheets.get(sheet)
        if info is None:
            return None
        index = info.column_index(column)
        if index is None:
            return None
        cells = absolute_column_range(index, info.first_row, info.last_row)
        return f"{quote_sheet_name(sheet)}!{cells}"
