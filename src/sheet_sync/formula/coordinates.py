"""Conversion between zero-based column indices and A1 coordinates."""

from __future__ import annotations

import re

from sheet_sync.utils.exceptions import FormatError

_CELL_REF_PATTERN = re.compile(r"^\$?([A-Za-z]+)\$?([0-9]+)$")


def index_to_letter(index: int) -> str:
    """Convert a 0-based column index to letters. 0=A, 25=Z, 26=AA, 27=AB."""
    if index < 0:
        raise FormatError(f"Column index must be non-negative, got {index}")
    chunks: list[str] = []
    current = index
    while current >= 0:
        chunks.append(chr(ord("A") + current % 26))
        current = current // 26 - 1
    return "".join(reversed(chunks))


def letter_to_index(letters: str) -> int:
    """Convert column letters to a 0-based index. A=0, Z=25, AA=26.

    Absolute markers (``$``) are ignored and lowercase is accepted.
    """
    normalized = letters.replace("$", "").upper()
    if not normalized or not all("A" <= char <= "Z" for char in normalized):
        raise FormatError(f"Invalid column letters: {letters!r}", value=letters)
    index = 0
    for char in normalized:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def split_cell_ref(ref: str) -> tuple[str, int]:
    """Split ``C2`` or ``$C$2`` into (``"C"``, 2)."""
    match = _CELL_REF_PATTERN.match(ref)
    if not match:
        raise FormatError(f"Invalid cell reference: {ref!r}", value=ref)
    return match.group(1).upper(), int(match.group(2))


def cell_address(column_index: int, row: int) -> str:
    """Relative single-cell address, e.g. ``cell_address(1, 2) == "B2"``."""
    return f"{index_to_letter(column_index)}{row}"


def absolute_column_range(column_index: int, start_row: int, end_row: int) -> str:
    """Absolute single-column range, e.g. ``$B$2:$B$4``."""
    letter = index_to_letter(column_index)
    return f"${letter}${start_row}:${letter}${end_row}"
