"""Positional to symbolic formula decompilation."""

from __future__ import annotations

import re
from collections.abc import Sequence

from sheet_sync.formula.coordinates import letter_to_index, split_cell_ref
from sheet_sync.formula.directory import FormulaDirectory
from sheet_sync.formula.tokenizer import Token, TokenType, tokenize_positional


_ABSOLUTE_COLUMN_RANGE = re.compile(r"\$([A-Z]+)\$[0-9]+:\$([A-Z]+)\$[0-9]+")


def _collapse_range(token: Token, directory: FormulaDirectory) -> str:
    """``Sheet!$X$a:$X$b`` -> ``Sheet!Column``; anything else verbatim."""
    assert token.sheet is not None and token.name is not None
    info = directory.get(token.sheet)
    match = _ABSOLUTE_COLUMN_RANGE.fullmatch(token.name)
    if info is None or match is None or match.group(1) != match.group(2):
        return token.value
    column = info.column_at(letter_to_index(match.group(1)))
    if column is None:
        return token.value
    return f"{token.sheet}!{column}"


def _resolve_cell(token: Token, columns: Sequence[str], row: int) -> str:
    assert token.name is not None
    letters, cell_row = split_cell_ref(token.name)
    if cell_row != row:
        return token.value
    index = letter_to_index(letters)
    if 0 <= index < len(columns):
        return columns[index]
    return token.value


def decompile_formula(
    formula: str,
    columns: Sequence[str],
    row: int,
    directory: FormulaDirectory,
) -> str:
    """Rebuild the symbolic formula from a cell's positional formula.

    Absolute single-column ranges into a known sheet collapse to
    ``Sheet!Column``. Bare references to ``row`` become the column name at
    that index. References to other rows, same-sheet ranges, multi-column
    ranges, single cells in other sheets and unknown sheets are kept verbatim.

    Args:
        formula: Positional formula text; a leading ``=`` is dropped.
        columns: Ordered columns of the sheet the cell was read from.
        row: 1-based worksheet row of the cell.
        directory: Columns and row counts of every sheet read.

    Returns:
        Symbolic formula text.
    """
    text = formula[1:] if formula.startswith("=") else formula
    parts: list[str] = []
    for token in tokenize_positional(text):
        if token.type is TokenType.SHEET_REF:
            parts.append(_collapse_range(token, directory))
        elif token.type is TokenType.CELL:
            parts.append(_resolve_cell(token, columns, row))
        else:
            parts.append(token.value)
    return "".join(parts)
