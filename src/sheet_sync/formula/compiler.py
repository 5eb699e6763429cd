"""Symbolic to positional formula compilation."""

from __future__ import annotations

from collections.abc import Sequence

from sheet_sync.formula.coordinates import cell_address
from sheet_sync.formula.directory import FormulaDirectory
from sheet_sync.formula.tokenizer import TokenType, tokenize_symbolic
from sheet_sync.utils.exceptions import FormulaTranslationError


def compile_formula(
    formula: str,
    columns: Sequence[str],
    row: int,
    directory: FormulaDirectory,
) -> str:
    """Compile a symbolic formula into the positional formula for one row.

    ``Sheet!Column`` becomes the absolute range covering every data row of
    that column; a same-sheet column name becomes its cell in ``row``.

    Args:
        formula: Symbolic formula text, without a leading ``=``.
        columns: Ordered columns of the sheet the formula is written into.
        row: 1-based worksheet row being materialized.
        directory: Columns and row counts of every sheet in the dataset.

    Returns:
        Positional formula text without a leading ``=``.

    Raises:
        FormulaTranslationError: If a resolved reference has no address.
    """
    positions = {column: index for index, column in enumerate(columns)}
    parts: list[str] = []
    for token in tokenize_symbolic(formula, columns, directory):
        if token.type is TokenType.SHEET_COLUMN:
            assert token.sheet is not None and token.name is not None
            reference = directory.range_reference(token.sheet, token.name)
            if reference is None:
                raise FormulaTranslationError(
                    f"Cannot address {token.value!r}",
                    sheet=token.sheet,
                    column=token.name,
                    formula=formula,
                )
            parts.append(reference)
        elif token.type is TokenType.COLUMN:
            assert token.name is not None
            parts.append(cell_address(positions[token.name], row))
        else:
            parts.append(token.value)
    return "".join(parts)
