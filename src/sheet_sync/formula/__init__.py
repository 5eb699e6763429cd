"""Bidirectional translation between symbolic and positional formulas."""

from sheet_sync.formula.compiler import compile_formula
from sheet_sync.formula.coordinates import index_to_letter, letter_to_index
from sheet_sync.formula.decompiler import decompile_formula
from sheet_sync.formula.directory import (
    FIRST_DATA_ROW,
    HEADER_ROW,
    FormulaDirectory,
    SheetInfo,
)

__all__ = [
    "FIRST_DATA_ROW",
    "HEADER_ROW",
    "FormulaDirectory",
    "SheetInfo",
    "compile_formula",
    "decompile_formula",
    "index_to_letter",
    "letter_to_index",
]
