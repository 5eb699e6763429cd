"""Lossless lexers for symbolic and positional formula text.

Both lexers split a formula into tokens whose values concatenate back to the
input. Only reference tokens are ever rewritten; everything else (function
names, numbers, operators, string literals, whitespace) passes through.

Symbolic text refers to data by column name (``销量*售价``) or by
``Sheet!Column``. Positional text refers to cells (``B2*C2``) or to absolute
ranges in another sheet (``销售明细!$B$2:$B$4``).

At every position the lexers try, in order: string literal, sheet-qualified
reference, same-sheet reference, number, word, single character. Candidate
names are tried longest first, and text that has been tokenized is never
rescanned, so a short name can never match inside a longer one.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum, auto
from typing import NamedTuple

from sheet_sync.formula.directory import (
    FormulaDirectory,
    quote_sheet_name,
    unquote_sheet_name,
)


class TokenType(Enum):
    STRING = auto()
    NUMBER = auto()
    WORD = auto()
    OTHER = auto()
    # symbolic
    COLUMN = auto()
    SHEET_COLUMN = auto()
    # positional
    CELL = auto()
    AREA = auto()
    SHEET_REF = auto()
    QUALIFIER = auto()


class Token(NamedTuple):
    type: TokenType
    value: str
    start: int
    end: int
    sheet: str | None = None
    name: str | None = None


_STRING = re.compile(r'"(?:""|[^"])*"?')
_NUMBER = re.compile(r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_WORD = re.compile(r"[\w.]+")
_QUALIFIER = re.compile(r"(?:'(?:[^']|'')+'|[^\W\d][\w.]*)!")
_CELL = re.compile(r"\$?[A-Z]{1,3}\$?[0-9]+")
_AREA = re.compile(r"\$?[A-Z]{1,3}\$?[0-9]+(?::\$?[A-Z]{1,3}\$?[0-9]+)?")


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char in "_."


def _ends_cleanly(text: str, end: int, name: str) -> bool:
    """True when a name ending at ``end`` is not part of a longer word or call."""
    if end >= len(text) or not name or not _is_word_char(name[-1]):
        return True
    following = text[end]
    return not _is_word_char(following) and following != "("


def _fallback(text: str, pos: int) -> Token:
    for token_type, pattern in (
        (TokenType.NUMBER, _NUMBER),
        (TokenType.WORD, _WORD),
    ):
        match = pattern.match(text, pos)
        if match:
            return Token(token_type, match.group(0), pos, match.end())
    return Token(TokenType.OTHER, text[pos], pos, pos + 1)


def _string_literal(text: str, pos: int) -> Token | None:
    if text[pos] != '"':
        return None
    match = _STRING.match(text, pos)
    assert match is not None
    return Token(TokenType.STRING, match.group(0), pos, match.end())


def _follows_qualifier(tokens: list[Token]) -> bool:
    return bool(tokens) and tokens[-1].value.endswith("!")


# =============================================================================
# Symbolic
# =============================================================================


def _match_sheet_column(
    text: str, pos: int, directory: FormulaDirectory
) -> Token | None:
    for sheet in directory.names_longest_first:
        for prefix in {sheet + "!", quote_sheet_name(sheet) + "!"}:
            if not text.startswith(prefix, pos):
                continue
            after = pos + len(prefix)
            for column in sorted(directory[sheet].columns, key=len, reverse=True):
                end = after + len(column)
                if text.startswith(column, after) and _ends_cleanly(text, end, column):
                    return Token(
                        TokenType.SHEET_COLUMN,
                        text[pos:end],
                        pos,
                        end,
                        sheet=sheet,
                        name=column,
                    )
    return None


def _match_column(text: str, pos: int, columns: Sequence[str]) -> Token | None:
    for column in columns:
        end = pos + len(column)
        if text.startswith(column, pos) and _ends_cleanly(text, end, column):
            return Token(TokenType.COLUMN, column, pos, end, name=column)
    return None


def tokenize_symbolic(
    text: str, columns: Sequence[str], directory: FormulaDirectory
) -> list[Token]:
    """Split symbolic formula text into tokens.

    Args:
        text: Symbolic formula, e.g. ``SUMPRODUCT(销售明细!销量,销售明细!售价)``.
        columns: Columns of the sheet the formula belongs to.
        directory: All sheets of the dataset.

    Returns:
        Tokens covering ``text``; ``SHEET_COLUMN`` and ``COLUMN`` tokens carry
        the resolved sheet and column names.
    """
    by_length = sorted((c for c in columns if c), key=len, reverse=True)
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        token = _string_literal(text, pos)
        if token is None and _follows_qualifier(tokens):
            # Column part of an unknown sheet qualifier stays opaque.
            token = _fallback(text, pos)
        if token is None:
            token = _match_sheet_column(text, pos, directory)
        if token is None:
            token = _match_column(text, pos, by_length)
        if token is None:
            token = _fallback(text, pos)
        tokens.append(token)
        pos = token.end
    return tokens


# =============================================================================
# Positional
# =============================================================================


def _match_sheet_ref(text: str, pos: int) -> Token | None:
    qualifier = _QUALIFIER.match(text, pos)
    if qualifier is None:
        return None
    sheet = unquote_sheet_name(qualifier.group(0)[:-1])
    area = _AREA.match(text, qualifier.end())
    if area is None or not _ends_cleanly(text, area.end(), area.group(0)):
        return Token(
            TokenType.QUALIFIER,
            qualifier.group(0),
            pos,
            qualifier.end(),
            sheet=sheet,
        )
    return Token(
        TokenType.SHEET_REF,
        text[pos : area.end()],
        pos,
        area.end(),
        sheet=sheet,
        name=area.group(0),
    )


def _match_cell(text: str, pos: int) -> Token | None:
    area = _AREA.match(text, pos)
    if area is not None and ":" in area.group(0):
        # Same-sheet ranges are never tied to one row; keep them whole.
        if not _ends_cleanly(text, area.end(), area.group(0)):
            return None
        return Token(TokenType.AREA, area.group(0), pos, area.end())
    match = _CELL.match(text, pos)
    if match is None or not _ends_cleanly(text, match.end(), match.group(0)):
        return None
    return Token(TokenType.CELL, match.group(0), pos, match.end(), name=match.group(0))


def tokenize_positional(text: str) -> list[Token]:
    """Split positional formula text into tokens.

    ``SHEET_REF`` tokens carry the unquoted sheet name and the cell or area
    text after ``!``. ``CELL`` tokens are bare same-sheet cells and ``AREA``
    tokens bare same-sheet ranges such as ``B2:B4``. A qualifier whose
    reference is not an A1 cell or area (whole columns, named ranges) becomes
    a ``QUALIFIER`` token and the text after it stays opaque.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        token = _string_literal(text, pos)
        if token is None and _follows_qualifier(tokens):
            token = _fallback(text, pos)
        if token is None:
            token = _match_sheet_ref(text, pos)
        if token is None:
            token = _match_cell(text, pos)
        if token is None:
            token = _fallback(text, pos)
        tokens.append(token)
        pos = token.end
    return tokens


def render(tokens: Sequence[Token]) -> str:
    """Concatenate token values back into formula text."""
    return "".join(token.value for token in tokens)
