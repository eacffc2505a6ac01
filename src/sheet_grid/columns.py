"""Spreadsheet column letters, export projections and header synonym lookup."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

from openpyxl.utils import get_column_letter

from sheet_grid.utils import normalize_text

_RANGE_RE = re.compile(r"^\s*([A-Za-z]+)\s*[-:]\s*([A-Za-z]+)\s*$")
_LETTERS_RE = re.compile(r"^[A-Z]+$")
_NON_WORD_RE = re.compile(r"[^\w]+")


def letter_to_index(letter: str) -> int:
    """Map a column letter to its row index (``A`` -> 1, ``Z`` -> 26, ``AA`` -> 27).

    Index 0 is the sheet-order slot, so the base-26 value is the index as is.
    Case-insensitive; characters outside A-Z are ignored, so garbage maps to 0.
    """
    value = 0
    for ch in str(letter or "").upper():
        if "A" <= ch <= "Z":
            value = value * 26 + (ord(ch) - ord("A") + 1)
    return value


def expand_columns(items: Iterable[str]) -> list[str]:
    """Expand ``["A", "C-Z"]`` into ``["A", "C", "D", ..., "Z"]``.

    Single letters are upper-cased; ranges run in column order inclusive.
    """
    letters: list[str] = []
    for item in items:
        match = _RANGE_RE.match(item)
        if match:
            start = letter_to_index(match.group(1))
            stop = letter_to_index(match.group(2))
            if start > stop:
                raise ValueError(f"Column range runs backwards: {item!r}")
            letters.extend(get_column_letter(i) for i in range(start, stop + 1))
            continue
        letter = item.strip().upper()
        if not _LETTERS_RE.match(letter):
            raise ValueError(f"Invalid column letter: {item!r}")
        letters.append(letter)
    return letters


def header_key(header: str) -> str:
    """Normalise a header label for synonym matching."""
    return _NON_WORD_RE.sub(" ", normalize_text(header)).strip()


def build_header_index(headers: Sequence[str]) -> dict[str, int]:
    """Return ``{header_key: index}``; the first occurrence of a label wins."""
    index: dict[str, int] = {}
    for position, header in enumerate(headers):
        key = header_key(header)
        if key and key not in index:
            index[key] = position
    return index


def resolve_fields(
    headers: Sequence[str], aliases: Mapping[str, Sequence[str]]
) -> dict[str, int | None]:
    """Resolve logical fields to column indices once per load.

    For each field the first alias (in priority order) whose key matches a
    header wins; fields with no matching header resolve to ``None``.
    """
    index = build_header_index(headers)
    resolved: dict[str, int | None] = {}
    for name, candidates in aliases.items():
        resolved[name] = None
        for candidate in candidates:
            position = index.get(header_key(candidate))
            if position is not None:
                resolved[name] = position
                break
    return resolved
