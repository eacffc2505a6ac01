"""TSV parsing — raw tab-delimited text into a rectangular :class:`Table`."""

from __future__ import annotations

import re

from sheet_grid import SHEET_ORDER_HEADER
from sheet_grid.models import Row, Table

_LINE_BREAK_RE = re.compile(r"\r?\n")


def _pad(cells: list[str], width: int) -> list[str]:
    cells = cells[:width]
    if len(cells) < width:
        cells.extend([""] * (width - len(cells)))
    return cells


def parse_tsv(text: str | None) -> Table:
    """Parse tab-separated *text* into a :class:`Table`.

    Every line is padded or truncated to the widest line seen.  Data rows whose
    cells are all blank after trimming are dropped before numbering, so the
    sheet order of the surviving rows is always ``0..k-1``.

    Empty or whitespace-only input yields ``Table()`` (no headers), which
    callers treat as a load failure.
    """
    lines = _LINE_BREAK_RE.split(text or "")
    # Leading/trailing blank lines are layout noise; a leading tab on the
    # header line is an empty column A and must survive.
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        return Table()

    raw_rows = [line.split("\t") for line in lines]
    max_cols = max(len(row) for row in raw_rows)
    rows = [_pad(row, max_cols) for row in raw_rows]

    headers = (SHEET_ORDER_HEADER, *(cell.strip() for cell in rows[0]))

    data: list[Row] = []
    for row in rows[1:]:
        cells = [cell.strip() for cell in row]
        if not any(cells):
            continue
        data.append((str(len(data)), *cells))

    return Table(headers=headers, rows=tuple(data))
