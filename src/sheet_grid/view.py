"""Display helpers — sheet-order sorting, hidden columns, paging, record detail."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

from sheet_grid.columns import letter_to_index
from sheet_grid.models import Row, Table, sheet_order

SortOrder = Literal["asc", "desc"]
PLACEHOLDER = "—"

_NON_DIGIT_RE = re.compile(r"\D")
_MIN_PHONE_DIGITS = 7
_LOCAL_MOBILE_DIGITS = 10
_COUNTRY_CODE = "57"


def order_rows(rows: Sequence[Row], order: SortOrder = "asc") -> list[Row]:
    """Sort *rows* by their sheet order."""
    if order not in ("asc", "desc"):
        raise ValueError(f"Invalid sort order: {order!r}. Use asc/desc.")
    return sorted(rows, key=sheet_order, reverse=order == "desc")


def visible_columns(table: Table) -> list[int]:
    """Indices to render: never the sheet-order slot, and column A only if used."""
    col_a = letter_to_index("A")
    a_used = any(row[col_a].strip() for row in table.rows) if table.width > col_a else False
    return [i for i in range(1, table.width) if i != col_a or a_used]


def paginate(rows: Sequence[Row], page: int, size: int) -> list[Row]:
    """Return 1-based *page* of *rows*; out-of-range pages are empty."""
    if page < 1 or size < 1:
        raise ValueError("page and size must be >= 1")
    start = (page - 1) * size
    return list(rows[start:start + size])


def page_count(total: int, size: int) -> int:
    return max(1, -(-total // size))


# ── Phones ───────────────────────────────────────────────────────


def normalize_phone(value: str | None) -> str:
    """Digits of *value*, or ``""`` when it is too short to be a phone."""
    text = (value or "").strip()
    if not text or text == PLACEHOLDER:
        return ""
    digits = _NON_DIGIT_RE.sub("", text)
    return digits if len(digits) >= _MIN_PHONE_DIGITS else ""


def whatsapp_link(digits: str) -> str:
    """``https://wa.me/<digits>``; bare 10-digit mobiles get the country code."""
    digits = _NON_DIGIT_RE.sub("", digits or "")
    if len(digits) == _LOCAL_MOBILE_DIGITS:
        digits = _COUNTRY_CODE + digits
    return f"https://wa.me/{digits}"


# ── Record detail ────────────────────────────────────────────────


@dataclass
class RecordDetail:
    title: str
    summary: dict[str, str] = field(default_factory=dict)
    phones: dict[str, str] = field(default_factory=dict)
    fields: list[tuple[str, str]] = field(default_factory=list)


def build_detail(
    headers: Sequence[str], row: Row, field_index: Mapping[str, int | None]
) -> RecordDetail:
    """Assemble the detail panel for one row.

    *field_index* comes from :func:`sheet_grid.columns.resolve_fields`.
    Fields whose name ends in ``phone`` get a WhatsApp link when the value
    looks like a phone number.
    """
    summary: dict[str, str] = {}
    phones: dict[str, str] = {}
    for name, index in field_index.items():
        value = row[index].strip() if index is not None and index < len(row) else ""
        summary[name] = value or PLACEHOLDER
        if name.endswith("phone"):
            digits = normalize_phone(value)
            if digits:
                phones[name] = whatsapp_link(digits)

    fields: list[tuple[str, str]] = []
    for index in range(1, len(headers)):
        label = headers[index].strip()
        if not label:
            continue
        value = row[index].strip() if index < len(row) else ""
        fields.append((label, value or PLACEHOLDER))

    name = summary.get("name", PLACEHOLDER)
    title = name if name != PLACEHOLDER else "Ficha"
    return RecordDetail(title=title, summary=summary, phones=phones, fields=fields)
