"""CSV export — date threshold, descending date sort, column projection."""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date

import pandas as pd

from sheet_grid.columns import letter_to_index
from sheet_grid.models import ExportResult, Row
from sheet_grid.utils import format_date_for_file, sanitize_file_part

_DAY_MONTH_YEAR_RE = re.compile(
    r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)
_NEEDS_QUOTES_RE = re.compile(r'[,"\r\n]')


# ── Date parsing ─────────────────────────────────────────────────


def _parse_iso(s: pd.Series) -> pd.Series:
    parsed = pd.to_datetime(s, errors="coerce", format="ISO8601", utc=True)
    return parsed.dt.tz_localize(None)


def _parse_day_month_year(text: str) -> pd.Timestamp | None:
    match = _DAY_MONTH_YEAR_RE.match(text)
    if not match:
        return None
    day, month, year, hour, minute, second = (int(part or 0) for part in match.groups())
    if year < 100:
        year += 2000
    try:
        return pd.Timestamp(
            year=year, month=month, day=day, hour=hour, minute=minute, second=second
        )
    except ValueError:
        # 31/02, 25:00 and the like.
        return None


def parse_dates(values: Sequence[str] | pd.Series) -> pd.Series:
    """Parse sheet date cells; anything unparseable becomes ``NaT``.

    ISO-8601 is tried first (aware values are converted to naive UTC), then
    ``d/m/y[ h:m[:s]]`` with ``/`` or ``-`` separators and 2-digit years
    read as 20xx.
    """
    s = pd.Series(values, dtype="string").fillna("").str.strip()
    parsed = pd.Series(pd.NaT, index=s.index, dtype="datetime64[ns]")
    present = s != ""
    if not present.any():
        return parsed

    iso = _parse_iso(s[present])
    parsed.loc[iso.index] = iso

    pending = present & parsed.isna()
    if pending.any():
        fallback = [_parse_day_month_year(text) for text in s[pending]]
        dmy = pd.to_datetime(
            pd.Series(fallback, index=s[pending].index, dtype=object), errors="coerce"
        )
        parsed.loc[dmy.index] = dmy
    return parsed


def parse_sheet_date(value: str | None) -> pd.Timestamp | None:
    """Parse one cell; returns ``None`` when it is blank or unparseable."""
    result = parse_dates([value or ""]).iloc[0]
    return None if pd.isna(result) else result


def parse_min_date(raw: str | None) -> pd.Timestamp | None:
    """Validate a user-supplied lower bound.

    Blank means no bound.  Anything else that does not parse raises
    ``ValueError``.
    """
    text = (raw or "").strip()
    if not text:
        return None
    parsed = parse_sheet_date(text)
    if parsed is None:
        raise ValueError(f"Invalid date {text!r}. Use YYYY-MM-DD.")
    return parsed


# ── Export ───────────────────────────────────────────────────────


def build_csv(
    visible_rows: Sequence[Row],
    headers: Sequence[str],
    projection: Sequence[str],
    date_column: str,
    *,
    min_date: pd.Timestamp | date | None = None,
) -> ExportResult:
    """Filter, sort and project *visible_rows* into CSV text.

    Rows are kept when their *date_column* value is on or after *min_date*
    (blank/unparseable dates never pass a bound), sorted newest first with
    unparseable dates last, and projected onto *projection* letters in order.
    Ties keep their visible order.  A zero-row result has empty ``csv_text``.
    """
    if not projection:
        raise ValueError("Export projection must name at least one column")
    indices = [letter_to_index(letter) for letter in projection]
    date_index = letter_to_index(date_column)
    width = len(headers)

    def _column(position: int) -> list[str]:
        return [row[position] if position < len(row) else "" for row in visible_rows]

    frame = pd.DataFrame(
        {pos: _column(idx) for pos, idx in enumerate(indices)},
        columns=range(len(indices)),
        dtype="string",
    )
    frame["__date__"] = parse_dates(_column(date_index)).to_numpy()

    if min_date is not None:
        frame = frame[frame["__date__"] >= pd.Timestamp(min_date)]

    if frame.empty:
        return ExportResult(csv_text="", row_count=0)

    frame = frame.sort_values("__date__", ascending=False, na_position="last", kind="stable")
    out = frame.drop(columns="__date__").fillna("")
    for col in out.columns:
        out[col] = out[col].str.strip()

    export_headers = [headers[i] if i < width else f"Col{i}" for i in indices]
    lines = [_csv_line(export_headers)]
    lines.extend(_csv_line(record) for record in out.itertuples(index=False, name=None))
    return ExportResult(csv_text="".join(lines), row_count=len(out))


def _csv_field(value: str) -> str:
    # Any line break forces quotes, a bare CR included.
    if _NEEDS_QUOTES_RE.search(value):
        return '"' + value.replace('"', '""') + '"'
    return value


def _csv_line(values: Sequence[str]) -> str:
    return ",".join(_csv_field(str(value)) for value in values) + "\n"


def export_filename(prefix: str, since: str | None, today: date) -> str:
    """``<prefix>_<today>_desde_<since token>.csv``."""
    return f"{prefix}_{format_date_for_file(today)}_desde_{sanitize_file_part(since)}.csv"
