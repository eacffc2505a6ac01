"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any

Row = tuple[str, ...]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


@dataclass(frozen=True)
class Table:
    """Parsed sheet: a synthetic sheet-order header followed by the source headers.

    Contract invariant: every row has exactly ``len(headers)`` cells and cell 0
    holds the row's sheet order as a decimal string.
    """

    headers: tuple[str, ...] = ()
    rows: tuple[Row, ...] = ()

    def __post_init__(self) -> None:
        width = len(self.headers)
        for position, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"row {position} has {len(row)} cells, expected {width}"
                )

    @property
    def is_empty(self) -> bool:
        return not self.headers

    @property
    def width(self) -> int:
        return len(self.headers)

    def __len__(self) -> int:
        return len(self.rows)


def sheet_order(row: Row) -> int:
    """Return the parse-time position stored in column 0 of *row*."""
    return int(row[0])


@dataclass
class ExportResult:
    """Outcome of one CSV export request."""

    csv_text: str = ""
    row_count: int = 0

    def __post_init__(self) -> None:
        self.row_count = _to_non_negative_int(self.row_count, "row_count")

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0


@dataclass
class ExportManifest:
    """Audit-trail manifest written next to every exported CSV."""

    tool: str = "sheet-grid"
    version: str = ""
    source: str = ""
    output_path: str = ""
    created_at_utc: str = ""
    since: str = ""
    search: str = ""
    facets: dict[str, str] = field(default_factory=dict)
    columns: list[str] = field(default_factory=list)
    rows_in: int = 0
    rows_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.columns = _to_string_list(self.columns, "columns")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.status not in {"success", "empty", "failed"}:
            raise ValueError(f"Invalid status: {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "source": self.source,
            "output_path": self.output_path,
            "created_at_utc": self.created_at_utc,
            "since": self.since,
            "search": self.search,
            "facets": dict(self.facets),
            "columns": list(self.columns),
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
