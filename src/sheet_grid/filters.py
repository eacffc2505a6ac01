"""Free-text search + exact-match facet filters over a parsed table."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sheet_grid.columns import letter_to_index
from sheet_grid.models import Row, Table
from sheet_grid.utils import normalize_text

__all__ = ["FilterEngine", "FilterState", "normalize_text"]


def _cell(row: Row, index: int) -> str:
    return row[index] if index < len(row) else ""


def _collation_key(value: str) -> tuple[str, str]:
    # Raw value breaks ties so "Activo" and "activo" sort deterministically.
    return normalize_text(value), value


@dataclass(frozen=True)
class FilterState:
    """Snapshot of a search query plus facet selections, for restore on reload."""

    query: str = ""
    facets: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_clear(self) -> bool:
        return not self.query and not any(self.facets.values())


class FilterEngine:
    """Holds one :class:`Table` and the filter state applied to it.

    Only the per-row search text is precomputed, so ``visible_rows`` always
    reflects the current query and facets.
    """

    def __init__(self, table: Table, facet_columns: Iterable[str]) -> None:
        self._table = table
        self._query = ""
        self._facet_index: dict[str, int] = {}
        for letter in facet_columns:
            key = letter.strip().upper()
            index = letter_to_index(key)
            if index <= 0:
                raise ValueError(f"Invalid facet column letter: {letter!r}")
            self._facet_index[key] = index
        self._facets: dict[str, str] = {key: "" for key in self._facet_index}
        # Column 0 (sheet order) is not searchable.
        self._haystacks = [
            " ".join(normalize_text(cell) for cell in row[1:]) for row in table.rows
        ]

    # ── State ────────────────────────────────────────────────────

    @property
    def table(self) -> Table:
        return self._table

    @property
    def query(self) -> str:
        return self._query

    @property
    def facet_columns(self) -> list[str]:
        return list(self._facet_index)

    @property
    def facets(self) -> dict[str, str]:
        return dict(self._facets)

    def facet_header(self, letter: str) -> str:
        """Header label of facet *letter*, ``""`` when the sheet is narrower."""
        index = self._facet_index[letter.strip().upper()]
        headers = self._table.headers
        return headers[index] if index < len(headers) else ""

    def state(self) -> FilterState:
        return FilterState(query=self._query, facets=dict(self._facets))

    def restore(self, state: FilterState) -> None:
        """Apply a saved state; facets this engine does not know are ignored."""
        self._query = normalize_text(state.query)
        for letter, value in state.facets.items():
            key = letter.strip().upper()
            if key in self._facets:
                self._facets[key] = str(value or "").strip()
        self.refresh_facets()

    def set_query(self, query: str | None) -> None:
        self._query = normalize_text(query)

    def set_facet(self, letter: str, value: str | None) -> None:
        """Constrain facet *letter* to cells equal to *value*; blank clears it."""
        key = letter.strip().upper()
        if key not in self._facets:
            raise ValueError(
                f"Unknown facet column {letter!r}; expected one of {', '.join(self._facets)}"
            )
        self._facets[key] = str(value or "").strip()

    def clear_query(self) -> None:
        self._query = ""

    def clear_all(self) -> None:
        """Drop the query and every facet in one step."""
        self._query = ""
        self._facets = {key: "" for key in self._facets}

    # ── Evaluation ───────────────────────────────────────────────

    def _matches(self, position: int, row: Row, skip: str | None = None) -> bool:
        if self._query and self._query not in self._haystacks[position]:
            return False
        for letter, value in self._facets.items():
            if not value or letter == skip:
                continue
            if normalize_text(_cell(row, self._facet_index[letter])) != normalize_text(value):
                return False
        return True

    def visible_rows(self) -> list[Row]:
        """Rows passing the query (substring) and every facet (exact match)."""
        return [
            row for position, row in enumerate(self._table.rows) if self._matches(position, row)
        ]

    def facet_options(self, letter: str) -> list[str]:
        """Distinct non-empty raw values of *letter* among visible rows.

        The facet's own selection is left out of the visibility check so the
        list always offers a way back to a broader value.
        """
        key = letter.strip().upper()
        if key not in self._facet_index:
            raise ValueError(f"Unknown facet column {letter!r}")
        index = self._facet_index[key]
        seen: set[str] = set()
        for position, row in enumerate(self._table.rows):
            value = _cell(row, index).strip()
            if value and value not in seen and self._matches(position, row, skip=key):
                seen.add(value)
        return sorted(seen, key=_collation_key)

    def refresh_facets(self) -> dict[str, list[str]]:
        """Recompute every facet's options, clearing selections no longer offered.

        Clearing one facet can widen the others, so this repeats until no
        selection changes.
        """
        while True:
            options = {letter: self.facet_options(letter) for letter in self._facet_index}
            dangling = [
                letter
                for letter, selected in self._facets.items()
                if selected
                and normalize_text(selected) not in {normalize_text(v) for v in options[letter]}
            ]
            if not dangling:
                return options
            for letter in dangling:
                self._facets[letter] = ""
