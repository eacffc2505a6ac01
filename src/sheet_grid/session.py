"""Session state — the loaded table, its filters, reloads and debounced search."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from sheet_grid import SEARCH_DEBOUNCE_SECONDS
from sheet_grid.config import GridConfig
from sheet_grid.export import build_csv, parse_min_date
from sheet_grid.filters import FilterEngine
from sheet_grid.models import ExportResult, Row, Table


class Debouncer:
    """Coalesce rapid calls so *func* runs once per idle window.

    Driven by :meth:`poll` from the caller's event loop; *clock* is injectable
    for tests.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._func = func
        self._wait = wait
        self._clock = clock
        self._pending: tuple[Any, ...] | None = None
        self._deadline = 0.0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def call(self, *args: Any) -> None:
        self._pending = args
        self._deadline = self._clock() + self._wait

    def poll(self) -> bool:
        """Run the pending call if the window has elapsed; return whether it ran."""
        if self._pending is None or self._clock() < self._deadline:
            return False
        return self.flush()

    def flush(self) -> bool:
        if self._pending is None:
            return False
        args, self._pending = self._pending, None
        self._func(*args)
        return True

    def cancel(self) -> None:
        self._pending = None


class GridSession:
    """Owns the current table and filter engine for one user.

    A reload builds a complete new engine and swaps it in only when it is the
    most recently started reload; older completions are discarded.
    """

    def __init__(
        self,
        config: GridConfig | None = None,
        *,
        debounce: float = SEARCH_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or GridConfig()
        self._engine: FilterEngine | None = None
        self._generation = 0
        self._search = Debouncer(self._apply_search, debounce, clock=clock)
        self.facet_options: dict[str, list[str]] = {}

    # ── Loading ──────────────────────────────────────────────────

    @property
    def loaded(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> FilterEngine:
        if self._engine is None:
            raise RuntimeError("No table loaded")
        return self._engine

    @property
    def table(self) -> Table:
        return self.engine.table

    def begin_reload(self) -> int:
        """Mark the start of a reload and return its token."""
        self._generation += 1
        return self._generation

    def complete_reload(self, token: int, table: Table, *, keep_filters: bool = False) -> bool:
        """Install *table* if *token* is still current; return whether it was."""
        if token != self._generation:
            return False
        engine = FilterEngine(table, self.config.facet_columns)
        if keep_filters and self._engine is not None:
            engine.restore(self._engine.state())
        self._search.cancel()
        self._engine = engine
        self.facet_options = engine.refresh_facets()
        return True

    def reload(self, load: Callable[[], Table], *, keep_filters: bool = False) -> bool:
        """Run *load* and install its table; exceptions leave the old table."""
        token = self.begin_reload()
        table = load()
        return self.complete_reload(token, table, keep_filters=keep_filters)

    # ── Filtering ────────────────────────────────────────────────

    def _refresh(self) -> None:
        self.facet_options = self.engine.refresh_facets()

    def _apply_search(self, query: str) -> None:
        self.engine.set_query(query)
        self._refresh()

    def search(self, query: str) -> None:
        """Queue a query change; it applies on the next :meth:`poll` after the window."""
        self._search.call(query)

    def poll(self) -> bool:
        return self._search.poll()

    def search_now(self, query: str) -> None:
        self._search.cancel()
        self._apply_search(query)

    def set_facet(self, letter: str, value: str | None) -> None:
        self._search.flush()
        self.engine.set_facet(letter, value)
        self._refresh()

    def clear_search(self) -> None:
        self._search.cancel()
        self.engine.clear_query()
        self._refresh()

    def clear_filters(self) -> None:
        """Reset query and facets together, refreshing options once."""
        self._search.cancel()
        self.engine.clear_all()
        self._refresh()

    def visible_rows(self) -> list[Row]:
        self._search.flush()
        return self.engine.visible_rows()

    # ── Export ───────────────────────────────────────────────────

    def export(self, since: str | None = None) -> ExportResult:
        """Build the CSV for the visible rows; a bad *since* raises ``ValueError``."""
        min_date = parse_min_date(since)
        return build_csv(
            self.visible_rows(),
            self.table.headers,
            self.config.export_columns,
            self.config.date_column,
            min_date=min_date,
        )
