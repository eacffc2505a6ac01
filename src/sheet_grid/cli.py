"""CLI entry point for sheet-grid."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from sheet_grid import DEFAULT_PAGE_SIZE, __version__
from sheet_grid.columns import resolve_fields
from sheet_grid.config import GridConfig, load_config
from sheet_grid.export import export_filename
from sheet_grid.io import LoadError, load_table, write_json, write_text
from sheet_grid.models import ExportManifest, Table, sheet_order
from sheet_grid.session import GridSession
from sheet_grid.utils import sha256_text, utcnow_iso
from sheet_grid.view import build_detail, order_rows, page_count, paginate, visible_columns

app = typer.Typer(
    name="sgrid",
    help="sheet-grid — Filter a published spreadsheet export and cut CSV subsets.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class SortOrderOption(str, Enum):
    asc = "asc"
    desc = "desc"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sheet-grid v{__version__}")
        raise typer.Exit()


def _parse_facet_args(raw: list[str] | None) -> dict[str, str]:
    """Parse ``--facet B=Activo`` pairs into ``{"B": "Activo"}``."""
    if not raw:
        return {}
    facets: dict[str, str] = {}
    for item in raw:
        if "=" not in item:
            raise ValueError(f"Invalid --facet value: {item!r}  (expected LETTER=value)")
        letter, value = item.split("=", 1)
        letter = letter.strip().upper()
        if not letter:
            raise ValueError("--facet entries must name a column letter (LETTER=value)")
        facets[letter] = value.strip()
    return facets


def _resolve_config(profile: Path | None, url: str | None) -> GridConfig:
    return load_config(profile).with_overrides(url=url)


def _load(config: GridConfig, input_file: Path | None) -> Table:
    if input_file is not None:
        return load_table(path=input_file)
    if not config.url:
        raise ValueError("No source given: pass --input, --url, or url= in --profile")
    return load_table(url=config.url)


def _open_session(
    *,
    input_file: Path | None,
    url: str | None,
    profile: Path | None,
    search: str | None,
    facet: list[str] | None,
    echo: Callable[..., None],
) -> GridSession:
    """Load the source and apply filters, exiting 2 on any load/validation error."""
    try:
        config = _resolve_config(profile, url)
        facets = _parse_facet_args(facet)
        echo("[blue]>[/blue] Loading data …")
        session = GridSession(config)
        session.reload(lambda: _load(config, input_file))
        if search:
            session.search_now(search)
        for letter, value in facets.items():
            session.set_facet(letter, value)
        # A later facet can clear an earlier one, so check once all are applied.
        active = session.engine.facets
        for letter, value in facets.items():
            if value and not active[letter]:
                console.print(
                    f"[yellow]![/yellow] No visible record has {letter}={value!r}; filter ignored"
                )
    except (LoadError, ValueError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)

    echo(f"  {len(session.table)} records loaded")
    return session


def _source_label(input_file: Path | None, config: GridConfig) -> str:
    if input_file is not None:
        return str(input_file.resolve())
    return config.url or ""


def _print_facets(session: GridSession) -> None:
    tbl = RichTable(title="Filters", show_lines=False)
    tbl.add_column("Column", style="bold")
    tbl.add_column("Header")
    tbl.add_column("Selected")
    tbl.add_column("Options")
    engine = session.engine
    facets = engine.facets
    for letter, options in session.facet_options.items():
        header = engine.facet_header(letter)
        tbl.add_row(letter, header, facets.get(letter) or "all", ", ".join(options) or "-")
    console.print(tbl)


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """sheet-grid CLI."""


# Shared option declarations

_INPUT_OPT = typer.Option(
    None, "--input", "-i", help="Local TSV export instead of fetching --url.",
)
_URL_OPT = typer.Option(None, "--url", "-u", help="Published TSV URL to fetch.")
_PROFILE_OPT = typer.Option(
    None, "--profile", help="Profile file with key=value settings (facet=B, export=C-Z, ...).",
)
_SEARCH_OPT = typer.Option(
    None, "--search", "-s", help="Free-text search (accent-insensitive substring).",
)
_FACET_OPT = typer.Option(
    None, "--facet", "-f", help="Exact facet filter LETTER=value, e.g. --facet B=Activo.",
)
_QUIET_OPT = typer.Option(False, "--quiet", "-q", help="Suppress informational output.")


# ── show command ─────────────────────────────────────────────────


@app.command()
def show(
    input_file: Path | None = _INPUT_OPT,
    url: str | None = _URL_OPT,
    profile: Path | None = _PROFILE_OPT,
    search: str | None = _SEARCH_OPT,
    facet: list[str] | None = _FACET_OPT,
    order: SortOrderOption = typer.Option(
        SortOrderOption.asc, "--order", help="Sheet order: asc or desc.",
    ),
    page: int = typer.Option(1, "--page", min=1, help="Page number (1-based)."),
    page_size: int = typer.Option(
        DEFAULT_PAGE_SIZE, "--page-size", min=1, help="Rows per page.",
    ),
    quiet: bool = _QUIET_OPT,
) -> None:
    """Print the filtered rows of the sheet."""
    echo = _printer(quiet)
    session = _open_session(
        input_file=input_file, url=url, profile=profile,
        search=search, facet=facet, echo=echo,
    )
    table = session.table
    rows = order_rows(session.visible_rows(), order.value)
    columns = visible_columns(table)

    tbl = RichTable(
        title=f"{len(rows)} of {len(table)} records "
        f"(page {page}/{page_count(len(rows), page_size)})",
        show_lines=False,
    )
    tbl.add_column("#", justify="right", style="dim")
    for index in columns:
        tbl.add_column(escape(table.headers[index]), overflow="fold")
    for row in paginate(rows, page, page_size):
        tbl.add_row(str(sheet_order(row) + 1), *(escape(row[i]) for i in columns))
    console.print(tbl)

    if not quiet:
        _print_facets(session)


# ── facets command ───────────────────────────────────────────────


@app.command()
def facets(
    input_file: Path | None = _INPUT_OPT,
    url: str | None = _URL_OPT,
    profile: Path | None = _PROFILE_OPT,
    search: str | None = _SEARCH_OPT,
    facet: list[str] | None = _FACET_OPT,
) -> None:
    """List the options each facet offers under the current filters."""
    session = _open_session(
        input_file=input_file, url=url, profile=profile,
        search=search, facet=facet, echo=_noop,
    )
    for letter, options in session.facet_options.items():
        console.print(f"{letter}: {' | '.join(options)}", markup=False, highlight=False)


# ── detail command ───────────────────────────────────────────────


@app.command()
def detail(
    row_number: int = typer.Option(
        ..., "--row", "-r", min=1, help="Record number as shown by `show` (1-based).",
    ),
    input_file: Path | None = _INPUT_OPT,
    url: str | None = _URL_OPT,
    profile: Path | None = _PROFILE_OPT,
    quiet: bool = _QUIET_OPT,
) -> None:
    """Show every field of one record, with phone links."""
    session = _open_session(
        input_file=input_file, url=url, profile=profile,
        search=None, facet=None, echo=_printer(quiet),
    )
    table = session.table
    if row_number > len(table):
        _err(f"Record {row_number} does not exist ({len(table)} records)")
        raise typer.Exit(code=2)

    field_index = resolve_fields(table.headers, session.config.field_aliases)
    record = build_detail(table.headers, table.rows[row_number - 1], field_index)

    tbl = RichTable(show_header=False, show_lines=False, box=None)
    tbl.add_column("Field", style="bold")
    tbl.add_column("Value", overflow="fold")
    for label, value in record.fields:
        tbl.add_row(escape(label), escape(value))
    console.print(Panel(tbl, title=escape(record.title), border_style="blue"))
    for name, link in record.phones.items():
        console.print(f"  {name}: {link}")


# ── export command ───────────────────────────────────────────────


def _write_manifest(out_dir: Path, manifest: ExportManifest) -> Path:
    return write_json(out_dir / "export_manifest.json", manifest.to_dict())


@app.command()
def export(
    input_file: Path | None = _INPUT_OPT,
    url: str | None = _URL_OPT,
    profile: Path | None = _PROFILE_OPT,
    search: str | None = _SEARCH_OPT,
    facet: list[str] | None = _FACET_OPT,
    since: str | None = typer.Option(
        None, "--since",
        help="Only rows dated on/after this day (YYYY-MM-DD). Empty = everything.",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o", help="Directory for the CSV + manifest.",
    ),
    quiet: bool = _QUIET_OPT,
) -> None:
    """Export the filtered rows as CSV, newest first.

    Exit 0 = written (or nothing to export), exit 2 = load/validation failure.
    """
    echo = _printer(quiet)
    session = _open_session(
        input_file=input_file, url=url, profile=profile,
        search=search, facet=facet, echo=echo,
    )
    config = session.config
    out_dir.mkdir(parents=True, exist_ok=True)
    manifest = ExportManifest(
        version=__version__,
        source=_source_label(input_file, config),
        created_at_utc=utcnow_iso(),
        since=(since or "").strip(),
        search=session.engine.query,
        facets={k: v for k, v in session.engine.facets.items() if v},
        columns=list(config.export_columns),
    )

    try:
        visible = len(session.visible_rows())
        manifest.rows_in = visible
        result = session.export(since)
    except ValueError as exc:
        manifest.status = "failed"
        manifest.error_code = 2
        manifest.error_message = str(exc)
        manifest_path = _write_manifest(out_dir, manifest)
        _err(str(exc))
        console.print(f"  Manifest -> {manifest_path}")
        raise typer.Exit(code=2)
    except Exception as exc:
        message = f"Unexpected internal error: {exc}"
        manifest.status = "failed"
        manifest.error_code = 1
        manifest.error_message = message
        manifest_path = _write_manifest(out_dir, manifest)
        _err(message)
        console.print(f"  Manifest -> {manifest_path}")
        raise typer.Exit(code=1)

    if result.is_empty:
        manifest.status = "empty"
        manifest_path = _write_manifest(out_dir, manifest)
        console.print("[yellow]![/yellow] No records to export for those filters/date.")
        echo(f"  Manifest -> {manifest_path}")
        return

    csv_path = write_text(
        out_dir / export_filename(config.filename_prefix, since, date.today()),
        result.csv_text,
    )
    manifest.output_path = str(csv_path.resolve())
    manifest.rows_out = result.row_count
    manifest.sha256 = sha256_text(result.csv_text)
    manifest_path = _write_manifest(out_dir, manifest)

    echo(f"  CSV      -> {csv_path}")
    echo(f"  Manifest -> {manifest_path}")
    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {result.row_count} rows -> {csv_path.name}",
            title="Export Complete", border_style="green",
        ))
