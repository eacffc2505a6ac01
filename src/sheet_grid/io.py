"""I/O helpers — fetch/load the TSV source, write JSON and text artifacts."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any

import httpx

from sheet_grid.models import Table
from sheet_grid.parser import parse_tsv
from sheet_grid.utils import with_cache_buster

_FETCH_TIMEOUT = httpx.Timeout(connect=10.0, read=30.0, write=10.0, pool=30.0)


class LoadError(Exception):
    """The source document could not be fetched, read or parsed."""


# ── Loading ──────────────────────────────────────────────────────


def read_source_file(path: Path) -> str:
    """Read a local TSV export, trying common encodings in turn.

    Raises
    ------
    LoadError
        If *path* does not exist or cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        raise LoadError(f"Input file not found: {path}")
    if path.is_dir():
        raise LoadError(f"Input is a directory, not a file: {path}")

    raw = path.read_bytes()
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as exc:
            last_exc = exc
    raise LoadError(f"Could not decode {path}") from last_exc


def _fetch_with_client(client: httpx.Client, url: str) -> str:
    try:
        response = client.get(
            with_cache_buster(url), headers={"Cache-Control": "no-cache"}
        )
    except httpx.HTTPError as exc:
        raise LoadError(f"Network error fetching {url}: {exc}") from exc
    if not response.is_success:
        raise LoadError(f"HTTP {response.status_code} fetching {url}")
    return response.text


def fetch_source(url: str, *, client: httpx.Client | None = None) -> str:
    """GET the published TSV at *url* with a cache-busting ``_ts`` parameter."""
    if client is not None:
        return _fetch_with_client(client, url)
    with httpx.Client(follow_redirects=True, timeout=_FETCH_TIMEOUT) as local_client:
        return _fetch_with_client(local_client, url)


def parse_source(text: str) -> Table:
    """Parse TSV *text*; a document without headers is a load failure."""
    table = parse_tsv(text)
    if table.is_empty:
        raise LoadError("Empty headers or invalid TSV document")
    return table


def load_table(
    *,
    path: Path | None = None,
    url: str | None = None,
    client: httpx.Client | None = None,
) -> Table:
    """Load from a local *path* or a remote *url* (exactly one is required)."""
    if path is not None and url is None:
        text = read_source_file(path)
    elif url is not None and path is None:
        text = fetch_source(url, client=client)
    else:
        raise ValueError("Provide exactly one of path or url")
    return parse_source(text)


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_text(path: Path, text: str) -> Path:
    """Write *text* to *path* atomically (tmp file + replace)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8", newline="")
    tmp_path.replace(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return write_text(path, payload)
