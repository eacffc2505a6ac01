from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from sheet_grid.io import (
    LoadError,
    fetch_source,
    load_table,
    parse_source,
    read_source_file,
    write_json,
    write_text,
)

URL = "https://docs.example.com/sheet/pub?gid=1&output=tsv"


def _client(handler) -> httpx.Client:  # type: ignore[no-untyped-def]
    return httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)


def test_read_source_file_strips_utf8_bom(tmp_path: Path) -> None:
    path = tmp_path / "data.tsv"
    path.write_bytes("\ufeffNombre\tEdad\nAna\t9\n".encode("utf-8"))

    assert read_source_file(path) == "Nombre\tEdad\nAna\t9\n"


def test_read_source_file_falls_back_to_latin1(tmp_path: Path) -> None:
    path = tmp_path / "data.tsv"
    path.write_bytes("Nombre\nMaría\n".encode("latin-1"))

    assert read_source_file(path) == "Nombre\nMaría\n"


def test_read_source_file_missing_and_directory(tmp_path: Path) -> None:
    with pytest.raises(LoadError, match="not found"):
        read_source_file(tmp_path / "nope.tsv")
    with pytest.raises(LoadError, match="directory"):
        read_source_file(tmp_path)


def test_fetch_source_adds_cache_buster_and_returns_text() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="Nombre\nAna\n")

    client = _client(handler)
    try:
        text = fetch_source(URL, client=client)
    finally:
        client.close()

    assert text == "Nombre\nAna\n"
    query = parse_qs(urlsplit(str(seen[0].url)).query)
    assert query["gid"] == ["1"]
    assert query["output"] == ["tsv"]
    assert query["_ts"][0].isdigit()
    assert seen[0].headers["cache-control"] == "no-cache"


@pytest.mark.parametrize("status_code", [403, 404, 500])
def test_fetch_source_non_success_status_is_load_error(status_code: int) -> None:
    client = _client(lambda request: httpx.Response(status_code, text="nope"))
    try:
        with pytest.raises(LoadError, match=f"HTTP {status_code}"):
            fetch_source(URL, client=client)
    finally:
        client.close()


def test_fetch_source_network_error_is_load_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = _client(handler)
    try:
        with pytest.raises(LoadError, match="Network error"):
            fetch_source(URL, client=client)
    finally:
        client.close()


def test_parse_source_rejects_headerless_document() -> None:
    with pytest.raises(LoadError, match="Empty headers"):
        parse_source("  \n\n")


def test_load_table_from_path_and_url(tmp_path: Path) -> None:
    path = tmp_path / "data.tsv"
    path.write_text("Nombre\tEdad\nAna\t9\n", encoding="utf-8")
    client = _client(lambda request: httpx.Response(200, text="Nombre\nBea\nCata\n"))

    try:
        from_path = load_table(path=path)
        from_url = load_table(url=URL, client=client)
    finally:
        client.close()

    assert len(from_path) == 1
    assert len(from_url) == 2


def test_load_table_requires_exactly_one_source(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="exactly one"):
        load_table()
    with pytest.raises(ValueError, match="exactly one"):
        load_table(path=tmp_path / "a.tsv", url=URL)


def test_write_text_is_atomic_and_keeps_newlines(tmp_path: Path) -> None:
    out = write_text(tmp_path / "nested" / "out.csv", "a,b\n1,2\n")

    assert out.read_bytes() == b"a,b\n1,2\n"
    assert not (tmp_path / "nested" / "out.csv.tmp").exists()


def test_write_json_serializes_paths_and_datetimes(tmp_path: Path) -> None:
    out = write_json(
        tmp_path / "m.json",
        {"b": tmp_path, "a": datetime(2026, 1, 2, 3, 4, 5)},
    )

    text = out.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert text.index('"a"') < text.index('"b"')
    assert json.loads(text) == {"a": "2026-01-02T03:04:05", "b": str(tmp_path)}


def test_write_json_rejects_unknown_objects(tmp_path: Path) -> None:
    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "bad.json", {"x": object()})
