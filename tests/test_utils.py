from __future__ import annotations

from datetime import date
from urllib.parse import parse_qsl, urlsplit

from sheet_grid.utils import (
    format_date_for_file,
    sanitize_file_part,
    sha256_text,
    with_cache_buster,
)


def test_with_cache_buster_appends_and_replaces_timestamp() -> None:
    url = with_cache_buster("https://x.test/pub?output=tsv&_ts=1", now_ms=42)

    assert parse_qsl(urlsplit(url).query) == [("output", "tsv"), ("_ts", "42")]


def test_with_cache_buster_without_query() -> None:
    assert with_cache_buster("https://x.test/pub", now_ms=7) == "https://x.test/pub?_ts=7"


def test_sanitize_file_part() -> None:
    assert sanitize_file_part(" 2026-01-15 ") == "2026-01-15"
    assert sanitize_file_part("15/01 2026") == "15_01_2026"
    assert sanitize_file_part(None) == "todo"
    assert len(sanitize_file_part("x" * 100)) == 40


def test_format_date_for_file_and_sha() -> None:
    assert format_date_for_file(date(2026, 1, 5)) == "2026-01-05"
    assert len(sha256_text("abc")) == 64
