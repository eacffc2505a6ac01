"""Shared helpers — text normalisation, hashing, timestamps, file names."""

from __future__ import annotations

import hashlib
import re
import time
import unicodedata
from datetime import date, datetime, timezone
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_WHITESPACE_RE = re.compile(r"\s+")
_FILE_PART_RE = re.compile(r"[^\w\-]+")


def normalize_text(value: object) -> str:
    """Lower-case, strip diacritics and collapse whitespace.

    ``normalize_text("  María  José ") == "maria jose"``.  Idempotent.
    """
    text = unicodedata.normalize("NFD", str(value if value is not None else "").lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", text).strip()


def sha256_text(text: str) -> str:
    """Return the hex SHA-256 digest of *text* encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def format_date_for_file(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def sanitize_file_part(value: str | None, default: str = "todo") -> str:
    """Make *value* safe for a file name: ``2026/01/15`` -> ``2026_01_15``."""
    text = (value or "").strip() or default
    return _FILE_PART_RE.sub("_", text)[:40]


def with_cache_buster(url: str, now_ms: int | None = None) -> str:
    """Return *url* with a ``_ts=<epoch ms>`` query parameter set."""
    stamp = str(now_ms if now_ms is not None else int(time.time() * 1000))
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "_ts"]
    query.append(("_ts", stamp))
    return urlunsplit(parts._replace(query=urlencode(query)))
