"""Deployment configuration — defaults plus ``key=value`` profile files.

A profile looks like::

    # published sheet
    url=https://docs.google.com/.../pub?output=tsv
    facet=B
    facet=E
    export=A
    export=C-Z
    date=AC
    prefix=Inscritos
    field.name=Nombre completo|Nombre

Repeatable keys (``facet``, ``export``) replace the default list as a whole
the first time they appear.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from sheet_grid import (
    DEFAULT_DATE_COLUMN,
    DEFAULT_EXPORT_COLUMNS,
    DEFAULT_FACET_COLUMNS,
    DEFAULT_FIELD_ALIASES,
    DEFAULT_FILENAME_PREFIX,
)
from sheet_grid.columns import expand_columns

_SCALAR_KEYS = {"url", "date", "prefix"}
_LIST_KEYS = {"facet", "export"}


@dataclass(frozen=True)
class GridConfig:
    url: str | None = None
    facet_columns: list[str] = field(default_factory=lambda: list(DEFAULT_FACET_COLUMNS))
    export_columns: list[str] = field(
        default_factory=lambda: expand_columns(DEFAULT_EXPORT_COLUMNS)
    )
    date_column: str = DEFAULT_DATE_COLUMN
    filename_prefix: str = DEFAULT_FILENAME_PREFIX
    field_aliases: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_FIELD_ALIASES.items()}
    )

    def with_overrides(self, **changes: object) -> GridConfig:
        """Return a copy with the non-``None`` *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _read_profile_lines(profile: Path) -> list[str]:
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like facet=B)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(stripped)
    return lines


def parse_profile(lines: list[str], base: GridConfig | None = None) -> GridConfig:
    """Apply ``key=value`` *lines* on top of *base* (defaults when ``None``)."""
    config = base or GridConfig()
    scalars: dict[str, str] = {}
    lists: dict[str, list[str]] = {}
    aliases = {k: list(v) for k, v in config.field_aliases.items()}

    for item in lines:
        if "=" not in item:
            raise ValueError(f"Invalid profile line: {item!r}  (expected key=value)")
        key, value = (part.strip() for part in item.split("=", 1))
        key = key.lower()
        if not value:
            raise ValueError(f"Profile line has an empty value: {item!r}")
        if key in _SCALAR_KEYS:
            scalars[key] = value
        elif key in _LIST_KEYS:
            lists.setdefault(key, []).append(value)
        elif key.startswith("field.") and key[len("field."):]:
            candidates = [alias.strip() for alias in value.split("|") if alias.strip()]
            aliases[key[len("field."):]] = candidates
        else:
            raise ValueError(f"Unknown profile key {key!r} in line {item!r}")

    facets = expand_columns(lists["facet"]) if "facet" in lists else None
    export = expand_columns(lists["export"]) if "export" in lists else None
    date_column = expand_columns([scalars["date"]])[0] if "date" in scalars else None

    return config.with_overrides(
        url=scalars.get("url"),
        facet_columns=facets,
        export_columns=export,
        date_column=date_column,
        filename_prefix=scalars.get("prefix"),
        field_aliases=aliases,
    )


def load_config(profile: Path | None = None) -> GridConfig:
    """Return defaults, overridden by *profile* when one is given."""
    if not profile:
        return GridConfig()
    return parse_profile(_read_profile_lines(profile))
