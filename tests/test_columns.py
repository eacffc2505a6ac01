from __future__ import annotations

import string

import pytest

from sheet_grid.columns import (
    build_header_index,
    expand_columns,
    header_key,
    letter_to_index,
    resolve_fields,
)


def test_letter_to_index_known_values() -> None:
    assert letter_to_index("A") == 1
    assert letter_to_index("Z") == 26
    assert letter_to_index("AA") == 27
    assert letter_to_index("AC") == 29


def test_letter_to_index_is_monotonic() -> None:
    letters = list(string.ascii_uppercase) + ["AA", "AB", "AZ", "BA", "ZZ", "AAA"]
    values = [letter_to_index(letter) for letter in letters]

    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_letter_to_index_is_case_insensitive_and_ignores_junk() -> None:
    assert letter_to_index("a") == letter_to_index("A")
    assert letter_to_index("ac") == 29
    assert letter_to_index(" A-C ") == 29
    assert letter_to_index("123") == 0
    assert letter_to_index("") == 0


def test_expand_columns_ranges_and_singles() -> None:
    assert expand_columns(["A", "C-F"]) == ["A", "C", "D", "E", "F"]
    assert expand_columns(["y:ab"]) == ["Y", "Z", "AA", "AB"]
    assert len(expand_columns(["A", "C-Z"])) == 25


@pytest.mark.parametrize("item", ["Z-C", "1", "", "A1"])
def test_expand_columns_rejects_bad_items(item: str) -> None:
    with pytest.raises(ValueError):
        expand_columns([item])


def test_header_key_folds_accents_and_punctuation() -> None:
    assert header_key("  Teléfono (Acudiente) ") == "telefono acudiente"


def test_build_header_index_keeps_first_occurrence() -> None:
    index = build_header_index(["__sheet_order__", "Nombre", "nombre", ""])

    assert index["nombre"] == 1
    assert "" not in index


def test_resolve_fields_uses_alias_priority() -> None:
    headers = ["__sheet_order__", "Estudiante", "Nombre completo", "Celular"]
    aliases = {
        "name": ["Nombre completo", "Estudiante"],
        "phone": ["Telefono", "Celular"],
        "guardian": ["Acudiente"],
    }

    resolved = resolve_fields(headers, aliases)

    assert resolved == {"name": 2, "phone": 3, "guardian": None}
