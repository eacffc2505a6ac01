from __future__ import annotations

import pytest

from sheet_grid.filters import FilterEngine, FilterState, normalize_text
from sheet_grid.parser import parse_tsv


def _table(rows: list[tuple[str, str, str]]):  # type: ignore[no-untyped-def]
    lines = ["Nombre\tEstado\tCiudad\tNotas\tEdad"]
    for name, status, age in rows:
        lines.append(f"{name}\t{status}\tBogotá\t\t{age}")
    return parse_tsv("\n".join(lines))


@pytest.fixture
def engine() -> FilterEngine:
    table = _table(
        [
            ("María José", "A", "10"),
            ("Pedro", "A", "20"),
            ("Lucía", "B", "10"),
            ("Ana", "Activo extra", "30"),
        ]
    )
    return FilterEngine(table, ["B", "E"])


# ── normalize_text ───────────────────────────────────────────────


def test_normalize_strips_accents_case_and_whitespace() -> None:
    assert normalize_text("María") == "maria"
    assert normalize_text("  Ñandú   del\tSur ") == "nandu del sur"
    assert normalize_text("Á") == normalize_text("á")
    assert normalize_text(None) == ""


@pytest.mark.parametrize("value", ["María", "  ÁÉÍ  óú ", "straße", "Ça va\n bien"])
def test_normalize_is_idempotent(value: str) -> None:
    once = normalize_text(value)
    assert normalize_text(once) == once


# ── visibility ───────────────────────────────────────────────────


def test_no_filters_shows_every_row(engine: FilterEngine) -> None:
    assert len(engine.visible_rows()) == 4


def test_query_is_accent_insensitive_substring_over_all_columns(engine: FilterEngine) -> None:
    engine.set_query("MARIA jose")
    assert [row[1] for row in engine.visible_rows()] == ["María José"]

    engine.set_query("bogota")
    assert len(engine.visible_rows()) == 4


def test_query_does_not_search_sheet_order_column(engine: FilterEngine) -> None:
    # "2" is Lucía's sheet order but only appears in Pedro's cells.
    engine.set_query("2")
    assert [row[1] for row in engine.visible_rows()] == ["Pedro"]


def test_facet_is_exact_but_query_is_substring(engine: FilterEngine) -> None:
    engine.set_facet("B", "Activo")
    assert engine.visible_rows() == []

    engine.set_facet("B", "")
    engine.set_query("Activo")
    assert [row[1] for row in engine.visible_rows()] == ["Ana"]


def test_facet_match_uses_normalized_text(engine: FilterEngine) -> None:
    engine.set_facet("b", "  activo   EXTRA ")
    assert [row[1] for row in engine.visible_rows()] == ["Ana"]


def test_unknown_facet_column_is_rejected(engine: FilterEngine) -> None:
    with pytest.raises(ValueError, match="Unknown facet column"):
        engine.set_facet("C", "x")
    with pytest.raises(ValueError):
        engine.facet_options("Z")


def test_invalid_facet_letter_at_construction() -> None:
    with pytest.raises(ValueError, match="Invalid facet column"):
        FilterEngine(_table([]), ["1"])


# ── facet options ────────────────────────────────────────────────


def test_facet_options_shrink_with_other_facets() -> None:
    table = _table([("a", "A", "10"), ("b", "A", "20"), ("c", "B", "10")])
    engine = FilterEngine(table, ["B", "E"])

    engine.set_facet("B", "A")
    assert engine.facet_options("E") == ["10", "20"]
    assert engine.facet_options("B") == ["A", "B"]

    engine.set_facet("B", "")
    assert engine.facet_options("E") == ["10", "20"]


def test_facet_options_follow_query(engine: FilterEngine) -> None:
    engine.set_query("lucia")

    assert engine.facet_options("B") == ["B"]
    assert engine.facet_options("E") == ["10"]


def test_facet_options_skip_blanks_and_sort_normalized() -> None:
    table = parse_tsv(
        "N\tEstado\nx\tÚltimo\ny\tactivo\nz\t\nw\tBeta\nv\tactivo\n"
    )
    engine = FilterEngine(table, ["B"])

    assert engine.facet_options("B") == ["activo", "Beta", "Último"]


def test_refresh_clears_selection_no_longer_offered(engine: FilterEngine) -> None:
    engine.set_facet("E", "30")
    engine.set_query("pedro")

    options = engine.refresh_facets()

    assert engine.facets["E"] == ""
    assert options["E"] == ["20"]
    assert [row[1] for row in engine.visible_rows()] == ["Pedro"]


def test_refresh_keeps_valid_selection(engine: FilterEngine) -> None:
    engine.set_facet("B", "A")
    engine.refresh_facets()

    assert engine.facets["B"] == "A"


def test_clear_all_resets_query_and_facets_together(engine: FilterEngine) -> None:
    engine.set_query("maria")
    engine.set_facet("B", "A")
    engine.set_facet("E", "10")

    engine.clear_all()

    assert engine.state() == FilterState(query="", facets={"B": "", "E": ""})
    assert engine.state().is_clear
    assert len(engine.visible_rows()) == 4


def test_restore_applies_saved_state_to_new_table(engine: FilterEngine) -> None:
    engine.set_query("Pedro")
    engine.set_facet("B", "A")
    saved = engine.state()

    other = FilterEngine(_table([("Pedro", "A", "20"), ("Otro", "B", "5")]), ["B", "E"])
    other.restore(saved)

    assert other.facets == {"B": "A", "E": ""}
    assert [row[1] for row in other.visible_rows()] == ["Pedro"]
