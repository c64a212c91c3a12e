"""
Stage 1 tests — Catalog, volume estimation, handling time, crew sizing.

Pure math, no database.
"""

import math

import pytest

from removals.catalog import (
    CATEGORIES, COMMON_PRESETS, Catalog, CatalogItem, INVENTORY_ITEMS, get_catalog,
)
from removals.crew_sizer import recommend_crew_size
from removals.time_estimator import (
    base_hours, handling_time, inventory_handling_time, item_time_multiplier, volume_handling_time,
)
from removals.volume_estimator import (
    apply_presets, parse_manual_volume, selected_items_details, set_quantity,
    specialty_surcharges, total_items, total_volume,
)


@pytest.fixture
def catalog():
    return get_catalog()


# ============================================================
# Catalog
# ============================================================

def test_catalog_item_codes_unique():
    codes = [item.item_code for item in INVENTORY_ITEMS]
    assert len(codes) == len(set(codes))
    assert len(Catalog()) == len(INVENTORY_ITEMS)


def test_catalog_items_valid():
    for item in INVENTORY_ITEMS:
        assert item.volume_m3 > 0, item.item_code
        assert item.time_multiplier > 0, item.item_code
        assert item.surcharge >= 0, item.item_code
        assert item.category in CATEGORIES, item.item_code


def test_catalog_item_rejects_bad_volume():
    with pytest.raises(ValueError):
        CatalogItem("BAD", "Bad", "", 0.0, 1.0, 0.0, "boxes")
    with pytest.raises(ValueError):
        CatalogItem("BAD", "Bad", "", 1.0, 0.0, 0.0, "boxes")
    with pytest.raises(ValueError):
        CatalogItem("BAD", "Bad", "", 1.0, 1.0, -5.0, "boxes")


def test_catalog_rejects_duplicate_codes():
    item = CatalogItem("DUP", "Dup", "", 1.0, 1.0, 0.0, "boxes")
    with pytest.raises(ValueError, match="Duplicate"):
        Catalog([item, item])


def test_catalog_item_is_immutable():
    item = get_catalog().get("BED_QUEEN")
    with pytest.raises(Exception):
        item.volume_m3 = 99.0


def test_catalog_lookup_unknown_returns_none(catalog):
    assert catalog.get("NOT_A_THING") is None
    assert "NOT_A_THING" not in catalog
    assert "BED_QUEEN" in catalog


def test_catalog_category_filter(catalog):
    specialty = catalog.items_by_category("specialty")
    assert specialty
    assert all(item.category == "specialty" for item in specialty)
    assert {"PIANO_UPRIGHT", "POOL_TABLE"} <= {item.item_code for item in specialty}
    assert len(catalog.items_by_category("all")) == len(catalog)


def test_catalog_search_is_case_insensitive(catalog):
    codes = {item.item_code for item in catalog.search("PIANO")}
    assert "PIANO_UPRIGHT" in codes
    assert codes == {item.item_code for item in catalog.search("piano")}
    assert len(catalog.search("")) == len(catalog)


def test_presets_reference_real_items(catalog):
    for preset in COMMON_PRESETS:
        for item_code in preset["items"]:
            assert item_code in catalog, f"{preset['key']}: {item_code}"


# ============================================================
# Volume
# ============================================================

def test_empty_selection_totals(catalog):
    """V = 0 -> no items, no volume, no surcharges."""
    assert total_volume({}, catalog) == 0.0
    assert total_items({}) == 0
    assert specialty_surcharges({}, catalog) == 0.0
    assert selected_items_details({}, catalog) == []


def test_total_volume_sums_quantities(catalog):
    selection = {"BED_QUEEN": 2, "BOX_MEDIUM": 10}
    assert total_volume(selection, catalog) == pytest.approx(2 * 1.8 + 10 * 0.1)
    assert total_items(selection) == 12


def test_unknown_codes_ignored(catalog):
    selection = {"BED_QUEEN": 1, "MYSTERY_CRATE": 4}
    assert total_volume(selection, catalog) == pytest.approx(1.8)
    assert [row["item_code"] for row in selected_items_details(selection, catalog)] == ["BED_QUEEN"]


def test_specialty_surcharges(catalog):
    selection = {"PIANO_UPRIGHT": 1, "TV_LARGE": 2, "BOX_MEDIUM": 5}
    assert specialty_surcharges(selection, catalog) == pytest.approx(150.0 + 2 * 20.0)


def test_item_details_sorted_by_volume(catalog):
    selection = {"BOX_MEDIUM": 5, "POOL_TABLE": 1, "BED_QUEEN": 1}
    rows = selected_items_details(selection, catalog)
    assert [row["item_code"] for row in rows] == ["POOL_TABLE", "BED_QUEEN", "BOX_MEDIUM"]
    pool = rows[0]
    assert pool["total_surcharge"] == 300.0
    assert pool["is_specialty"] is True
    assert rows[2]["total_volume"] == pytest.approx(0.5)


def test_set_quantity_removes_on_zero():
    selection = {"BED_QUEEN": 1}
    assert set_quantity(selection, "BED_QUEEN", 0) == {}
    assert set_quantity(selection, "BED_QUEEN", -3) == {}
    assert set_quantity(selection, "BOX_MEDIUM", 4) == {"BED_QUEEN": 1, "BOX_MEDIUM": 4}
    # Input untouched
    assert selection == {"BED_QUEEN": 1}


def test_apply_presets_multiplies_bundle():
    selection = apply_presets({"BED_QUEEN": 1}, {"bedrooms": 2, "living": 1, "study": 0})
    assert selection["BED_QUEEN"] == 3
    assert selection["BEDSIDE_TABLE"] == 4
    assert selection["CHEST_DRAWERS"] == 2
    assert selection["SOFA_3SEAT"] == 1
    assert "DESK_LARGE" not in selection


def test_apply_presets_ignores_negative_and_unknown():
    assert apply_presets({}, {"bedrooms": -2, "garage": 3}) == {}


@pytest.mark.parametrize("raw,expected", [
    ("20", 20.0),
    (12.34, 12.3),
    ("0", 1.0),
    (-4, 1.0),
    (500, 80.0),
    ("  7.25 ", 7.2),
])
def test_parse_manual_volume_clamps_and_rounds(raw, expected):
    assert parse_manual_volume(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "abc", None, float("nan"), True])
def test_parse_manual_volume_rejects_non_numeric(raw):
    assert parse_manual_volume(raw, previous=18.5) == 18.5
    assert parse_manual_volume(raw) is None


# ============================================================
# Handling time
# ============================================================

def test_zero_volume_zero_hours(catalog):
    assert base_hours(0) == 0.0
    assert base_hours(-5) == 0.0
    assert item_time_multiplier({}, catalog) == 1.0
    assert inventory_handling_time({}, catalog)["total_handling_hours"] == 0.0


def test_manual_volume_twenty():
    """V = 20 (manual) -> 2.0 h load, 2.0 h unload, 4.0 h handling."""
    result = volume_handling_time(20.0)
    assert result["loading_hours"] == pytest.approx(2.0)
    assert result["unloading_hours"] == pytest.approx(2.0)
    assert result["total_handling_hours"] == pytest.approx(4.0)


def test_total_handling_is_twice_loading(catalog):
    result = inventory_handling_time({"SOFA_3SEAT": 1, "BOX_MEDIUM": 20}, catalog)
    assert result["loading_hours"] == result["unloading_hours"]
    assert result["total_handling_hours"] == pytest.approx(2 * result["loading_hours"])


def test_item_multiplier_is_volume_weighted(catalog):
    # piano 1.5 m³ × 2.5, boxes 1.5 m³ × 1.0 -> (3.75 + 1.5) / 3.0
    selection = {"PIANO_UPRIGHT": 1, "BOX_MEDIUM": 15}
    assert item_time_multiplier(selection, catalog) == pytest.approx(1.75)
    result = inventory_handling_time(selection, catalog)
    assert result["loading_hours"] == pytest.approx(0.3 * 1.75)


def test_handling_time_multiplier():
    assert handling_time(10.0, 1.5)["total_handling_hours"] == pytest.approx(3.0)


# ============================================================
# Crew
# ============================================================

@pytest.mark.parametrize("volume,crew", [
    (None, 2),
    (0, 2),
    (14.9, 2),
    (15.0, 3),
    (20.0, 3),
    (34.9, 3),
    (35.0, 4),
    (80.0, 4),
])
def test_crew_size_boundaries(volume, crew):
    assert recommend_crew_size(volume) == crew


def test_crew_size_nan_safe():
    # NaN fails every comparison -> largest crew, never an exception
    assert recommend_crew_size(math.nan) in (2, 3, 4)
