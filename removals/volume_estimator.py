"""
Stage 1 — Volume estimation.

Two mutually exclusive inputs:
- inventory: a SelectionSet {item_code: quantity} priced against the Catalog
- volume: a customer-entered cubic metre figure

Unknown item codes are skipped, never fatal. Manual volume is clamped to
[MIN_MANUAL_VOLUME, MAX_MANUAL_VOLUME] and rounded to 0.1 m³.
"""

import logging
import math

from .catalog import Catalog, COMMON_PRESETS

logger = logging.getLogger(__name__)

MIN_MANUAL_VOLUME = 1.0
MAX_MANUAL_VOLUME = 80.0
DEFAULT_MANUAL_VOLUME = 20.0


def total_volume(selection: dict, catalog: Catalog) -> float:
    """Σ quantity × volume_m3 over items the catalog knows about."""
    volume = 0.0
    for item_code, quantity in selection.items():
        item = catalog.get(item_code)
        if item is None:
            logger.debug("Ignoring unknown item code %s", item_code)
            continue
        volume += item.volume_m3 * quantity
    return volume


def total_items(selection: dict) -> int:
    return sum(selection.values())


def specialty_surcharges(selection: dict, catalog: Catalog) -> float:
    """Per-unit catalog surcharges for everything selected."""
    surcharge = 0.0
    for item_code, quantity in selection.items():
        item = catalog.get(item_code)
        if item and item.surcharge > 0:
            surcharge += item.surcharge * quantity
    return surcharge


def selected_items_details(selection: dict, catalog: Catalog) -> list[dict]:
    """
    One row per known selected item, largest total volume first.
    This is what the inventory summary and the quote email list.
    """
    rows = []
    for item_code, quantity in selection.items():
        item = catalog.get(item_code)
        if item is None:
            continue
        rows.append({
            "item_code": item.item_code,
            "name": item.name,
            "category": item.category,
            "quantity": quantity,
            "volume_m3": item.volume_m3,
            "total_volume": item.volume_m3 * quantity,
            "surcharge": item.surcharge,
            "total_surcharge": item.surcharge * quantity,
            "is_specialty": item.is_specialty,
        })
    return sorted(rows, key=lambda r: r["total_volume"], reverse=True)


def set_quantity(selection: dict, item_code: str, quantity: int) -> dict:
    """
    Return a new SelectionSet with item_code at quantity.
    Quantity <= 0 removes the key — absence means zero.
    """
    updated = dict(selection)
    if quantity is None or quantity <= 0:
        updated.pop(item_code, None)
    else:
        updated[item_code] = int(quantity)
    return updated


def apply_presets(selection: dict, counts: dict, presets: list = None) -> dict:
    """
    Add room-preset bundles to a selection.

    counts: {"bedrooms": 3, "living": 1} — negative counts act as 0,
    unknown preset keys are ignored.
    """
    updated = dict(selection)
    for preset in presets or COMMON_PRESETS:
        count = max(0, int(counts.get(preset["key"], 0) or 0))
        if count == 0:
            continue
        for item_code, qty in preset["items"].items():
            updated[item_code] = updated.get(item_code, 0) + qty * count
    return updated


def parse_manual_volume(raw, previous=None):
    """
    Parse a manual volume entry.

    Non-numeric input (including empty strings, None and NaN) is rejected and
    the previous value returned unchanged. Accepted values are clamped to
    [1, 80] and rounded to one decimal place.
    """
    if raw is None or isinstance(raw, bool):
        return previous
    try:
        volume = float(str(raw).strip())
    except (TypeError, ValueError):
        return previous
    if math.isnan(volume):
        return previous
    volume = min(MAX_MANUAL_VOLUME, max(MIN_MANUAL_VOLUME, volume))
    return round(volume, 1)
