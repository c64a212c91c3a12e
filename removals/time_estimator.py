"""
Handling-time estimation.

Industry rule of thumb: one crew-hour of handling per 10 m³, applied once for
loading and once for unloading. In inventory mode the base time is weighted by
each item's time_multiplier (pianos and wardrobes are slower than boxes).
Manual volume has no per-item data, so its multiplier is always 1.0.
"""

from .catalog import Catalog
from .volume_estimator import total_volume

CUBIC_METRES_PER_HOUR = 10.0


def base_hours(volume: float) -> float:
    return max(0.0, volume or 0.0) / CUBIC_METRES_PER_HOUR


def item_time_multiplier(selection: dict, catalog: Catalog) -> float:
    """Volume-weighted mean time_multiplier; 1.0 when nothing is selected."""
    weighted = 0.0
    volume = 0.0
    for item_code, quantity in selection.items():
        item = catalog.get(item_code)
        if item is None:
            continue
        item_volume = item.volume_m3 * quantity
        volume += item_volume
        weighted += item_volume * item.time_multiplier
    if volume <= 0:
        return 1.0
    return weighted / volume


def handling_time(volume: float, multiplier: float = 1.0) -> dict:
    adjusted = base_hours(volume) * multiplier
    return {
        "loading_hours": adjusted,
        "unloading_hours": adjusted,
        "total_handling_hours": adjusted * 2,
    }


def inventory_handling_time(selection: dict, catalog: Catalog) -> dict:
    volume = total_volume(selection, catalog)
    return handling_time(volume, item_time_multiplier(selection, catalog))


def volume_handling_time(volume: float) -> dict:
    return handling_time(volume, 1.0)
