# Removable item reference table — volumes from the AFRA cubic-metre guide,
# surcharges from the current Sam Removals rate card.
#
# time_multiplier > 1.0 means the item is slower to handle than its volume
# suggests (awkward, fragile, heavy). Surcharges are per unit.

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CatalogItem:
    item_code: str
    name: str
    description: str
    volume_m3: float
    time_multiplier: float
    surcharge: float
    category: str
    is_specialty: bool = False

    def __post_init__(self):
        if not self.item_code:
            raise ValueError("item_code is required")
        if self.volume_m3 <= 0:
            raise ValueError(f"{self.item_code}: volume_m3 must be > 0")
        if self.time_multiplier <= 0:
            raise ValueError(f"{self.item_code}: time_multiplier must be > 0")
        if self.surcharge < 0:
            raise ValueError(f"{self.item_code}: surcharge must be >= 0")

    def to_dict(self) -> dict:
        return {
            "item_code": self.item_code,
            "name": self.name,
            "description": self.description,
            "volume_m3": self.volume_m3,
            "time_multiplier": self.time_multiplier,
            "surcharge": self.surcharge,
            "category": self.category,
            "is_specialty": self.is_specialty,
        }


CATEGORIES = [
    "bedroom",
    "living",
    "dining",
    "kitchen",
    "study",
    "outdoor",
    "boxes",
    "specialty",
]


INVENTORY_ITEMS = (
    # Bedroom
    CatalogItem("BED_SINGLE", "Single Bed", "Single bed frame and mattress", 1.0, 1.0, 0.0, "bedroom"),
    CatalogItem("BED_DOUBLE", "Double Bed", "Double bed frame and mattress", 1.5, 1.1, 0.0, "bedroom"),
    CatalogItem("BED_QUEEN", "Queen Bed", "Queen bed frame and mattress", 1.8, 1.1, 0.0, "bedroom"),
    CatalogItem("BED_KING", "King Bed", "King bed frame and mattress", 2.2, 1.2, 0.0, "bedroom"),
    CatalogItem("BEDSIDE_TABLE", "Bedside Table", "Small bedside table or nightstand", 0.2, 1.0, 0.0, "bedroom"),
    CatalogItem("CHEST_DRAWERS", "Chest of Drawers", "Tallboy or chest of drawers", 0.8, 1.1, 0.0, "bedroom"),
    CatalogItem("DRESSER", "Dresser", "Wide dresser with mirror", 1.0, 1.2, 0.0, "bedroom"),
    CatalogItem("WARDROBE_2DOOR", "Wardrobe (2 door)", "Freestanding two-door wardrobe", 1.5, 1.3, 0.0, "bedroom"),
    CatalogItem("WARDROBE_3DOOR", "Wardrobe (3 door)", "Freestanding three-door wardrobe", 2.2, 1.4, 0.0, "bedroom"),
    CatalogItem("COT", "Cot", "Baby cot, assembled", 0.6, 1.0, 0.0, "bedroom"),
    # Living
    CatalogItem("SOFA_2SEAT", "Sofa (2 seat)", "Two-seater lounge", 1.2, 1.1, 0.0, "living"),
    CatalogItem("SOFA_3SEAT", "Sofa (3 seat)", "Three-seater lounge", 1.8, 1.2, 0.0, "living"),
    CatalogItem("SOFA_MODULAR", "Modular Sofa", "Modular / L-shaped lounge, per section set", 3.0, 1.3, 0.0, "living"),
    CatalogItem("ARMCHAIR", "Armchair", "Single armchair or recliner", 0.7, 1.0, 0.0, "living"),
    CatalogItem("TABLE_COFFEE", "Coffee Table", "Coffee table", 0.3, 1.0, 0.0, "living"),
    CatalogItem("TABLE_TV_UNIT", "TV Unit", "Entertainment / TV unit", 0.6, 1.1, 0.0, "living"),
    CatalogItem("TV_LARGE", "Large TV", "Flat screen TV over 55 inch", 0.3, 1.5, 20.0, "living"),
    CatalogItem("BOOKSHELF_LARGE", "Bookshelf (large)", "Full-height bookshelf", 0.9, 1.1, 0.0, "living"),
    CatalogItem("RUG_LARGE", "Large Rug", "Rolled floor rug", 0.2, 1.0, 0.0, "living"),
    # Dining
    CatalogItem("TABLE_DINING_4", "Dining Table (4 seat)", "Four-seat dining table", 0.8, 1.1, 0.0, "dining"),
    CatalogItem("TABLE_DINING_8", "Dining Table (8 seat)", "Eight-seat dining table", 1.5, 1.3, 0.0, "dining"),
    CatalogItem("DINING_CHAIR", "Dining Chair", "Single dining chair", 0.2, 1.0, 0.0, "dining"),
    CatalogItem("BUFFET", "Buffet / Sideboard", "Buffet or sideboard cabinet", 1.0, 1.2, 0.0, "dining"),
    CatalogItem("DISPLAY_CABINET", "Glass Display Cabinet", "Glass-fronted display cabinet", 1.0, 1.5, 25.0, "dining"),
    # Kitchen / laundry
    CatalogItem("FRIDGE_STANDARD", "Fridge", "Standard upright fridge", 1.0, 1.3, 0.0, "kitchen"),
    CatalogItem("FRIDGE_LARGE", "Fridge (double door)", "French-door or side-by-side fridge", 1.6, 1.5, 30.0, "kitchen"),
    CatalogItem("FREEZER_CHEST", "Chest Freezer", "Chest freezer", 0.8, 1.2, 0.0, "kitchen"),
    CatalogItem("WASHING_MACHINE", "Washing Machine", "Front or top loader", 0.6, 1.3, 0.0, "kitchen"),
    CatalogItem("DRYER", "Dryer", "Clothes dryer", 0.5, 1.1, 0.0, "kitchen"),
    CatalogItem("MICROWAVE", "Microwave", "Benchtop microwave", 0.1, 1.0, 0.0, "kitchen"),
    # Study
    CatalogItem("DESK_SMALL", "Desk (small)", "Compact desk", 0.5, 1.0, 0.0, "study"),
    CatalogItem("DESK_LARGE", "Desk (large)", "Executive or corner desk", 1.0, 1.2, 0.0, "study"),
    CatalogItem("OFFICE_CHAIR", "Office Chair", "Swivel office chair", 0.3, 1.0, 0.0, "study"),
    CatalogItem("BOOKSHELF_SMALL", "Bookshelf (small)", "Half-height bookshelf", 0.5, 1.0, 0.0, "study"),
    CatalogItem("FILING_CABINET", "Filing Cabinet", "Four-drawer metal filing cabinet", 0.4, 1.2, 0.0, "study"),
    # Outdoor
    CatalogItem("OUTDOOR_SETTING", "Outdoor Setting", "Outdoor table with chairs", 1.5, 1.1, 0.0, "outdoor"),
    CatalogItem("BBQ", "BBQ", "Hooded barbecue (gas bottle removed)", 0.8, 1.3, 0.0, "outdoor"),
    CatalogItem("BICYCLE", "Bicycle", "Adult bicycle", 0.5, 1.0, 0.0, "outdoor"),
    CatalogItem("LAWN_MOWER", "Lawn Mower", "Push mower, fuel drained", 0.4, 1.0, 0.0, "outdoor"),
    CatalogItem("POT_PLANT_LARGE", "Large Pot Plant", "Potted plant over 1 m tall", 0.4, 1.4, 10.0, "outdoor"),
    # Boxes
    CatalogItem("BOX_SMALL", "Box (small)", "Book / tea-chest sized box", 0.06, 1.0, 0.0, "boxes"),
    CatalogItem("BOX_MEDIUM", "Box (medium)", "Standard removal carton", 0.1, 1.0, 0.0, "boxes"),
    CatalogItem("BOX_LARGE", "Box (large)", "Large removal carton", 0.15, 1.0, 0.0, "boxes"),
    CatalogItem("PORTA_ROBE", "Porta-robe", "Hanging wardrobe box", 0.3, 1.0, 0.0, "boxes"),
    # Specialty
    CatalogItem("PIANO_UPRIGHT", "Upright Piano", "Upright piano, requires 3+ movers and skid board", 1.5, 2.5, 150.0, "specialty", True),
    CatalogItem("PIANO_GRAND", "Grand Piano", "Baby grand / grand piano, legs removed", 3.0, 3.0, 450.0, "specialty", True),
    CatalogItem("POOL_TABLE", "Pool Table", "Slate pool table, dismantle and re-level", 3.5, 2.5, 300.0, "specialty", True),
    CatalogItem("SAFE_LARGE", "Safe (large)", "Floor safe over 150 kg", 0.5, 3.0, 200.0, "specialty", True),
    CatalogItem("TREADMILL", "Treadmill", "Folding or fixed treadmill", 1.2, 1.8, 50.0, "specialty", True),
    CatalogItem("HOME_GYM", "Home Gym", "Multi-station home gym, dismantled", 2.0, 2.0, 100.0, "specialty", True),
    CatalogItem("AQUARIUM", "Aquarium", "Drained aquarium over 4 ft with stand", 0.8, 2.0, 80.0, "specialty", True),
    CatalogItem("ARTWORK_LARGE", "Large Artwork", "Framed artwork or mirror over 1.2 m", 0.2, 1.8, 40.0, "specialty", True),
)


class Catalog:
    """
    Read-only lookup over a set of CatalogItems.

    Pipeline code never mutates the catalog — it is passed in as an input.
    """

    def __init__(self, items=INVENTORY_ITEMS):
        self._items = {}
        for item in items:
            if item.item_code in self._items:
                raise ValueError(f"Duplicate item code in catalog: {item.item_code}")
            self._items[item.item_code] = item

    def __len__(self):
        return len(self._items)

    def __contains__(self, item_code):
        return item_code in self._items

    def __iter__(self):
        return iter(self._items.values())

    def get(self, item_code: str) -> Optional[CatalogItem]:
        """Return the item or None — unknown codes are not an error."""
        return self._items.get(item_code)

    def items_by_category(self, category: str = "all") -> list[CatalogItem]:
        if not category or category == "all":
            return list(self._items.values())
        return [item for item in self._items.values() if item.category == category]

    def search(self, query: str) -> list[CatalogItem]:
        """Case-insensitive match on name, description or item code."""
        needle = (query or "").strip().lower()
        if not needle:
            return list(self._items.values())
        return [
            item for item in self._items.values()
            if needle in item.name.lower()
            or needle in item.description.lower()
            or needle in item.item_code.lower()
        ]


# --- Room presets ---
# Quick-fill bundles: applying "bedrooms" x2 adds 2 queen beds, 4 bedside
# tables and 2 chests of drawers to the selection.

COMMON_PRESETS = [
    {
        "key": "bedrooms",
        "label": "Bedrooms",
        "default_count": 2,
        "items": {"BED_QUEEN": 1, "BEDSIDE_TABLE": 2, "CHEST_DRAWERS": 1},
    },
    {
        "key": "living",
        "label": "Living / Family Rooms",
        "default_count": 1,
        "items": {"SOFA_3SEAT": 1, "TABLE_COFFEE": 1, "TABLE_TV_UNIT": 1},
    },
    {
        "key": "study",
        "label": "Study / Office",
        "default_count": 0,
        "items": {"DESK_LARGE": 1, "OFFICE_CHAIR": 1, "BOOKSHELF_SMALL": 1},
    },
]


_default_catalog: Optional[Catalog] = None


def get_catalog() -> Catalog:
    """Get the shared default catalog instance."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = Catalog()
    return _default_catalog
