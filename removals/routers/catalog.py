from fastapi import APIRouter, HTTPException
from typing import Optional
from ..catalog import CATEGORIES, COMMON_PRESETS, get_catalog

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/")
def list_items(category: Optional[str] = "all", search: Optional[str] = None):
    """Inventory items, optionally narrowed by category and a search term."""
    if category and category != "all" and category not in CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}. Available: {CATEGORIES}")

    catalog = get_catalog()
    items = catalog.items_by_category(category)
    if search:
        matches = {item.item_code for item in catalog.search(search)}
        items = [item for item in items if item.item_code in matches]

    return {
        "categories": ["all"] + CATEGORIES,
        "count": len(items),
        "items": [item.to_dict() for item in items],
    }


@router.get("/presets")
def list_presets():
    return {"presets": COMMON_PRESETS}


@router.get("/{item_code}")
def get_item(item_code: str):
    item = get_catalog().get(item_code.upper())
    if not item:
        raise HTTPException(status_code=404, detail=f"Unknown item: {item_code}")
    return item.to_dict()
