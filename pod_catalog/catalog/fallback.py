"""Static catalog data served when the live blueprint listing is unavailable.

These are long-lived Printify blueprints known to work with the common
providers. Pages built from them carry ``_fallback: True`` and a
``_message`` that callers must surface to end users.
"""

from __future__ import annotations

import copy
from typing import Any

FALLBACK_MESSAGE = (
    "Live catalog unavailable; showing a fixed set of known blueprints. "
    "Retry later or request a smaller limit (e.g. limit=3) for live data."
)

FALLBACK_BLUEPRINTS: tuple[dict[str, Any], ...] = (
    {
        "id": 5,
        "title": "Bella + Canvas 3001 Unisex T-Shirt",
        "description": "Premium unisex t-shirt, soft and comfortable",
        "brand": "Bella + Canvas",
        "model": "3001",
    },
    {
        "id": 77,
        "title": "Gildan 18500 Unisex Hoodie",
        "description": "Classic pullover hoodie",
        "brand": "Gildan",
        "model": "18500",
    },
    {
        "id": 6,
        "title": "Gildan 64000 Unisex T-Shirt",
        "description": "Affordable basic t-shirt",
        "brand": "Gildan",
        "model": "64000",
    },
    {
        "id": 384,
        "title": "Bella + Canvas 3413 Unisex Triblend T-shirt",
        "description": "Tri-blend fabric for ultimate softness",
        "brand": "Bella + Canvas",
        "model": "3413",
    },
    {
        "id": 265,
        "title": "Ceramic Mug 11oz",
        "description": "Standard coffee mug, dishwasher safe",
        "brand": "Generic",
        "model": "11oz",
    },
    {
        "id": 520,
        "title": "Poster",
        "description": "Wall poster in various sizes",
        "brand": "Generic",
        "model": "Poster",
    },
    {
        "id": 634,
        "title": "Tote Bag",
        "description": "Canvas tote bag for everyday use",
        "brand": "Generic",
        "model": "Tote",
    },
    {
        "id": 1037,
        "title": "Sticker",
        "description": "Die-cut vinyl stickers",
        "brand": "Generic",
        "model": "Sticker",
    },
)

# Wider set used when searching without a live catalog
SEARCH_FALLBACK_BLUEPRINTS: tuple[dict[str, Any], ...] = FALLBACK_BLUEPRINTS + (
    {
        "id": 380,
        "title": "Independent Trading Co. Hoodie",
        "description": "Heavy blend hoodie",
        "brand": "Independent Trading Co.",
        "model": "SS4500",
    },
    {
        "id": 12,
        "title": "Next Level 3600 T-Shirt",
        "description": "Premium fitted t-shirt",
        "brand": "Next Level",
        "model": "3600",
    },
)

BLUEPRINT_CATEGORIES: dict[str, dict[str, tuple[int, ...]]] = {
    "apparel": {
        "tshirt": (5, 6, 12, 384, 921),
        "hoodie": (77, 380),
        "tanktop": (17, 387),
        "longsleeve": (245, 378),
    },
    "accessories": {
        "mug": (265, 635, 1041),
        "totebag": (634, 821),
        "phonecase": (269, 555),
        "sticker": (1037, 1201),
    },
    "home": {
        "poster": (520, 521),
        "canvas": (446, 1158),
        "blanket": (647, 961),
        "pillow": (560, 1052),
    },
}

POPULAR_BLUEPRINT_IDS: tuple[int, ...] = (5, 77, 265, 634, 520, 1037)


def category_blueprint_ids(category: str | None, type_: str | None) -> tuple[int, ...] | None:
    """Known blueprint ids for a category/type pair, or None if unknown."""
    if not category or not type_:
        return None
    return BLUEPRINT_CATEGORIES.get(category.lower(), {}).get(type_.lower())


def fallback_blueprint_page(page: int = 1, limit: int = 10) -> dict[str, Any]:
    """The degraded-mode blueprint listing page."""
    data = [copy.deepcopy(bp) for bp in FALLBACK_BLUEPRINTS]
    return {
        "data": data,
        "current_page": page,
        "last_page": 1,
        "total": len(data),
        "per_page": limit,
        "_fallback": True,
        "_message": FALLBACK_MESSAGE,
    }


def fallback_search_page() -> dict[str, Any]:
    data = [copy.deepcopy(bp) for bp in SEARCH_FALLBACK_BLUEPRINTS]
    return {
        "data": data,
        "total": len(data),
        "_fallback": True,
        "_message": FALLBACK_MESSAGE,
    }


def popular_fallback_page() -> dict[str, Any]:
    data = [
        {**copy.deepcopy(bp), "_popular": True}
        for bp in FALLBACK_BLUEPRINTS
        if bp["id"] in POPULAR_BLUEPRINT_IDS
    ]
    return {
        "data": data,
        "total": len(data),
        "_fallback": True,
        "_popular": True,
        "_message": FALLBACK_MESSAGE,
    }
