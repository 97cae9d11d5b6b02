"""Payload builders shared by the test modules."""

from __future__ import annotations

from typing import Any


def variant_payload(*titles: str, cost: int = 1200, start_id: int = 100) -> dict[str, Any]:
    """A variants.json body with one variant per title, ids from ``start_id``."""
    return {
        "id": 6,
        "title": "Gildan 64000",
        "variants": [
            {"id": start_id + i, "title": t, "cost": cost, "options": {}}
            for i, t in enumerate(titles)
        ],
    }


def blueprint_page(*ids: int, page: int = 1, limit: int = 10) -> dict[str, Any]:
    return {
        "current_page": page,
        "data": [{"id": i, "title": f"Blueprint {i}", "description": ""} for i in ids],
        "last_page": 1,
        "per_page": limit,
        "total": len(ids),
    }
