"""Parse colour and size out of upstream variant titles.

Titles are free text, usually "Color / Size" ("Heather Grey / XL"), but some
blueprints use "Color - Size", a bare size, or a single option. These helpers
use the same separator heuristics as the matcher and never raise.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from pod_catalog.models.contracts import Variant

SIZE_ORDER: tuple[str, ...] = ("XS", "S", "M", "L", "XL", "2XL", "3XL", "4XL", "5XL")

_COLOR_PART_RE = re.compile(r"^([^/]+?)(?:\s*/|$)")
_SIZE_PART_RE = re.compile(r"/\s*([^/]+?)\s*$")


def extract_color(title: str) -> str | None:
    """Return the text before the first "/" ("Solid White / S" -> "Solid White")."""
    match = _COLOR_PART_RE.match(title.strip())
    if not match:
        return None
    color = match.group(1).strip()
    return color or None


def extract_size(title: str) -> str | None:
    """Return the text after the last "/", or a trailing known size token."""
    title = title.strip()
    match = _SIZE_PART_RE.search(title)
    if match:
        return match.group(1).strip()
    parts = title.split()
    if parts and parts[-1].upper() in SIZE_ORDER:
        return parts[-1].upper()
    return None


def _size_sort_key(size: str) -> tuple[int, str]:
    upper = size.upper()
    if upper in SIZE_ORDER:
        return (SIZE_ORDER.index(upper), "")
    return (len(SIZE_ORDER), upper)


def available_colors(variants: Iterable[Variant]) -> list[str]:
    """Distinct title colours, alphabetical."""
    colors = {c for c in (extract_color(v.title) for v in variants) if c}
    return sorted(colors)


def available_sizes(variants: Iterable[Variant], color: str | None = None) -> list[str]:
    """Distinct title sizes in garment order (XS..5XL, then others).

    With ``color``, only variants whose title contains it are considered.
    """
    sizes: set[str] = set()
    needle = color.lower().strip() if color else None
    for variant in variants:
        if needle and needle not in variant.title.lower():
            continue
        size = extract_size(variant.title)
        if size:
            sizes.add(size)
    return sorted(sizes, key=_size_sort_key)
