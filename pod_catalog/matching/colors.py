"""Colour normalisation for informal colour names.

``normalize_color`` maps free text ("Heather Grey", "carolina blue") onto a
small canonical palette. ``COLOR_VARIATIONS`` goes the other way: for each
canonical colour, the spellings that show up in upstream variant titles.
"""

from __future__ import annotations

CANONICAL_COLORS: tuple[str, ...] = (
    "white",
    "black",
    "gray",
    "red",
    "blue",
    "green",
    "pink",
    "purple",
    "yellow",
    "orange",
    "brown",
    "navy",
)

_ALIASES: dict[str, str] = {"grey": "gray"}

# "midnight navy blue" resolves to navy, not blue
_CONTAINMENT_ORDER: tuple[str, ...] = ("navy",) + tuple(c for c in CANONICAL_COLORS if c != "navy")

COLOR_SYNONYMS: dict[str, str] = {
    # white
    "off white": "white",
    "off-white": "white",
    "ivory": "white",
    "cream": "white",
    "natural": "white",
    "vintage white": "white",
    "solid white": "white",
    # black
    "jet black": "black",
    "solid black": "black",
    "vintage black": "black",
    "onyx": "black",
    # gray
    "heather grey": "gray",
    "heather gray": "gray",
    "sport grey": "gray",
    "athletic heather": "gray",
    "dark heather": "gray",
    "charcoal": "gray",
    "ash": "gray",
    "silver": "gray",
    "graphite": "gray",
    # red
    "cardinal": "red",
    "cardinal red": "red",
    "scarlet": "red",
    "crimson": "red",
    "cherry red": "red",
    "maroon": "red",
    "burgundy": "red",
    # blue
    "carolina blue": "blue",
    "sky blue": "blue",
    "royal blue": "blue",
    "royal": "blue",
    "light blue": "blue",
    "sapphire": "blue",
    "baby blue": "blue",
    "indigo": "blue",
    "teal": "blue",
    # green
    "forest": "green",
    "forest green": "green",
    "kelly green": "green",
    "irish green": "green",
    "olive": "green",
    "military green": "green",
    "emerald": "green",
    "mint": "green",
    "sage": "green",
    # pink
    "light pink": "pink",
    "hot pink": "pink",
    "azalea": "pink",
    "heliconia": "pink",
    "fuchsia": "pink",
    "magenta": "pink",
    # purple
    "violet": "purple",
    "lavender": "purple",
    "lilac": "purple",
    "plum": "purple",
    "team purple": "purple",
    # yellow
    "gold": "yellow",
    "daisy": "yellow",
    "mustard": "yellow",
    "lemon": "yellow",
    # orange
    "safety orange": "orange",
    "burnt orange": "orange",
    "coral": "orange",
    "peach": "orange",
    "tangerine": "orange",
    # brown
    "chocolate": "brown",
    "dark chocolate": "brown",
    "tan": "brown",
    "sand": "brown",
    "khaki": "brown",
    "mocha": "brown",
    # navy
    "navy blue": "navy",
    "dark navy": "navy",
    "midnight navy": "navy",
    "midnight": "navy",
}

# Spellings of each canonical colour as they appear in variant titles
COLOR_VARIATIONS: dict[str, tuple[str, ...]] = {
    "white": ("white", "solid white", "natural", "cream", "ivory"),
    "black": ("black", "solid black", "dark", "onyx"),
    "gray": ("gray", "grey", "heather gray", "heather grey", "charcoal", "ash"),
    "red": ("red", "cardinal", "scarlet", "crimson", "maroon"),
    "blue": ("blue", "navy", "royal blue", "sapphire"),
    "green": ("green", "forest", "olive", "emerald"),
    "pink": ("pink", "azalea", "heliconia", "fuchsia"),
    "purple": ("purple", "violet", "lavender", "plum"),
    "yellow": ("yellow", "gold", "daisy", "mustard"),
    "orange": ("orange", "coral", "tangerine"),
    "brown": ("brown", "chocolate", "tan", "mocha"),
    "navy": ("navy", "midnight navy", "dark navy"),
}


def _clean(value: str) -> str:
    return " ".join(value.split()).lower()


def normalize_color(value: str) -> str:
    """Map an informal colour name to a canonical colour.

    Order: canonical name (grey -> gray), synonym table, canonical name
    contained in the input (whole words first, so "heathered grey" is gray
    rather than red). Anything else comes back lower-cased and trimmed,
    unmapped.
    """
    cleaned = _clean(value)
    if not cleaned:
        return cleaned
    if cleaned in _ALIASES:
        return _ALIASES[cleaned]
    if cleaned in CANONICAL_COLORS:
        return cleaned
    if cleaned in COLOR_SYNONYMS:
        return COLOR_SYNONYMS[cleaned]

    words = set(cleaned.replace("-", " ").replace("/", " ").split())
    for name in _CONTAINMENT_ORDER + tuple(_ALIASES):
        if name in words:
            return _ALIASES.get(name, name)
    for name in _CONTAINMENT_ORDER + tuple(_ALIASES):
        if name in cleaned:
            return _ALIASES.get(name, name)
    return cleaned
