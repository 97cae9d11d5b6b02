"""Resolve requested colours/sizes onto a blueprint's variant list.

Matching runs an ordered ladder of strategies and stops at the first one
that returns anything:

1. EXACT            colour and size both match the request
2. COLOR_ONLY       size constraint dropped (only when colours were requested)
3. COMMON_FALLBACK  safe colours (white/black/gray/navy) x safe sizes (M/L/XL)
4. FIRST_N          the first five variants, unconditionally

"No match" is an expected outcome of fuzzy resolution, so the matcher
never raises; the returned tier tells the caller how far it degraded.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import structlog

from pod_catalog.matching.colors import COLOR_VARIATIONS, normalize_color
from pod_catalog.models.contracts import MatchResult, MatchTier, Variant, VariantFilterRequest

log = structlog.get_logger("pod_catalog.matching")

SAFE_COLORS: tuple[str, ...] = ("white", "black", "gray", "navy")
SAFE_SIZES: tuple[str, ...] = ("M", "L", "XL")
FIRST_N_LIMIT = 5

_SEP = r"[/\-\s]"


@lru_cache(maxsize=256)
def _size_patterns(size: str) -> tuple[re.Pattern[str], ...]:
    token = re.escape(size.strip())
    return (
        re.compile(rf"{_SEP}\s*{token}\s*$", re.IGNORECASE),  # "White / M"
        re.compile(rf"{_SEP}\s*{token}\s*{_SEP}", re.IGNORECASE),  # "White / M / Tall"
        re.compile(rf"^{token}\s*{_SEP}", re.IGNORECASE),  # "M / White"
        re.compile(rf"\b{token}\b", re.IGNORECASE),  # "White M"
    )


def size_matches(title: str, size: str) -> bool:
    """True if ``size`` appears in ``title`` as a delimited size token."""
    if not size.strip():
        return False
    return any(p.search(title) for p in _size_patterns(size))


def color_matches(title: str, color: str) -> bool:
    """True if the title contains the colour or a known title spelling of it."""
    wanted = " ".join(color.split()).lower()
    if not wanted:
        return False
    title_lower = title.lower()
    if wanted in title_lower:
        return True
    variations = COLOR_VARIATIONS.get(normalize_color(wanted), ())
    return any(v in title_lower for v in variations)


# === Strategies ===


@dataclass(frozen=True)
class MatchStrategy:
    tier: MatchTier
    select: Callable[[Sequence[Variant], VariantFilterRequest], list[Variant]]


def _wants_color(title: str, request: VariantFilterRequest) -> bool:
    return not request.requested_colors or any(
        color_matches(title, c) for c in request.requested_colors
    )


def _wants_size(title: str, request: VariantFilterRequest) -> bool:
    return not request.requested_sizes or any(
        size_matches(title, s) for s in request.requested_sizes
    )


def select_exact(variants: Sequence[Variant], request: VariantFilterRequest) -> list[Variant]:
    return [v for v in variants if _wants_color(v.title, request) and _wants_size(v.title, request)]


def select_color_only(
    variants: Sequence[Variant], request: VariantFilterRequest
) -> list[Variant]:
    if not request.requested_colors:
        return []
    return [v for v in variants if _wants_color(v.title, request)]


def select_common_combination(
    variants: Sequence[Variant], request: VariantFilterRequest
) -> list[Variant]:
    """Safe colour x safe size variants.

    When every variant is a safe combination and FIRST_N would return the
    same set anyway, this tier yields nothing so FIRST_N answers. Larger
    all-safe lists are kept whole rather than cut to FIRST_N_LIMIT.
    """
    matched = [
        v
        for v in variants
        if any(c in v.title.lower() for c in SAFE_COLORS)
        and any(size_matches(v.title, s) for s in SAFE_SIZES)
    ]
    if len(matched) == len(variants) <= FIRST_N_LIMIT:
        return []
    return matched


def select_first_n(variants: Sequence[Variant], request: VariantFilterRequest) -> list[Variant]:
    return list(variants[:FIRST_N_LIMIT])


DEFAULT_STRATEGIES: tuple[MatchStrategy, ...] = (
    MatchStrategy(MatchTier.EXACT, select_exact),
    MatchStrategy(MatchTier.COLOR_ONLY, select_color_only),
    MatchStrategy(MatchTier.COMMON_FALLBACK, select_common_combination),
    MatchStrategy(MatchTier.FIRST_N, select_first_n),
)


class VariantMatcher:
    def __init__(self, strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES) -> None:
        self.strategies = tuple(strategies)

    def match(self, variants: Sequence[Variant], request: VariantFilterRequest) -> MatchResult:
        for strategy in self.strategies:
            matched = strategy.select(variants, request)
            log.debug(
                "variant_strategy_tried",
                tier=strategy.tier.value,
                matched=len(matched),
                total=len(variants),
            )
            if matched:
                if strategy.tier is not MatchTier.EXACT:
                    log.info(
                        "variant_match_degraded",
                        tier=strategy.tier.value,
                        matched=len(matched),
                        requested_colors=request.requested_colors,
                        requested_sizes=request.requested_sizes,
                    )
                return MatchResult(matched_variants=matched, match_tier=strategy.tier)

        return MatchResult(matched_variants=[], match_tier=MatchTier.FIRST_N)


def _coerce(variants: Iterable[Variant | dict[str, Any]]) -> list[Variant]:
    return [v if isinstance(v, Variant) else Variant.model_validate(v) for v in variants]


def match_variants(
    variants: Iterable[Variant | dict[str, Any]],
    requested_colors: Iterable[str] = (),
    requested_sizes: Iterable[str] = (),
) -> MatchResult:
    """Match with the default ladder. Accepts Variant models or raw dicts."""
    request = VariantFilterRequest(
        requested_colors=list(requested_colors),
        requested_sizes=list(requested_sizes),
    )
    return VariantMatcher().match(_coerce(variants), request)
