"""Selling price from base cost and profit margin.

Margin is the share of the selling price that is profit, so
``price = cost / (1 - margin)``. Accepted margin forms are a fraction
(``0.5`` or ``"0.5"``) or a percent string (``"50%"``). A bare value of 1 or
more without a percent sign (``50``) is ambiguous and rejected.
"""

from __future__ import annotations

import math
import re

from pod_catalog.errors import CatalogError, CatalogErrorKind
from pod_catalog.models.contracts import PricingResult

_MARGIN_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(%?)\s*$")


def _invalid(message: str, margin: object) -> CatalogError:
    return CatalogError(
        message,
        CatalogErrorKind.VALIDATION_ERROR,
        context={"margin": repr(margin)},
    )


def parse_margin(margin: float | int | str) -> float:
    """Normalise a margin to a fraction in (0, 1)."""
    if isinstance(margin, bool):
        raise _invalid("Margin must be a number or percent string", margin)

    if isinstance(margin, str):
        match = _MARGIN_RE.match(margin)
        if not match:
            raise _invalid(f"Invalid profit margin {margin!r}: use '50%' or '0.5'", margin)
        value = float(match.group(1))
        is_percent = match.group(2) == "%"
    elif isinstance(margin, (int, float)):
        value = float(margin)
        is_percent = False
    else:
        raise _invalid("Margin must be a number or percent string", margin)

    if math.isnan(value) or math.isinf(value):
        raise _invalid("Margin must be finite", margin)
    if is_percent:
        value /= 100
    elif value >= 1:
        raise _invalid(
            f"Ambiguous margin {margin!r}: pass a fraction below 1 or a percent string like '50%'",
            margin,
        )

    if value >= 1:
        raise _invalid(f"Margin {margin!r} must be below 100%", margin)
    if value <= 0:
        raise _invalid(f"Margin {margin!r} must be above 0", margin)
    return value


def calculate_pricing(base_cost: int, margin: float | int | str) -> PricingResult:
    """Price a variant. Amounts are integer minor currency units (cents).

    Rounds half up (1000.5 -> 1001), not to even.
    """
    if isinstance(base_cost, bool) or not isinstance(base_cost, int):
        raise CatalogError(
            "Base cost must be an integer amount in minor units",
            CatalogErrorKind.VALIDATION_ERROR,
            context={"base_cost": repr(base_cost)},
        )
    if base_cost < 0:
        raise CatalogError(
            "Base cost cannot be negative",
            CatalogErrorKind.VALIDATION_ERROR,
            context={"base_cost": base_cost},
        )
    fraction = parse_margin(margin)
    price = math.floor(base_cost / (1 - fraction) + 0.5)
    return PricingResult(price=price, profit=price - base_cost)
