"""Catalog contract models shared by the client, matcher, pricing and callers.

Upstream listing payloads (blueprints, providers, products) are passed through
as plain dicts; these models cover the values this package produces or the
shapes callers hand in for product mutations.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

# === Variants & Matching ===


class Variant(BaseModel):
    """A sellable blueprint+provider configuration, e.g. "White / M"."""

    model_config = {"frozen": True, "extra": "ignore"}

    id: int | str
    title: str = ""
    cost: int = 0  # minor currency units
    options: dict[str, Any] = {}


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return out


class VariantFilterRequest(BaseModel):
    requested_colors: list[str] = []
    requested_sizes: list[str] = []

    @field_validator("requested_colors")
    @classmethod
    def _normalize_colors(cls, v: list[str]) -> list[str]:
        return _dedupe([" ".join(c.split()).lower() for c in v])

    @field_validator("requested_sizes")
    @classmethod
    def _normalize_sizes(cls, v: list[str]) -> list[str]:
        return _dedupe([s.strip().upper() for s in v])

    @classmethod
    def from_csv(cls, colors: str = "", sizes: str = "") -> VariantFilterRequest:
        """Build from comma-separated strings like "white,black" and "M,L,XL"."""
        return cls(
            requested_colors=colors.split(",") if colors else [],
            requested_sizes=sizes.split(",") if sizes else [],
        )


class MatchTier(str, Enum):
    EXACT = "exact"
    COLOR_ONLY = "color_only"
    COMMON_FALLBACK = "common_fallback"
    FIRST_N = "first_n"


class MatchResult(BaseModel):
    matched_variants: list[Variant] = []
    match_tier: MatchTier

    @property
    def is_degraded(self) -> bool:
        return self.match_tier is not MatchTier.EXACT


# === Pricing ===


class PricingResult(BaseModel):
    price: int  # minor currency units
    profit: int


class PricedVariant(BaseModel):
    id: int | str
    title: str
    cost: int
    price: int
    profit: int


class ResolvedPricing(BaseModel):
    """Output of resolve_and_price: matched variants with selling prices."""

    blueprint_id: int | str
    print_provider_id: int | str
    variants: list[PricedVariant] = []
    match_tier: MatchTier


class VariantValidation(BaseModel):
    """Strict (no fallback) check of requested colours/sizes."""

    total_variants: int
    matching: list[Variant] = []
    available_colors: list[str] = []
    available_sizes: list[str] = []

    @property
    def is_valid(self) -> bool:
        return bool(self.matching)


class ProductDataValidation(BaseModel):
    invalid_variant_ids: list[int | str] = []
    sample_variant: Variant | None = None

    @property
    def is_valid(self) -> bool:
        return not self.invalid_variant_ids


# === Product Mutations ===


class ProductVariantInput(BaseModel):
    variant_id: int | str
    price: int = Field(ge=0)
    is_enabled: bool = True


class PrintAreaInput(BaseModel):
    position: str = "front"
    image_id: str
    x: float = 0.5
    y: float = 0.5
    scale: float = 1.0
    angle: float = 0


class ProductDraft(BaseModel):
    title: str
    description: str = ""
    blueprint_id: int
    print_provider_id: int
    variants: list[ProductVariantInput]
    print_areas: list[PrintAreaInput] = []
    tags: list[str] = []

    def to_payload(self) -> dict[str, Any]:
        """Render the upstream create-product payload."""
        variant_ids = [v.variant_id for v in self.variants]
        payload: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "blueprint_id": self.blueprint_id,
            "print_provider_id": self.print_provider_id,
            "variants": [
                {"id": v.variant_id, "price": v.price, "is_enabled": v.is_enabled}
                for v in self.variants
            ],
            "print_areas": [
                {
                    "variant_ids": variant_ids,
                    "placeholders": [
                        {
                            "position": area.position,
                            "images": [
                                {
                                    "id": area.image_id,
                                    "x": area.x,
                                    "y": area.y,
                                    "scale": area.scale,
                                    "angle": area.angle,
                                }
                            ],
                        }
                    ],
                }
                for area in self.print_areas
            ],
        }
        if self.tags:
            payload["tags"] = self.tags
        return payload


class ProductUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    variants: list[ProductVariantInput] | None = None
    tags: list[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.title:
            payload["title"] = self.title
        if self.description:
            payload["description"] = self.description
        if self.variants:
            payload["variants"] = [
                {"id": v.variant_id, "price": v.price, "is_enabled": v.is_enabled}
                for v in self.variants
            ]
        if self.tags is not None:
            payload["tags"] = self.tags
        return payload


class CreatedProduct(BaseModel):
    product: dict[str, Any]
    blueprint_title: str | None = None
    print_provider_id: int
    match_tier: MatchTier
    variant_count: int


class PublishOptions(BaseModel):
    """Which product fields the sales channel should take from this product."""

    title: bool = True
    description: bool = True
    images: bool = True
    variants: bool = True
    tags: bool = True


# === Errors ===


class CatalogErrorInfo(BaseModel):
    """Structured error for the presentation layer (no user-facing text)."""

    kind: str
    message: str
    http_status: int | None = None
    retryable: bool = False
    context: dict[str, Any] = {}
