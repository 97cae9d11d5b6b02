"""Caller-facing operations composed from the client, matcher and pricing.

``resolve_and_price`` is the core chain: live variant list -> fuzzy match
with fallback ladder -> per-variant pricing. ``create_simple_product`` goes
one step further and submits the product from a rough intent.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

import structlog

from pod_catalog.catalog.client import CatalogClient
from pod_catalog.errors import CatalogError, CatalogErrorKind
from pod_catalog.matching.titles import available_colors, available_sizes
from pod_catalog.matching.variants import VariantMatcher, select_exact
from pod_catalog.models.contracts import (
    CreatedProduct,
    PricedVariant,
    PrintAreaInput,
    ProductDataValidation,
    ProductDraft,
    ProductVariantInput,
    ResolvedPricing,
    VariantFilterRequest,
    VariantValidation,
)
from pod_catalog.pricing import calculate_pricing, parse_margin

log = structlog.get_logger("pod_catalog.service")

DEFAULT_MARGIN = "50%"
DEFAULT_COLORS = "white,black"
DEFAULT_SIZES = "M,L,XL,2XL"

_IMAGE_ID_RE = re.compile(r"^[a-zA-Z0-9]{24}$")


def _as_list(values: str | Iterable[str] | None) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        return values.split(",")
    return list(values)


def build_filter(
    colors: str | Iterable[str] | None,
    sizes: str | Iterable[str] | None,
) -> VariantFilterRequest:
    """Accepts lists or comma-separated strings ("white,black")."""
    return VariantFilterRequest(requested_colors=_as_list(colors), requested_sizes=_as_list(sizes))


async def resolve_and_price(
    client: CatalogClient,
    blueprint_id: int | str,
    print_provider_id: int | str,
    colors: str | Iterable[str] | None,
    sizes: str | Iterable[str] | None,
    margin: float | int | str,
    matcher: VariantMatcher | None = None,
) -> ResolvedPricing:
    """Resolve requested colours/sizes to variants and price each one.

    The margin is validated before any network call. Catalog errors from
    the variant lookup propagate unchanged.
    """
    parse_margin(margin)
    request = build_filter(colors, sizes)
    variants = await client.list_variants(blueprint_id, print_provider_id)
    result = (matcher or VariantMatcher()).match(variants, request)

    priced: list[PricedVariant] = []
    for variant in result.matched_variants:
        pricing = calculate_pricing(variant.cost, margin)
        priced.append(
            PricedVariant(
                id=variant.id,
                title=variant.title,
                cost=variant.cost,
                price=pricing.price,
                profit=pricing.profit,
            )
        )

    log.info(
        "variants_resolved",
        blueprint_id=blueprint_id,
        print_provider_id=print_provider_id,
        total=len(variants),
        matched=len(priced),
        tier=result.match_tier.value,
    )
    return ResolvedPricing(
        blueprint_id=blueprint_id,
        print_provider_id=print_provider_id,
        variants=priced,
        match_tier=result.match_tier,
    )


def _validation_error(message: str, **context: Any) -> CatalogError:
    return CatalogError(message, CatalogErrorKind.VALIDATION_ERROR, context=context)


async def create_simple_product(
    client: CatalogClient,
    title: str,
    blueprint_id: int,
    image_id: str,
    *,
    description: str = "",
    margin: float | int | str = DEFAULT_MARGIN,
    colors: str | Iterable[str] | None = DEFAULT_COLORS,
    sizes: str | Iterable[str] | None = DEFAULT_SIZES,
) -> CreatedProduct:
    """Create a product from a rough intent.

    Uses the blueprint's first print provider and a centred front print
    area. The variant set may come from a fallback tier; the returned
    ``match_tier`` says which.
    """
    title = (title or "").strip()
    if len(title) < 3:
        raise _validation_error("Title must be at least 3 characters long", title=title)
    if not image_id or not image_id.strip():
        raise _validation_error("Image ID is required; upload an image first")
    if blueprint_id <= 0:
        raise _validation_error("Blueprint ID must be a positive number", blueprint_id=blueprint_id)
    parse_margin(margin)
    if not _IMAGE_ID_RE.match(image_id):
        log.warning("image_id_unusual_format", image_id=image_id)

    blueprint = await client.get_blueprint(blueprint_id)
    providers = await client.get_print_providers(blueprint_id)
    if not providers:
        raise CatalogError(
            f"No print providers available for blueprint {blueprint_id}",
            CatalogErrorKind.NOT_FOUND,
            context={"blueprint_id": blueprint_id},
        )
    provider_id = int(providers[0]["id"])

    resolved = await resolve_and_price(client, blueprint_id, provider_id, colors, sizes, margin)
    if not resolved.variants:
        raise CatalogError(
            f"No variants available for blueprint {blueprint_id} with provider {provider_id}",
            CatalogErrorKind.NOT_FOUND,
            context={"blueprint_id": blueprint_id, "print_provider_id": provider_id},
        )

    draft = ProductDraft(
        title=title,
        description=(description or "").strip(),
        blueprint_id=blueprint_id,
        print_provider_id=provider_id,
        variants=[ProductVariantInput(variant_id=v.id, price=v.price) for v in resolved.variants],
        print_areas=[PrintAreaInput(position="front", image_id=image_id)],
    )
    product = await client.create_product(draft)
    log.info(
        "simple_product_created",
        product_id=product.get("id"),
        blueprint_id=blueprint_id,
        tier=resolved.match_tier.value,
        variants=len(draft.variants),
    )
    return CreatedProduct(
        product=product,
        blueprint_title=blueprint.get("title"),
        print_provider_id=provider_id,
        match_tier=resolved.match_tier,
        variant_count=len(draft.variants),
    )


async def validate_variants(
    client: CatalogClient,
    blueprint_id: int | str,
    print_provider_id: int | str,
    colors: str | Iterable[str] | None = None,
    sizes: str | Iterable[str] | None = None,
) -> VariantValidation:
    """Strict colour/size check with the available options, no fallback ladder."""
    variants = await client.list_variants(blueprint_id, print_provider_id)
    request = build_filter(colors, sizes)
    return VariantValidation(
        total_variants=len(variants),
        matching=select_exact(variants, request),
        available_colors=available_colors(variants),
        available_sizes=available_sizes(variants),
    )


async def validate_product_data(
    client: CatalogClient,
    blueprint_id: int | str,
    print_provider_id: int | str,
    variant_ids: Iterable[int | str],
) -> ProductDataValidation:
    """Report variant ids that the blueprint/provider pair does not offer."""
    variants = await client.list_variants(blueprint_id, print_provider_id)
    known = {str(v.id) for v in variants}
    invalid = [vid for vid in variant_ids if str(vid) not in known]
    return ProductDataValidation(
        invalid_variant_ids=invalid,
        sample_variant=variants[0] if variants else None,
    )
