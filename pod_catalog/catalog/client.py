"""Printify catalog and order client.

Composes ``ResilientFetcher`` (retries, timeouts, classification) with a
per-instance ``ResponseCache``. Read paths for blueprints are cache-first;
the blueprint listing additionally degrades through smaller page limits and
finally to static fallback data. Variant lists are always fetched live.
Mutations (create/update/delete/publish/upload) are never cached and never
degraded: their errors propagate as classified ``CatalogError``s.
"""

from __future__ import annotations

import asyncio
import base64
import re
from pathlib import Path
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from pod_catalog.catalog.fallback import (
    POPULAR_BLUEPRINT_IDS,
    category_blueprint_ids,
    fallback_blueprint_page,
    fallback_search_page,
    popular_fallback_page,
)
from pod_catalog.config import settings
from pod_catalog.errors import CatalogError, CatalogErrorKind
from pod_catalog.models.contracts import (
    PricingResult,
    ProductDraft,
    ProductUpdate,
    PublishOptions,
    Variant,
)
from pod_catalog.pricing import calculate_pricing
from pod_catalog.utils.cache import ResponseCache
from pod_catalog.utils.http import ResilientFetcher

log = structlog.get_logger("pod_catalog.client")

# Pause between blueprint limit tiers
LIMIT_STEP_DELAY = 1.0
BLUEPRINT_LIMIT_TIERS = (5, 3, 1)

_DRIVE_PATTERNS = (
    re.compile(r"drive\.google\.com/file/d/([a-zA-Z0-9_-]+)/view"),
    re.compile(r"drive\.google\.com/open\?id=([a-zA-Z0-9_-]+)"),
    re.compile(r"drive\.google\.com/uc\?.*id=([a-zA-Z0-9_-]+)"),
)
_DATA_URI_RE = re.compile(r"^data:(.+?);base64,(.+)$", re.DOTALL)


def convert_google_drive_url(url: str) -> str:
    """Rewrite Google Drive share links to their direct-download form."""
    for pattern in _DRIVE_PATTERNS:
        match = pattern.search(url)
        if match:
            return f"https://drive.google.com/uc?export=download&id={match.group(1)}"
    return url


def as_blueprint_page(payload: Any, page: int, limit: int) -> dict[str, Any]:
    """Wrap a bare blueprint array in the paginated page shape."""
    if isinstance(payload, dict):
        return payload
    data = list(payload) if isinstance(payload, list) else []
    return {
        "data": data,
        "current_page": page,
        "last_page": 1,
        "total": len(data),
        "per_page": limit,
    }


def blueprint_limit_tiers(limit: int) -> list[int]:
    """Page sizes tried in order by get_blueprints: min(limit, 5), 3, 1."""
    first, *rest = BLUEPRINT_LIMIT_TIERS
    return [min(limit, first), *rest]


class CatalogClient:
    """One Printify account: shops, catalog, products and image uploads.

    An injected ``fetcher`` already carries its token and base URL, so
    ``base_url`` cannot be combined with it.
    """

    def __init__(
        self,
        api_token: str | None = None,
        shop_id: str | int | None = None,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        cache: ResponseCache | None = None,
        fetcher: ResilientFetcher | None = None,
        max_retries: int | None = None,
    ) -> None:
        if fetcher is not None and base_url is not None:
            raise ValueError("Pass base_url to the ResilientFetcher, not alongside it")
        token = api_token if api_token is not None else settings.printify_api_token
        if shop_id is None:
            shop_id = settings.printify_shop_id
        self.shop_id: str | None = str(shop_id) if shop_id is not None else None
        self.shops: list[dict[str, Any]] = []

        self._owns_http = http_client is None and fetcher is None
        self._http = http_client
        if fetcher is None:
            if self._http is None:
                self._http = httpx.AsyncClient()
            fetcher = ResilientFetcher(self._http, token, base_url=base_url)
        self.fetcher = fetcher
        self.cache = cache if cache is not None else ResponseCache(settings.catalog_cache_ttl_seconds)

        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.request_timeout = settings.request_timeout_seconds
        self.catalog_timeout = settings.catalog_timeout_seconds

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()

    async def _request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        return await self.fetcher.execute(
            endpoint,
            method=method,
            body=body,
            max_retries=self.max_retries,
            timeout=timeout or self.request_timeout,
        )

    # === Shops ===

    async def initialize(self) -> list[dict[str, Any]]:
        """Load the account's shops and default to the first one."""
        shops = await self._request("/shops.json")
        self.shops = list(shops or [])
        log.info("printify_shops_loaded", count=len(self.shops))
        if not self.shop_id and self.shops:
            self.shop_id = str(self.shops[0]["id"])
            log.info("printify_default_shop", shop_id=self.shop_id, title=self.shops[0].get("title"))
        return self.shops

    def get_shops(self) -> list[dict[str, Any]]:
        return list(self.shops)

    def set_shop(self, shop_id: str | int) -> dict[str, Any]:
        for shop in self.shops:
            if str(shop.get("id")) == str(shop_id):
                self.shop_id = str(shop["id"])
                log.info("printify_shop_switched", shop_id=self.shop_id)
                return shop
        raise CatalogError(
            f"Shop {shop_id} not found",
            CatalogErrorKind.NOT_FOUND,
            context={"shop_id": str(shop_id), "available": [str(s.get("id")) for s in self.shops]},
        )

    def _require_shop(self) -> str:
        if not self.shop_id:
            raise CatalogError(
                "No shop selected; call initialize() or set_shop() first",
                CatalogErrorKind.VALIDATION_ERROR,
            )
        return self.shop_id

    # === Products ===

    async def get_products(self, page: int = 1, limit: int = 10) -> dict[str, Any]:
        shop = self._require_shop()
        return await self._request(f"/shops/{shop}/products.json?page={page}&limit={limit}")

    async def get_product(self, product_id: str) -> dict[str, Any]:
        shop = self._require_shop()
        return await self._request(f"/shops/{shop}/products/{product_id}.json")

    async def create_product(self, draft: ProductDraft | dict[str, Any]) -> dict[str, Any]:
        shop = self._require_shop()
        if not isinstance(draft, ProductDraft):
            draft = ProductDraft.model_validate(draft)
        log.info(
            "printify_product_create",
            blueprint_id=draft.blueprint_id,
            print_provider_id=draft.print_provider_id,
            variants=len(draft.variants),
        )
        return await self._request(f"/shops/{shop}/products.json", "POST", draft.to_payload())

    async def update_product(
        self,
        product_id: str,
        update: ProductUpdate | dict[str, Any],
    ) -> dict[str, Any]:
        shop = self._require_shop()
        if not isinstance(update, ProductUpdate):
            update = ProductUpdate.model_validate(update)
        return await self._request(
            f"/shops/{shop}/products/{product_id}.json", "PUT", update.to_payload()
        )

    async def delete_product(self, product_id: str) -> None:
        shop = self._require_shop()
        await self._request(f"/shops/{shop}/products/{product_id}.json", "DELETE")
        log.info("printify_product_deleted", product_id=product_id)

    async def publish_product(
        self,
        product_id: str,
        options: PublishOptions | None = None,
    ) -> dict[str, Any]:
        shop = self._require_shop()
        options = options or PublishOptions()
        return await self._request(
            f"/shops/{shop}/products/{product_id}/publish.json", "POST", options.model_dump()
        )

    async def upload_image(self, file_name: str, source: str) -> dict[str, Any]:
        """Upload an image from a URL, a base64 data URI or a local file path."""
        body: dict[str, Any] = {"file_name": file_name}
        if source.startswith(("http://", "https://")):
            body["url"] = convert_google_drive_url(source)
        elif source.startswith("data:"):
            match = _DATA_URI_RE.match(source)
            if not match:
                raise CatalogError(
                    "Invalid base64 data URI",
                    CatalogErrorKind.VALIDATION_ERROR,
                    context={"file_name": file_name},
                )
            body["contents"] = match.group(2)
        else:
            try:
                raw = await asyncio.to_thread(Path(source).read_bytes)
            except OSError as exc:
                raise CatalogError(
                    f"Cannot read image file {source!r}: {exc}",
                    CatalogErrorKind.VALIDATION_ERROR,
                    context={"file_name": file_name, "path": source},
                ) from exc
            body["contents"] = base64.b64encode(raw).decode("ascii")

        log.info("printify_image_upload", file_name=file_name, from_url="url" in body)
        return await self._request("/uploads/images.json", "POST", body)

    # === Catalog ===

    async def get_blueprints(self, page: int = 1, limit: int = 10) -> dict[str, Any]:
        """List blueprints, cache-first, degrading to smaller pages then fallback data.

        Each limit tier is a fresh fetch with its own retries. Auth failures
        are raised immediately; every other failure moves to the next tier.
        """
        key = self.cache.make_key("blueprints", page, limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        tiers = blueprint_limit_tiers(limit)
        last_error: CatalogError | None = None
        for index, current_limit in enumerate(tiers):
            try:
                result = await self._request(
                    f"/catalog/blueprints.json?page={page}&limit={current_limit}",
                    timeout=self.catalog_timeout,
                )
            except CatalogError as exc:
                if exc.kind is CatalogErrorKind.AUTH_FAILED:
                    raise
                last_error = exc
                log.warning(
                    "blueprints_fetch_failed",
                    limit=current_limit,
                    kind=exc.kind.value,
                    error=exc.message[:200],
                )
                if index < len(tiers) - 1:
                    await asyncio.sleep(LIMIT_STEP_DELAY)
                continue

            if current_limit < limit:
                log.info("blueprints_reduced_limit", requested=limit, used=current_limit)
            result = as_blueprint_page(result, page, current_limit)
            self.cache.put(key, result)
            return result

        log.error(
            "blueprints_using_fallback",
            kind=last_error.kind.value if last_error else None,
            error=last_error.message[:200] if last_error else None,
        )
        return fallback_blueprint_page(page, limit)

    async def get_blueprint(self, blueprint_id: str | int) -> dict[str, Any]:
        key = self.cache.make_key("blueprint", blueprint_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        result = await self._request(f"/catalog/blueprints/{blueprint_id}.json")
        self.cache.put(key, result)
        return result

    async def get_print_providers(self, blueprint_id: str | int) -> list[dict[str, Any]]:
        return await self._request(f"/catalog/blueprints/{blueprint_id}/print_providers.json")

    async def get_variants(
        self,
        blueprint_id: str | int,
        print_provider_id: str | int,
    ) -> dict[str, Any]:
        """Raw variants payload, always live: ``{"id", "title", "variants": [...]}``."""
        return await self._request(
            f"/catalog/blueprints/{blueprint_id}/print_providers/{print_provider_id}/variants.json"
        )

    async def list_variants(
        self,
        blueprint_id: str | int,
        print_provider_id: str | int,
    ) -> list[Variant]:
        data = await self.get_variants(blueprint_id, print_provider_id)
        raw = data.get("variants", []) if isinstance(data, dict) else data
        try:
            return [Variant.model_validate(v) for v in raw or []]
        except ValidationError as exc:
            raise CatalogError(
                f"Malformed variant data for blueprint {blueprint_id}: {exc.error_count()} errors",
                CatalogErrorKind.VALIDATION_ERROR,
                context={
                    "endpoint": (
                        f"/catalog/blueprints/{blueprint_id}/print_providers/"
                        f"{print_provider_id}/variants.json"
                    ),
                    "errors": exc.errors(include_url=False),
                },
            ) from exc

    async def search_blueprints(
        self,
        category: str | None = None,
        type_: str | None = None,
    ) -> dict[str, Any]:
        """Filter blueprints by category/type terms.

        In degraded mode the wider static search set is used, and a known
        category/type pair filters by blueprint id instead of text.
        """
        page = await self.get_blueprints(1, 50)
        if page.get("_fallback") or not isinstance(page.get("data"), list):
            log.warning("blueprint_search_using_fallback")
            page = fallback_search_page()
        if not category and not type_:
            return page

        data: list[dict[str, Any]] = page["data"]
        known_ids = category_blueprint_ids(category, type_) if page.get("_fallback") else None
        if known_ids is not None:
            filtered = [bp for bp in data if bp.get("id") in known_ids]
        else:
            terms = [t.lower() for t in (type_, category) if t]
            filtered = [
                bp
                for bp in data
                if any(
                    term in f"{bp.get('title') or ''} {bp.get('description') or ''}".lower()
                    for term in terms
                )
            ]
        return {**page, "data": filtered, "total": len(filtered), "_filtered": True}

    async def get_popular_blueprints(self) -> dict[str, Any]:
        page = await self.get_blueprints(1, 20)
        if page.get("_fallback"):
            return popular_fallback_page()
        popular = [bp for bp in page.get("data", []) if bp.get("id") in POPULAR_BLUEPRINT_IDS]
        return {**page, "data": popular, "total": len(popular), "_popular": True}

    # === Pricing ===

    def calculate_pricing(self, base_cost: int, margin: float | int | str) -> PricingResult:
        return calculate_pricing(base_cost, margin)
