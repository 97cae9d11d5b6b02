"""Shared fixtures: zero backoff delays and mock-transport catalog clients."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import patch

import httpx
import pytest

from pod_catalog.catalog.client import CatalogClient
from pod_catalog.utils.cache import ResponseCache

BASE_URL = "https://api.test/v1"


@pytest.fixture(autouse=True)
def _no_backoff():
    """Retry and tier delays are real seconds; zero them for every test."""
    with (
        patch("pod_catalog.utils.http.HTTP_BACKOFF_BASE", 0),
        patch("pod_catalog.utils.http.TIMEOUT_BACKOFF_BASE", 0),
        patch("pod_catalog.catalog.client.LIMIT_STEP_DELAY", 0),
    ):
        yield


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client(clock) -> Callable[..., CatalogClient]:
    """Build a CatalogClient whose HTTP calls go to ``handler(request)``."""

    def _make(handler, *, shop_id: str | None = "1001", max_retries: int = 3) -> CatalogClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return CatalogClient(
            api_token="test-token",
            shop_id=shop_id,
            base_url=BASE_URL,
            http_client=http,
            cache=ResponseCache(ttl_seconds=3600, clock=clock),
            max_retries=max_retries,
        )

    return _make

