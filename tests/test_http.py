"""Tests for ResilientFetcher — timeout, classification and retry policy.

The HTTP client is a MagicMock whose ``request`` is a plain async function,
so each test controls the exact sequence of responses and exceptions.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pod_catalog.errors import CatalogError, CatalogErrorKind
from pod_catalog.utils.http import (
    CATALOG_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    TRANSACTIONAL_TIMEOUT,
    ResilientFetcher,
    backoff_delay,
    extract_error_message,
)

BASE = "https://api.test/v1"


def _fetcher(request_fn) -> ResilientFetcher:
    mock_http = MagicMock()
    mock_http.request = request_fn
    return ResilientFetcher(mock_http, "secret-token", base_url=BASE)


def _response(status: int, method: str = "GET", url: str = BASE, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request(method, url), **kwargs)


class _Sequence:
    """Async request stub returning/raising items in order, counting calls."""

    def __init__(self, *items):
        self.items = list(items)
        self.calls: list[dict] = []

    async def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        item = self.items.pop(0) if len(self.items) > 1 else self.items[0]
        if isinstance(item, BaseException):
            raise item
        return item


class TestBackoffDelay:
    def test_http_schedule(self):
        assert [backoff_delay(a, 1.0, 5.0) for a in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_timeout_schedule(self):
        assert [backoff_delay(a, 2.0, 10.0) for a in range(4)] == [2.0, 4.0, 8.0, 10.0]

    def test_constants(self):
        assert TRANSACTIONAL_TIMEOUT == 30.0
        assert CATALOG_TIMEOUT == 60.0
        assert DEFAULT_MAX_RETRIES == 3


class TestSuccess:
    def test_returns_decoded_json(self):
        stub = _Sequence(_response(200, json={"data": [1]}))
        result = asyncio.run(_fetcher(stub).execute("/shops.json"))
        assert result == {"data": [1]}
        assert len(stub.calls) == 1

    def test_empty_body_returns_empty_dict(self):
        stub = _Sequence(_response(204))
        assert asyncio.run(_fetcher(stub).execute("/x.json", "DELETE")) == {}

    def test_sends_auth_headers_body_and_timeout(self):
        stub = _Sequence(_response(200, json={}))
        asyncio.run(
            _fetcher(stub).execute("/p.json", "POST", body={"a": 1}, timeout=CATALOG_TIMEOUT)
        )
        call = stub.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == f"{BASE}/p.json"
        assert call["headers"]["Authorization"] == "Bearer secret-token"
        assert call["headers"]["Accept"] == "application/json"
        assert call["json"] == {"a": 1}
        assert call["timeout"] == CATALOG_TIMEOUT

    def test_invalid_json_is_unknown_error(self):
        stub = _Sequence(_response(200, text="<html>"))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/x.json"))
        assert exc_info.value.kind is CatalogErrorKind.UNKNOWN


class TestHttpRetries:
    def test_retry_ceiling_on_persistent_500(self):
        """Always-500 endpoint: exactly max_retries + 1 attempts, then SERVER_ERROR."""
        stub = _Sequence(_response(500, text="boom"))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/catalog/blueprints.json", max_retries=3))
        assert len(stub.calls) == 4
        err = exc_info.value
        assert err.kind is CatalogErrorKind.SERVER_ERROR
        assert err.http_status == 500
        assert err.context["endpoint"] == "/catalog/blueprints.json"
        assert err.context["error_text"] == "boom"
        assert err.context["attempts"] == 4

    def test_zero_retries_makes_one_attempt(self):
        stub = _Sequence(_response(503))
        with pytest.raises(CatalogError):
            asyncio.run(_fetcher(stub).execute("/x.json", max_retries=0))
        assert len(stub.calls) == 1

    def test_retries_on_429_then_succeeds(self):
        stub = _Sequence(_response(429, text="slow down"), _response(200, json={"ok": True}))
        result = asyncio.run(_fetcher(stub).execute("/x.json"))
        assert result == {"ok": True}
        assert len(stub.calls) == 2

    def test_rate_limit_exhausted(self):
        stub = _Sequence(_response(429))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/x.json", max_retries=2))
        assert exc_info.value.kind is CatalogErrorKind.RATE_LIMITED
        assert len(stub.calls) == 3

    def test_http_backoff_delays(self):
        stub = _Sequence(_response(500))
        sleep = AsyncMock()
        with (
            patch("pod_catalog.utils.http.HTTP_BACKOFF_BASE", 1.0),
            patch("pod_catalog.utils.http.asyncio.sleep", sleep),
        ):
            with pytest.raises(CatalogError):
                asyncio.run(_fetcher(stub).execute("/x.json", max_retries=4))
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0, 5.0]


class TestTerminalStatuses:
    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (401, CatalogErrorKind.AUTH_FAILED),
            (404, CatalogErrorKind.NOT_FOUND),
            (400, CatalogErrorKind.VALIDATION_ERROR),
            (422, CatalogErrorKind.VALIDATION_ERROR),
            (403, CatalogErrorKind.UNKNOWN),
        ],
    )
    def test_not_retried(self, status, kind):
        stub = _Sequence(_response(status, json={"message": "nope"}))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/shops/1/products.json"))
        assert len(stub.calls) == 1
        assert exc_info.value.kind is kind
        assert exc_info.value.http_status == status
        assert exc_info.value.retryable is False

    def test_validation_error_carries_field_details(self):
        body = {"errors": {"title": ["is required"], "variants": "empty"}}
        stub = _Sequence(_response(422, json=body))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/shops/1/products.json", "POST", body={}))
        err = exc_info.value
        assert "title: is required" in err.message
        assert "variants: empty" in err.message
        assert err.context["error_details"] == body
        assert err.context["method"] == "POST"


class TestTransportFailures:
    def test_read_timeout_retried_then_succeeds(self):
        stub = _Sequence(httpx.ReadTimeout("slow"), _response(200, json={"ok": 1}))
        assert asyncio.run(_fetcher(stub).execute("/x.json")) == {"ok": 1}
        assert len(stub.calls) == 2

    def test_persistent_timeout_raises_timeout(self):
        stub = _Sequence(httpx.ReadTimeout("slow"))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/x.json", max_retries=2))
        assert exc_info.value.kind is CatalogErrorKind.TIMEOUT
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)
        assert len(stub.calls) == 3

    def test_timeout_backoff_delays(self):
        stub = _Sequence(httpx.ReadTimeout("slow"))
        sleep = AsyncMock()
        with (
            patch("pod_catalog.utils.http.TIMEOUT_BACKOFF_BASE", 2.0),
            patch("pod_catalog.utils.http.asyncio.sleep", sleep),
        ):
            with pytest.raises(CatalogError):
                asyncio.run(_fetcher(stub).execute("/x.json", max_retries=4))
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0, 8.0, 10.0]

    def test_overall_deadline_aborts_call(self):
        async def hang(method, url, **kwargs):
            await asyncio.sleep(5)

        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(hang).execute("/x.json", max_retries=0, timeout=0.01))
        assert exc_info.value.kind is CatalogErrorKind.TIMEOUT

    def test_connection_reset_is_network_error(self):
        stub = _Sequence(httpx.ReadError("connection reset by peer"))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/x.json", max_retries=1))
        assert exc_info.value.kind is CatalogErrorKind.NETWORK_ERROR
        assert len(stub.calls) == 2

    def test_connect_timeout_is_network_error(self):
        stub = _Sequence(httpx.ConnectTimeout("connect timed out"), _response(200, json=[]))
        assert asyncio.run(_fetcher(stub).execute("/x.json")) == []
        assert len(stub.calls) == 2

    def test_connect_error_then_success(self):
        stub = _Sequence(httpx.ConnectError("refused"), _response(200, json={"a": 1}))
        assert asyncio.run(_fetcher(stub).execute("/x.json")) == {"a": 1}

    def test_unclassified_transport_error_not_retried(self):
        stub = _Sequence(httpx.UnsupportedProtocol("ftp"))
        with pytest.raises(CatalogError) as exc_info:
            asyncio.run(_fetcher(stub).execute("/x.json"))
        assert exc_info.value.kind is CatalogErrorKind.UNKNOWN
        assert len(stub.calls) == 1


class TestExtractErrorMessage:
    def test_error_field(self):
        message, details = extract_error_message(400, '{"error": "Bad blueprint"}')
        assert message == "Bad blueprint"
        assert details == {"error": "Bad blueprint"}

    def test_message_field(self):
        message, _ = extract_error_message(404, '{"message": "Not found"}')
        assert message == "Not found"

    def test_plain_text_body(self):
        message, details = extract_error_message(502, "Bad Gateway")
        assert message == "Printify API error: 502 - Bad Gateway"
        assert details is None

    def test_empty_body(self):
        message, _ = extract_error_message(500, "")
        assert message == "Printify API error: 500"

    def test_other_json_shape(self):
        message, details = extract_error_message(500, '{"status": "error"}')
        assert "status" in message
        assert details == {"status": "error"}
