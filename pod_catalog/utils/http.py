"""Resilient JSON-over-HTTPS calls to the Printify API.

One ``execute`` call is one logical request: it builds the auth headers,
bounds the call with a timeout, classifies any failure into a
``CatalogError`` and retries transient failures with exponential backoff.

Retried: 429, 5xx, connection reset/refused, broken pipe, connect timeout,
and request timeouts. Never retried: 401, 400/404/422 and unclassified errors.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

import httpx
import structlog

from pod_catalog.config import settings
from pod_catalog.errors import CatalogError, CatalogErrorKind, classify_status

log = structlog.get_logger("pod_catalog.http")

TRANSACTIONAL_TIMEOUT = 30.0
CATALOG_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 3

# Backoff for HTTP-classified (429/5xx) and network failures
HTTP_BACKOFF_BASE = 1.0
HTTP_BACKOFF_CAP = 5.0
# Backoff for timeouts
TIMEOUT_BACKOFF_BASE = 2.0
TIMEOUT_BACKOFF_CAP = 10.0


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Delay before retry number ``attempt + 1``: min(base * 2**attempt, cap)."""
    return min(base * (2**attempt), cap)


def extract_error_message(status_code: int, text: str) -> tuple[str, Any]:
    """Pull a readable message and the parsed details out of an error body.

    Handles ``{"error": ...}``, ``{"message": ...}`` and field-level
    ``{"errors": {"field": ["msg", ...]}}``; falls back to the raw text.
    """
    message = f"Printify API error: {status_code}"
    try:
        data = json.loads(text)
    except ValueError:
        return (f"{message} - {text}" if text else message), None

    if not isinstance(data, dict):
        return f"{message} - {text}", data
    if data.get("error"):
        return str(data["error"]), data
    if data.get("message"):
        return str(data["message"]), data
    errors = data.get("errors")
    if errors:
        if isinstance(errors, dict):
            lines = []
            for field, field_errors in errors.items():
                items = field_errors if isinstance(field_errors, list) else [field_errors]
                lines.append(f"{field}: {', '.join(str(e) for e in items)}")
            return "Validation failed: " + "; ".join(lines), data
        return f"Validation failed: {errors}", data
    return f"{message}: {json.dumps(data)}", data


def _redact(headers: dict[str, str]) -> dict[str, str]:
    return {k: ("Bearer ***" if k.lower() == "authorization" else v) for k, v in headers.items()}


class ResilientFetcher:
    """Executes Printify API calls with timeout, classification and retries.

    Stateless between calls; the underlying ``httpx.AsyncClient`` is owned
    by the caller.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_token: str,
        base_url: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        self._client = client
        self._api_token = api_token
        self.base_url = (base_url or settings.printify_base_url).rstrip("/")
        self.user_agent = user_agent or settings.user_agent

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_token}",
            "User-Agent": self.user_agent,
            "Content-Type": "application/json;charset=utf-8",
            "Accept": "application/json",
        }

    async def execute(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = TRANSACTIONAL_TIMEOUT,
    ) -> Any:
        """Perform one logical call, retrying transient failures.

        Makes at most ``max_retries + 1`` attempts. Raises the last
        classified ``CatalogError`` when retries are exhausted.
        """
        max_retries = max(max_retries, 0)
        url = f"{self.base_url}{endpoint}"
        headers = self.build_headers()
        log.debug(
            "catalog_request",
            method=method,
            url=url,
            headers=_redact(headers),
            has_body=body is not None,
        )

        for attempt in range(max_retries + 1):
            cause: BaseException | None = None
            started = time.perf_counter()
            try:
                response = await asyncio.wait_for(
                    self._client.request(
                        method,
                        url,
                        headers=headers,
                        json=body,
                        timeout=timeout,
                    ),
                    timeout=timeout,
                )
            except httpx.ConnectTimeout as exc:
                cause = exc
                error = CatalogError(
                    f"Network error: connect timeout for {endpoint}",
                    CatalogErrorKind.NETWORK_ERROR,
                    context={"endpoint": endpoint, "method": method, "error_type": type(exc).__name__},
                )
                delay = backoff_delay(attempt, HTTP_BACKOFF_BASE, HTTP_BACKOFF_CAP)
            except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
                cause = exc
                error = CatalogError(
                    f"Request timeout after {timeout:g} seconds: {endpoint}",
                    CatalogErrorKind.TIMEOUT,
                    context={"endpoint": endpoint, "method": method, "url": url},
                )
                delay = backoff_delay(attempt, TIMEOUT_BACKOFF_BASE, TIMEOUT_BACKOFF_CAP)
            except (httpx.NetworkError, httpx.RemoteProtocolError) as exc:
                cause = exc
                error = CatalogError(
                    f"Network error: {type(exc).__name__}: {exc}",
                    CatalogErrorKind.NETWORK_ERROR,
                    context={"endpoint": endpoint, "method": method, "error_type": type(exc).__name__},
                )
                delay = backoff_delay(attempt, HTTP_BACKOFF_BASE, HTTP_BACKOFF_CAP)
            except httpx.HTTPError as exc:
                raise CatalogError(
                    f"Request failed: {type(exc).__name__}: {exc}",
                    CatalogErrorKind.UNKNOWN,
                    context={"endpoint": endpoint, "method": method, "attempts": attempt + 1},
                ) from exc
            else:
                log.debug(
                    "catalog_response",
                    url=url,
                    status=response.status_code,
                    elapsed_ms=round((time.perf_counter() - started) * 1000),
                )
                if response.is_success:
                    return self._decode(response, endpoint)

                error = self._classify_response(response, endpoint, method)
                if not error.retryable:
                    error.context["attempts"] = attempt + 1
                    log.warning(
                        "catalog_request_failed",
                        endpoint=endpoint,
                        status=response.status_code,
                        kind=error.kind.value,
                    )
                    raise error
                delay = backoff_delay(attempt, HTTP_BACKOFF_BASE, HTTP_BACKOFF_CAP)

            if attempt >= max_retries:
                error.context["attempts"] = attempt + 1
                log.warning(
                    "catalog_request_retries_exhausted",
                    endpoint=endpoint,
                    kind=error.kind.value,
                    attempts=attempt + 1,
                )
                raise error from cause

            log.warning(
                "catalog_request_retrying",
                endpoint=endpoint,
                kind=error.kind.value,
                status=error.http_status,
                attempt=attempt + 1,
                max_retries=max_retries,
                delay_s=delay,
            )
            await asyncio.sleep(delay)

        raise AssertionError("unreachable")  # every attempt returns or raises

    @staticmethod
    def _classify_response(
        response: httpx.Response,
        endpoint: str,
        method: str,
    ) -> CatalogError:
        text = response.text
        message, details = extract_error_message(response.status_code, text)
        return CatalogError(
            message,
            classify_status(response.status_code),
            http_status=response.status_code,
            context={
                "endpoint": endpoint,
                "method": method,
                "error_text": text,
                "error_details": details,
            },
        )

    @staticmethod
    def _decode(response: httpx.Response, endpoint: str) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogError(
                f"Invalid JSON in response from {endpoint}",
                CatalogErrorKind.UNKNOWN,
                http_status=response.status_code,
                context={"endpoint": endpoint, "error_text": response.text[:500]},
            ) from exc
