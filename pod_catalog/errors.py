"""Closed error taxonomy for catalog and order calls.

Every failure leaving the HTTP layer is a ``CatalogError`` carrying a kind,
the HTTP status when there was one, and a diagnostic context (endpoint,
raw body). Callers branch on ``kind`` and ``retryable``, never on message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pod_catalog.models.contracts import CatalogErrorInfo


class CatalogErrorKind(str, Enum):
    AUTH_FAILED = "AUTH_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN = "UNKNOWN"


TRANSIENT_KINDS = frozenset(
    {
        CatalogErrorKind.RATE_LIMITED,
        CatalogErrorKind.SERVER_ERROR,
        CatalogErrorKind.NETWORK_ERROR,
        CatalogErrorKind.TIMEOUT,
    }
)


class CatalogError(Exception):
    """A classified failure talking to the upstream catalog."""

    def __init__(
        self,
        message: str,
        kind: CatalogErrorKind = CatalogErrorKind.UNKNOWN,
        http_status: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.http_status = http_status
        self.context: dict[str, Any] = context or {}

    @property
    def retryable(self) -> bool:
        return self.kind in TRANSIENT_KINDS

    def to_info(self) -> CatalogErrorInfo:
        return CatalogErrorInfo(
            kind=self.kind.value,
            message=self.message,
            http_status=self.http_status,
            retryable=self.retryable,
            context=self.context,
        )

    def __repr__(self) -> str:
        return (
            f"CatalogError(kind={self.kind.value}, http_status={self.http_status}, "
            f"message={self.message!r})"
        )


def classify_status(status_code: int) -> CatalogErrorKind:
    """Map an HTTP error status to its error kind."""
    if status_code == 401:
        return CatalogErrorKind.AUTH_FAILED
    if status_code == 429:
        return CatalogErrorKind.RATE_LIMITED
    if status_code == 404:
        return CatalogErrorKind.NOT_FOUND
    if status_code in (400, 422):
        return CatalogErrorKind.VALIDATION_ERROR
    if status_code >= 500:
        return CatalogErrorKind.SERVER_ERROR
    return CatalogErrorKind.UNKNOWN
