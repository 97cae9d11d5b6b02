"""In-memory TTL cache for read-mostly catalog responses.

Entries are valid while ``clock() - timestamp < ttl``. Stale entries are not
evicted; they stay in place until the next ``put`` for the same key.
Memory is bounded only by the number of distinct keys, which for catalog
data (blueprint pages, single blueprints) is small.

Each CatalogClient owns its own instance. Not thread-safe: intended for a
single asyncio event loop, where get/put never interleave mid-operation.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger("pod_catalog.cache")

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 3600.0


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float


class ResponseCache:
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}

    @staticmethod
    def make_key(*parts: object) -> str:
        """Build a cache key like "cache:blueprints:1:10"."""
        return "cache:" + ":".join(str(p) for p in parts)

    def get(self, key: str) -> Any | None:
        """Return the cached value if present and fresh, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            return None
        logger.debug("catalog_cache_hit", key=key)
        return entry.data

    def put(self, key: str, data: Any) -> None:
        """Store ``data`` under ``key``, overwriting and refreshing any entry."""
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
