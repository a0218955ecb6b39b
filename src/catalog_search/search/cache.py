"""
Query-keyed result cache.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache

from .filters import SearchFilters
from .scorer import normalize_text

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str, str]


class SearchResultCache:
    """
    Capacity-bounded TTL cache keyed by snapshot version, query and filters.

    Pagination is excluded from the key so every page of one query shares
    a single entry. A ``ttl_seconds`` of zero disables caching.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1024,
        ttl_seconds: float = 120,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.enabled = ttl_seconds > 0
        self._cache: TTLCache[CacheKey, Any] = TTLCache(
            maxsize=max_entries, ttl=max(ttl_seconds, 0.001), timer=timer
        )
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(
        snapshot_version: str, query: str, filters: SearchFilters, namespace: str = "search"
    ) -> CacheKey:
        return (namespace, snapshot_version, normalize_text(query), filters.cache_key())

    def get(self, key: CacheKey) -> Any | None:
        if not self.enabled:
            return None
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
        if value is not None:
            logger.debug("Search cache hit for %r", key[2])
        return value

    def put(self, key: CacheKey, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._cache[key] = value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._cache), "hits": self.hits, "misses": self.misses}
