"""
Catalog query engine combining ranking, suggestions and reference lookups.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from ..config import SearchConfig
from ..errors import CatalogUnavailable, SearchCancelled
from ..snapshot import CatalogSnapshot, SnapshotProvider
from .cache import SearchResultCache
from .cancellation import CancellationToken
from .filters import SearchFilters
from .ranker import MIN_QUERY_LENGTH, MatchResult, RankedList, rank
from .reference import lookup, resolve
from .related import related_items, related_searches
from .scorer import normalize_text
from .suggestions import Suggestions, suggest

logger = logging.getLogger(__name__)

CATEGORY_BUCKETS: dict[str, str] = {
    "product": "products",
    "shop": "shops",
    "menu_item": "menu_items",
    "service": "services",
    "office": "offices",
}

UNAVAILABLE_MESSAGE = "Catalog is temporarily unavailable."


def categorize(results: Sequence[MatchResult], *, limit: int) -> dict[str, tuple[MatchResult, ...]]:
    """Split ordered results into per-kind buckets, each capped at ``limit``."""
    buckets: dict[str, list[MatchResult]] = {name: [] for name in CATEGORY_BUCKETS.values()}
    for result in results:
        bucket = buckets.get(CATEGORY_BUCKETS.get(result.kind, ""))
        if bucket is not None and len(bucket) < limit:
            bucket.append(result)
    return {name: tuple(items) for name, items in buckets.items()}


@dataclass(frozen=True)
class SearchResponse:
    """One page of search results plus suggestion side-channels."""

    query: str
    results: tuple[MatchResult, ...] = ()
    total_results: int = 0
    search_time_ms: int = 0
    suggestions: tuple[str, ...] = ()
    did_you_mean: tuple[str, ...] = ()
    related_searches: tuple[str, ...] = ()
    categorized: Mapping[str, tuple[MatchResult, ...]] = field(
        default_factory=lambda: categorize((), limit=0)
    )
    degraded: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "results": [result.to_dict() for result in self.results],
            "total_results": self.total_results,
            "search_time_ms": self.search_time_ms,
            "suggestions": list(self.suggestions),
            "did_you_mean": list(self.did_you_mean),
            "related_searches": list(self.related_searches),
            "categorized": {
                name: [result.to_dict() for result in items]
                for name, items in self.categorized.items()
            },
            "degraded": self.degraded,
            "error": self.error,
        }


@dataclass(frozen=True)
class _CachedSearch:
    items: tuple[MatchResult, ...]
    suggestions: Suggestions
    related_searches: tuple[str, ...]


class CatalogQueryEngine:
    """Search entry point over the provider's current catalog snapshot."""

    def __init__(
        self,
        provider: SnapshotProvider,
        *,
        config: SearchConfig | None = None,
        cache: SearchResultCache | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or SearchConfig()
        self.cache = cache

    def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> SearchResponse:
        """
        Run one search.

        Reference-ID queries resolve directly to a single exact result.
        Queries shorter than two characters return an empty response. An
        unavailable catalog yields an empty, degraded response.
        """
        started = time.perf_counter()
        filters = filters or SearchFilters(limit=self.config.default_limit)

        try:
            snapshot = self.provider.get_current_snapshot()
        except CatalogUnavailable as exc:
            logger.warning("Catalog unavailable; returning degraded response: %s", exc)
            return SearchResponse(
                query=query,
                search_time_ms=_elapsed_ms(started),
                degraded=True,
                error=UNAVAILABLE_MESSAGE,
            )

        reference_hit = resolve(query, snapshot)
        if reference_hit is not None:
            return SearchResponse(
                query=query,
                results=(reference_hit,),
                total_results=1,
                search_time_ms=_elapsed_ms(started),
                categorized=categorize((reference_hit,), limit=filters.limit),
            )

        if len(normalize_text(query)) < MIN_QUERY_LENGTH:
            return SearchResponse(query=query, search_time_ms=_elapsed_ms(started))

        cache_key = SearchResultCache.make_key(snapshot.version, query, filters)
        cached = self.cache.get(cache_key) if self.cache is not None else None
        if cached is None:
            token = cancel_token or CancellationToken(
                timeout_ms=self.config.search_timeout_ms
            )
            ranked, suggestions = self._search_parallel(
                query=query, snapshot=snapshot, filters=filters, cancel_token=token
            )
            cached = _CachedSearch(
                items=ranked.items,
                suggestions=suggestions,
                related_searches=tuple(
                    related_searches(
                        query, ranked.items, limit=self.config.max_related_searches
                    )
                ),
            )
            if self.cache is not None:
                self.cache.put(cache_key, cached)

        page = cached.items[filters.offset : filters.offset + filters.limit]
        elapsed = _elapsed_ms(started)
        logger.debug(
            "Search %r matched %d entities in %d ms", query, len(cached.items), elapsed
        )
        return SearchResponse(
            query=query,
            results=page,
            total_results=len(cached.items),
            search_time_ms=elapsed,
            suggestions=cached.suggestions.suggestions,
            did_you_mean=cached.suggestions.did_you_mean,
            related_searches=cached.related_searches,
            categorized=categorize(cached.items, limit=filters.limit),
        )

    def suggest(self, query: str) -> Suggestions:
        """Autocomplete suggestions and corrections; empty when the catalog is down."""
        try:
            snapshot = self.provider.get_current_snapshot()
        except CatalogUnavailable as exc:
            logger.warning("Catalog unavailable; no suggestions: %s", exc)
            return Suggestions()
        return self._suggest(query, snapshot)

    def lookup(self, reference_id: str) -> MatchResult:
        return lookup(reference_id, self.provider.get_current_snapshot())

    def related(self, reference_id: str, *, limit: int = 10) -> list[MatchResult]:
        snapshot = self.provider.get_current_snapshot()
        anchor = lookup(reference_id, snapshot)
        return related_items(anchor.entity, snapshot, limit=limit)

    def status(self) -> dict[str, Any]:
        snapshot = self.provider.get_current_snapshot()
        payload: dict[str, Any] = {
            "version": snapshot.version,
            "loaded_at": snapshot.loaded_at,
            "total_entities": len(snapshot),
            "counts_by_kind": snapshot.counts_by_kind(),
        }
        if self.cache is not None:
            payload["cache"] = self.cache.stats()
        return payload

    def _search_parallel(
        self,
        *,
        query: str,
        snapshot: CatalogSnapshot,
        filters: SearchFilters,
        cancel_token: CancellationToken,
    ) -> tuple[RankedList, Suggestions]:
        executor = ThreadPoolExecutor(max_workers=2)
        cancelled = False
        try:
            rank_future = executor.submit(
                rank,
                query,
                snapshot.entities,
                filters,
                threshold=self.config.match_threshold,
                location_of=snapshot.location_of,
                cancel_token=cancel_token,
                check_interval=self.config.cancel_check_interval,
            )
            suggest_future = executor.submit(
                self._suggest, query, snapshot, cancel_token=cancel_token
            )
            ranked = rank_future.result()
            suggestions = suggest_future.result()
        except SearchCancelled:
            cancelled = True
            cancel_token.cancel()
            logger.warning("Search %r cancelled", query)
            raise
        finally:
            # A cancelled pass must not wait for the sibling task to finish.
            executor.shutdown(wait=not cancelled, cancel_futures=cancelled)
        return ranked, suggestions

    def _suggest(
        self,
        query: str,
        snapshot: CatalogSnapshot,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Suggestions:
        return suggest(
            query,
            snapshot.entities,
            threshold=self.config.suggestion_threshold,
            limit=self.config.max_suggestions,
            did_you_mean_threshold=self.config.did_you_mean_threshold,
            did_you_mean_limit=self.config.max_did_you_mean,
            cancel_token=cancel_token,
            check_interval=self.config.cancel_check_interval,
        )


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))
