"""
Related items and related search terms.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..models import SearchableEntity
from ..snapshot import CatalogSnapshot
from .ranker import MatchResult, merge_results, order_results
from .scorer import normalize_text

RELATED_SCORE = 5.0
DEFAULT_RELATED_LIMIT = 10
DEFAULT_RELATED_SEARCHES = 5


def _shared_fields(entity: SearchableEntity, other: SearchableEntity) -> tuple[str, ...]:
    shared: list[str] = []
    if entity.category and normalize_text(entity.category) == normalize_text(other.category):
        shared.append("category")
    if (
        entity.kind == "product"
        and entity.brand
        and normalize_text(entity.brand) == normalize_text(other.brand)
    ):
        shared.append("brand")
    if entity.district and normalize_text(entity.district) == normalize_text(other.district):
        shared.append("district")
    if entity.shop_id and entity.shop_id == other.shop_id:
        shared.append("shop_id")
    return tuple(shared)


def related_items(
    entity: SearchableEntity,
    snapshot: CatalogSnapshot,
    *,
    limit: int = DEFAULT_RELATED_LIMIT,
) -> list[MatchResult]:
    """Entities of the same kind that share a category, brand, district or shop."""
    candidates: list[MatchResult] = []
    for other in snapshot.entities:
        if other.kind != entity.kind or other.key == entity.key:
            continue
        if not other.is_available:
            continue
        shared = _shared_fields(entity, other)
        if not shared:
            continue
        candidates.append(
            MatchResult(
                entity=other,
                score=RELATED_SCORE,
                match_type="related",
                matched_fields=shared,
            )
        )

    # More shared fields first; ties fall back to the usual relevance order.
    ordered = order_results(merge_results(candidates))
    ordered.sort(key=lambda result: -len(result.matched_fields))
    return ordered[: max(limit, 0)]


def related_searches(
    query: str,
    results: Sequence[MatchResult],
    *,
    limit: int = DEFAULT_RELATED_SEARCHES,
) -> list[str]:
    """Distinct categories and brands of ``results``, excluding the query."""
    needle = normalize_text(query)
    seen: set[str] = set()
    terms: list[str] = []
    for result in results:
        for value in (result.entity.category, result.entity.brand):
            key = normalize_text(value)
            if not key or key == needle or key in seen:
                continue
            seen.add(key)
            terms.append(value.strip())
            if len(terms) >= limit:
                return terms
    return terms
