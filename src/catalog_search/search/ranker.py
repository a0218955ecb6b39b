"""
Ranking helpers for scoring, merging and ordering catalog matches.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from ..geo import distance_km
from ..models import ENTITY_KINDS, GeoPoint, SearchableEntity, Service
from .cancellation import CancellationToken
from .filters import SearchFilters, SortBy
from .scorer import EXACT_SCORE, normalize_text, score

logger = logging.getLogger(__name__)

MatchType: TypeAlias = Literal["exact", "partial", "tag", "category", "brand", "related"]

DEFAULT_MATCH_THRESHOLD = 0.3
DEFAULT_CHECK_INTERVAL = 2000
MIN_QUERY_LENGTH = 2

# (field, weight) per kind. The entity score is the best single field, never a sum.
FIELD_WEIGHTS: dict[str, tuple[tuple[str, float], ...]] = {
    "product": (
        ("name", 3),
        ("localized_name", 3),
        ("category", 2),
        ("localized_category", 2),
        ("brand", 2),
        ("variety", 1),
        ("tags", 1),
    ),
    "menu_item": (
        ("name", 3),
        ("localized_name", 3),
        ("category", 2),
        ("localized_category", 2),
        ("description", 2),
        ("tags", 1),
    ),
    "shop": (
        ("name", 3),
        ("category", 2),
        ("tags", 2),
        ("owner_name", 1),
        ("address", 1),
    ),
    "service": (
        ("name", 3),
        ("category", 2),
        ("highlights", 1),
        ("tags", 1),
        ("description", 1),
    ),
    "office": (
        ("name", 3),
        ("category", 2),
        ("services", 2),
        ("tags", 1),
        ("address", 1),
    ),
}
DEFAULT_FIELD_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("name", 3),
    ("localized_name", 3),
    ("category", 2),
    ("tags", 1),
)

FIELD_MATCH_TYPES: dict[str, MatchType] = {
    "tags": "tag",
    "highlights": "tag",
    "services": "tag",
    "category": "category",
    "localized_category": "category",
    "brand": "brand",
}

TYPE_PRIORITY: dict[str, int] = {kind: index for index, kind in enumerate(ENTITY_KINDS)}

_UNKNOWN_LAST = (1, 0.0)


@dataclass(frozen=True)
class MatchResult:
    """One scored catalog entity for a single query."""

    entity: SearchableEntity
    score: float
    match_type: MatchType
    matched_fields: tuple[str, ...]
    distance_km: float | None = None

    @property
    def kind(self) -> str:
        return self.entity.kind

    @property
    def id(self) -> str:
        return self.entity.id

    @property
    def key(self) -> tuple[str, str]:
        return self.entity.key

    @property
    def reference_id(self) -> str:
        return self.entity.reference_id

    @property
    def is_exact(self) -> bool:
        return self.score >= EXACT_SCORE

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "id": self.id,
            "reference_id": self.reference_id,
            "score": round(self.score, 4),
            "match_type": self.match_type,
            "matched_fields": list(self.matched_fields),
            "distance_km": self.distance_km,
            "entity": self.entity.model_dump(mode="json"),
        }


@dataclass(frozen=True)
class RankedList:
    """Fully ordered matches plus the requested page window."""

    items: tuple[MatchResult, ...]
    limit: int
    offset: int = 0

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def page(self) -> tuple[MatchResult, ...]:
        return self.items[self.offset : self.offset + self.limit]

    @classmethod
    def empty(cls, limit: int = 50) -> "RankedList":
        return cls(items=(), limit=limit)


@dataclass(frozen=True)
class EntityScore:
    """Best-field score for one entity."""

    score: float
    match_type: MatchType
    matched_fields: tuple[str, ...]


def _field_raw_score(value: Any, query: str) -> float:
    if isinstance(value, str):
        return score(value, query)
    if isinstance(value, (tuple, list)):
        return max(
            (score(item, query) for item in value if isinstance(item, str)),
            default=0.0,
        )
    return 0.0


def score_entity(
    entity: SearchableEntity,
    query: str,
    *,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> EntityScore | None:
    """Score an entity's weighted fields; None when nothing clears ``threshold``."""
    weights = FIELD_WEIGHTS.get(entity.kind, DEFAULT_FIELD_WEIGHTS)
    top_weight = max(weight for _, weight in weights)

    field_scores: list[tuple[float, str]] = []
    for field_name, weight in weights:
        raw = _field_raw_score(getattr(entity, field_name, None), query)
        if raw <= 0:
            continue
        # An exact field hit keeps the full score regardless of field weight.
        weighted = raw if raw >= EXACT_SCORE else raw * weight / top_weight
        field_scores.append((weighted, field_name))

    if not field_scores:
        return None

    ordered = sorted(field_scores, key=lambda pair: -pair[0])
    best_score, best_field = ordered[0]
    if best_score <= threshold:
        return None

    if best_score >= EXACT_SCORE:
        match_type: MatchType = "exact"
    else:
        match_type = FIELD_MATCH_TYPES.get(best_field, "partial")
    matched_fields = tuple(name for value, name in ordered if value > threshold)
    return EntityScore(score=best_score, match_type=match_type, matched_fields=matched_fields)


def passes_filters(entity: SearchableEntity, filters: SearchFilters) -> bool:
    """Apply kind, availability, category, district and price filters."""
    if not filters.allows_kind(entity.kind):
        return False
    if not filters.include_out_of_stock and not entity.is_available:
        return False
    if filters.category and normalize_text(filters.category) not in (
        normalize_text(entity.category),
        normalize_text(entity.localized_category),
    ):
        return False
    if filters.district and normalize_text(entity.district) != normalize_text(
        filters.district
    ):
        return False
    if filters.price_range is not None:
        if isinstance(entity, Service) and entity.price_range is not None:
            return entity.price_range.overlaps(filters.price_range)
        if entity.price is None:
            return False
        return filters.price_range.contains(entity.price)
    return True


def merge_results(*result_sets: Iterable[MatchResult]) -> list[MatchResult]:
    """Deduplicate by (kind, id), keeping the highest-scoring occurrence."""
    merged: dict[tuple[str, str], MatchResult] = {}
    for results in result_sets:
        for result in results:
            existing = merged.get(result.key)
            if existing is None or result.score > existing.score:
                merged[result.key] = result
    return list(merged.values())


def _distance_key(result: MatchResult) -> tuple[int, float]:
    if result.distance_km is None:
        return _UNKNOWN_LAST
    return (0, result.distance_km)


def _effective_price(entity: SearchableEntity) -> float | None:
    if entity.price is not None:
        return entity.price
    if isinstance(entity, Service) and entity.price_range is not None:
        return entity.price_range.min
    return None


def _price_key(result: MatchResult) -> tuple[int, float]:
    price = _effective_price(result.entity)
    return _UNKNOWN_LAST if price is None else (0, price)


def _rating_key(result: MatchResult) -> tuple[int, float]:
    rating = result.entity.rating
    return _UNKNOWN_LAST if rating is None else (0, -rating)


def _newest_key(result: MatchResult) -> tuple[int, float]:
    created_at = result.entity.created_at
    return _UNKNOWN_LAST if created_at is None else (0, -created_at.timestamp())


def _relevance_key(result: MatchResult, *, use_distance: bool) -> tuple[Any, ...]:
    return (
        -result.score,
        _distance_key(result) if use_distance else _UNKNOWN_LAST,
        TYPE_PRIORITY.get(result.kind, len(TYPE_PRIORITY)),
        normalize_text(result.entity.name),
        result.id,
    )


_SORT_KEYS: dict[str, Callable[[MatchResult], tuple[int, float]]] = {
    "distance": _distance_key,
    "price": _price_key,
    "rating": _rating_key,
    "newest": _newest_key,
}


def order_results(
    results: Sequence[MatchResult],
    *,
    sort_by: SortBy = "relevance",
    use_distance: bool = False,
) -> list[MatchResult]:
    """
    Order matches: exact matches first, then by ``sort_by``.

    Relevance ordering is score descending, distance ascending (when
    ``use_distance``; unknown distances last), type priority, name, id.
    Other sort modes put their own key ahead of the relevance key.
    """
    primary = _SORT_KEYS.get(sort_by)

    def key(result: MatchResult) -> tuple[Any, ...]:
        exact_flag = 0 if result.is_exact else 1
        relevance = _relevance_key(result, use_distance=use_distance)
        if primary is None:
            return (exact_flag, *relevance)
        return (exact_flag, primary(result), *relevance)

    return sorted(results, key=key)


def _entity_location(entity: SearchableEntity) -> GeoPoint | None:
    return entity.location


def rank(
    query: str,
    entities: Iterable[SearchableEntity],
    filters: SearchFilters | None = None,
    *,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    location_of: Callable[[SearchableEntity], GeoPoint | None] = _entity_location,
    cancel_token: CancellationToken | None = None,
    check_interval: int = DEFAULT_CHECK_INTERVAL,
) -> RankedList:
    """
    Score every entity against ``query`` and return the ordered matches.

    Queries shorter than two characters return an empty list without
    scoring. Entities that fail to score are logged and skipped.
    """
    filters = filters or SearchFilters()
    normalized_query = normalize_text(query)
    if len(normalized_query) < MIN_QUERY_LENGTH:
        return RankedList.empty(limit=filters.limit)

    user_location = filters.location
    radius = user_location.radius_km if user_location is not None else None
    interval = max(check_interval, 1)

    matches: list[MatchResult] = []
    for index, entity in enumerate(entities):
        if cancel_token is not None and index % interval == 0:
            cancel_token.raise_if_cancelled()
        try:
            if not passes_filters(entity, filters):
                continue
            distance = (
                distance_km(user_location, location_of(entity))
                if user_location is not None
                else None
            )
            if radius is not None and (distance is None or distance > radius):
                continue
            entity_score = score_entity(entity, normalized_query, threshold=threshold)
        except Exception:
            logger.warning(
                "Skipping entity %s while ranking",
                getattr(entity, "reference_id", "<unknown>"),
                exc_info=True,
            )
            continue
        if entity_score is None:
            continue
        matches.append(
            MatchResult(
                entity=entity,
                score=entity_score.score,
                match_type=entity_score.match_type,
                matched_fields=entity_score.matched_fields,
                distance_km=distance,
            )
        )

    if cancel_token is not None:
        cancel_token.raise_if_cancelled()

    ordered = order_results(
        merge_results(matches),
        sort_by=filters.sort_by,
        use_distance=user_location is not None,
    )
    return RankedList(items=tuple(ordered), limit=filters.limit, offset=filters.offset)
