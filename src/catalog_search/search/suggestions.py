"""
Autocomplete suggestions and "did you mean" corrections.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ..models import SearchableEntity
from .cancellation import CancellationToken
from .scorer import normalize_text, score, similarity

DEFAULT_SUGGESTION_THRESHOLD = 0.25
DEFAULT_DID_YOU_MEAN_THRESHOLD = 0.6
DEFAULT_MAX_SUGGESTIONS = 8
DEFAULT_MAX_DID_YOU_MEAN = 5
POPULAR_FALLBACK_MIN_SIMILARITY = 0.4
MIN_ADDRESS_PART_LENGTH = 3
DEFAULT_CHECK_INTERVAL = 2000

POPULAR_TERMS: tuple[str, ...] = (
    "rice",
    "flour",
    "oil",
    "vegetables",
    "fruits",
    "milk",
    "bread",
    "biryani",
    "pizza",
    "burger",
    "dal rice",
    "dosa",
    "haircut",
    "massage",
    "repair",
    "cleaning",
    "grocery store",
    "restaurant",
    "pharmacy",
    "salon",
)

_TEXT_FIELDS = ("name", "localized_name", "category", "localized_category", "brand")
_LIST_FIELDS = ("tags",)


@dataclass(frozen=True)
class Suggestions:
    suggestions: tuple[str, ...] = ()
    did_you_mean: tuple[str, ...] = ()


def iter_candidates(entities: Iterable[SearchableEntity]) -> Iterator[str]:
    """Yield every suggestable string from ``entities``."""
    for entity in entities:
        for field_name in _TEXT_FIELDS:
            value = getattr(entity, field_name, None)
            if isinstance(value, str) and value.strip():
                yield value.strip()
        for field_name in _LIST_FIELDS:
            for value in getattr(entity, field_name, ()) or ():
                if isinstance(value, str) and value.strip():
                    yield value.strip()
        if entity.kind == "shop":
            address = getattr(entity, "address", None) or ""
            for part in address.split(","):
                part = part.strip()
                if len(part) >= MIN_ADDRESS_PART_LENGTH:
                    yield part


def _checked(
    candidates: Iterable[str],
    cancel_token: CancellationToken | None,
    check_interval: int,
) -> Iterator[str]:
    if cancel_token is None:
        yield from candidates
        return
    interval = max(check_interval, 1)
    for index, candidate in enumerate(candidates):
        if index % interval == 0:
            cancel_token.raise_if_cancelled()
        yield candidate


def _best_by_text(scored: Iterable[tuple[str, float]]) -> list[tuple[str, float]]:
    # Case-insensitive dedup; first spelling wins on equal score.
    best: dict[str, tuple[str, float]] = {}
    for text, value in scored:
        key = normalize_text(text)
        existing = best.get(key)
        if existing is None or value > existing[1]:
            best[key] = (text, value)
    return sorted(best.values(), key=lambda pair: (-pair[1], normalize_text(pair[0])))


def autocomplete(
    query: str,
    candidates: Iterable[str],
    *,
    threshold: float = DEFAULT_SUGGESTION_THRESHOLD,
    limit: int = DEFAULT_MAX_SUGGESTIONS,
    cancel_token: CancellationToken | None = None,
    check_interval: int = DEFAULT_CHECK_INTERVAL,
) -> list[str]:
    needle = normalize_text(query)
    if len(needle) < 2:
        return []
    scored = (
        (candidate, value)
        for candidate in _checked(candidates, cancel_token, check_interval)
        if (value := score(candidate, needle)) > threshold
    )
    return [text for text, _ in _best_by_text(scored)[:limit]]


def did_you_mean(
    query: str,
    candidates: Iterable[str],
    *,
    threshold: float = DEFAULT_DID_YOU_MEAN_THRESHOLD,
    limit: int = DEFAULT_MAX_DID_YOU_MEAN,
    cancel_token: CancellationToken | None = None,
    check_interval: int = DEFAULT_CHECK_INTERVAL,
) -> list[str]:
    """
    Spelling corrections for ``query`` by whole-string similarity.

    Falls back to close or containing entries of POPULAR_TERMS when no
    catalog string is similar enough.
    """
    needle = normalize_text(query)
    if len(needle) < 2:
        return []

    scored: list[tuple[str, float]] = []
    for candidate in _checked(candidates, cancel_token, check_interval):
        if normalize_text(candidate) == needle:
            continue
        value = similarity(candidate, needle)
        if value > threshold:
            scored.append((candidate, value))
    corrections = [text for text, _ in _best_by_text(scored)[:limit]]
    if corrections:
        return corrections

    fallback = [
        (term, similarity(term, needle))
        for term in POPULAR_TERMS
        if term != needle
    ]
    fallback = [
        (term, value)
        for term, value in fallback
        if needle in term or value > POPULAR_FALLBACK_MIN_SIMILARITY
    ]
    return [text for text, _ in _best_by_text(fallback)[:limit]]


def suggest(
    query: str,
    entities: Iterable[SearchableEntity],
    *,
    threshold: float = DEFAULT_SUGGESTION_THRESHOLD,
    limit: int = DEFAULT_MAX_SUGGESTIONS,
    did_you_mean_threshold: float = DEFAULT_DID_YOU_MEAN_THRESHOLD,
    did_you_mean_limit: int = DEFAULT_MAX_DID_YOU_MEAN,
    cancel_token: CancellationToken | None = None,
    check_interval: int = DEFAULT_CHECK_INTERVAL,
) -> Suggestions:
    """
    Build autocomplete suggestions and corrections from one candidate pool.

    ``cancel_token`` is checked every ``check_interval`` candidates in each
    pass and raises SearchCancelled once it fires.
    """
    if len(normalize_text(query)) < 2:
        return Suggestions()
    candidates = list(_checked(iter_candidates(entities), cancel_token, check_interval))
    return Suggestions(
        suggestions=tuple(
            autocomplete(
                query,
                candidates,
                threshold=threshold,
                limit=limit,
                cancel_token=cancel_token,
                check_interval=check_interval,
            )
        ),
        did_you_mean=tuple(
            did_you_mean(
                query,
                candidates,
                threshold=did_you_mean_threshold,
                limit=did_you_mean_limit,
                cancel_token=cancel_token,
                check_interval=check_interval,
            )
        ),
    )
