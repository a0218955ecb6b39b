"""Search helpers for the catalog."""

from .cache import SearchResultCache
from .cancellation import CancellationToken
from .filters import (
    LocationFilter,
    SearchFilters,
    parse_search_filters,
    supported_filter_syntax,
)
from .query import CatalogQueryEngine, SearchResponse
from .ranker import MatchResult, RankedList, merge_results, order_results, rank
from .reference import (
    generate_reference_id,
    is_reference_id,
    lookup,
    parse_reference_id,
    reference_path,
    resolve,
)
from .related import related_items, related_searches
from .scorer import score, similarity
from .suggestions import POPULAR_TERMS, Suggestions, suggest

__all__ = [
    "SearchResultCache",
    "CancellationToken",
    "LocationFilter",
    "SearchFilters",
    "parse_search_filters",
    "supported_filter_syntax",
    "CatalogQueryEngine",
    "SearchResponse",
    "MatchResult",
    "RankedList",
    "merge_results",
    "order_results",
    "rank",
    "generate_reference_id",
    "is_reference_id",
    "lookup",
    "parse_reference_id",
    "reference_path",
    "resolve",
    "related_items",
    "related_searches",
    "score",
    "similarity",
    "POPULAR_TERMS",
    "Suggestions",
    "suggest",
]
