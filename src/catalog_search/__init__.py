"""
catalog_search - multi-entity catalog search and relevance ranking.

This package scores free-text queries against products, shops, menu
items, services and offices, resolves shareable reference IDs directly,
and produces autocomplete suggestions and spelling corrections.

Example usage:
    >>> from catalog_search import CatalogQueryEngine, StaticSnapshotProvider
    >>> provider = StaticSnapshotProvider.from_entities(entities)
    >>> response = CatalogQueryEngine(provider).search("basmati rice")
"""

from .config import SearchConfig, resolve_db_path
from .errors import (
    CatalogSearchError,
    CatalogUnavailable,
    FilterParseError,
    InvalidReferenceIdError,
    ReferenceNotFoundError,
    SearchCancelled,
    ValidationError,
)
from .geo import distance_km
from .models import (
    GeoPoint,
    MenuItem,
    Office,
    PriceRange,
    Product,
    SearchableEntity,
    Service,
    Shop,
    parse_entities,
    parse_entity,
)
from .search import (
    CancellationToken,
    CatalogQueryEngine,
    MatchResult,
    SearchFilters,
    SearchResponse,
    SearchResultCache,
    rank,
    suggest,
)
from .snapshot import CatalogSnapshot, SnapshotProvider
from .storage import (
    DuckDBCatalogStore,
    RefreshingSnapshotProvider,
    RetryPolicy,
    StaticSnapshotProvider,
    import_catalog,
    load_catalog_file,
)

__all__ = [
    # Config
    "SearchConfig",
    "resolve_db_path",
    # Errors
    "CatalogSearchError",
    "CatalogUnavailable",
    "FilterParseError",
    "InvalidReferenceIdError",
    "ReferenceNotFoundError",
    "SearchCancelled",
    "ValidationError",
    # Models
    "GeoPoint",
    "MenuItem",
    "Office",
    "PriceRange",
    "Product",
    "SearchableEntity",
    "Service",
    "Shop",
    "parse_entities",
    "parse_entity",
    "distance_km",
    # Search
    "CancellationToken",
    "CatalogQueryEngine",
    "MatchResult",
    "SearchFilters",
    "SearchResponse",
    "SearchResultCache",
    "rank",
    "suggest",
    # Snapshots and storage
    "CatalogSnapshot",
    "SnapshotProvider",
    "DuckDBCatalogStore",
    "RefreshingSnapshotProvider",
    "RetryPolicy",
    "StaticSnapshotProvider",
    "import_catalog",
    "load_catalog_file",
]
