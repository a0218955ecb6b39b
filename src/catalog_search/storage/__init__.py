"""Catalog persistence and snapshot providers."""

from .base import CatalogStore
from .duckdb import DuckDBCatalogStore
from .providers import (
    RefreshingSnapshotProvider,
    StaticSnapshotProvider,
    import_catalog,
    load_catalog_file,
    read_catalog_entries,
    store_loader,
)
from .retry import RetryPolicy

__all__ = [
    "CatalogStore",
    "DuckDBCatalogStore",
    "RefreshingSnapshotProvider",
    "StaticSnapshotProvider",
    "import_catalog",
    "load_catalog_file",
    "read_catalog_entries",
    "store_loader",
    "RetryPolicy",
]
