"""
FastAPI server exposing catalog search over HTTP.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import SearchConfig, resolve_db_path
from .errors import (
    CatalogSearchError,
    CatalogUnavailable,
    ReferenceNotFoundError,
    SearchCancelled,
    ValidationError,
)
from .search import CatalogQueryEngine, SearchFilters, SearchResultCache, parse_search_filters
from .search.reference import reference_path
from .snapshot import SnapshotProvider
from .storage import DuckDBCatalogStore, RefreshingSnapshotProvider, store_loader

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "no results, please retry"


class SearchRequest(BaseModel):
    """Request model for search queries."""

    query: str
    filters: SearchFilters | None = None
    filter_expression: str | None = Field(
        default=None, description="Filter string such as `type=product, price<=500`"
    )


def _error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, ValidationError):
        status_code = 400
    elif isinstance(exc, ReferenceNotFoundError):
        status_code = 404
    elif isinstance(exc, (SearchCancelled, CatalogUnavailable)):
        status_code = 503
    else:
        status_code = 500
    return JSONResponse(
        {"results": [], "error": RETRY_MESSAGE, "detail": str(exc)},
        status_code=status_code,
    )


def default_provider(
    config: SearchConfig | None = None, db_path: str | None = None
) -> RefreshingSnapshotProvider:
    """Provider reading the DuckDB catalog, refreshed every snapshot TTL."""
    config = config or SearchConfig()
    return RefreshingSnapshotProvider(
        store_loader(
            lambda: DuckDBCatalogStore(
                resolve_db_path(db_path), read_only=True, initialize=False
            )
        ),
        ttl_seconds=config.snapshot_ttl_seconds,
    )


def create_app(
    provider: SnapshotProvider | None = None,
    *,
    config: SearchConfig | None = None,
    cache: SearchResultCache | None = None,
) -> FastAPI:
    """Build the HTTP app around one query engine."""
    config = config or SearchConfig()
    if cache is None:
        cache = SearchResultCache(
            max_entries=config.cache_max_entries, ttl_seconds=config.cache_ttl_seconds
        )
    engine = CatalogQueryEngine(
        provider or default_provider(config), config=config, cache=cache
    )

    app = FastAPI(title="Catalog Search", description="Multi-entity catalog search")
    app.state.engine = engine

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"results": [], "error": RETRY_MESSAGE, "detail": exc.errors()[0].get("msg")},
            status_code=400,
        )

    @app.post("/api/search")
    async def search(request: SearchRequest):
        """Rank catalog entities for a query."""
        try:
            filters = request.filters or SearchFilters(limit=config.default_limit)
            if request.filter_expression:
                filters = parse_search_filters(request.filter_expression, base=filters)
            response = await asyncio.to_thread(engine.search, request.query, filters)
            return response.to_dict()
        except CatalogSearchError as exc:
            return _error_response(exc)

    @app.get("/api/suggestions")
    async def suggestions(q: str = ""):
        """Autocomplete suggestions for a partial query."""
        result = await asyncio.to_thread(engine.suggest, q)
        return {"query": q, "suggestions": list(result.suggestions)}

    @app.get("/api/did-you-mean")
    async def did_you_mean(q: str = ""):
        """Spelling corrections for a query."""
        result = await asyncio.to_thread(engine.suggest, q)
        return {"query": q, "did_you_mean": list(result.did_you_mean)}

    @app.get("/api/reference/{reference_id}")
    async def reference(reference_id: str):
        """Direct lookup by reference ID."""
        try:
            result = await asyncio.to_thread(engine.lookup, reference_id)
        except CatalogSearchError as exc:
            return _error_response(exc)
        payload: dict[str, Any] = result.to_dict()
        payload["path"] = reference_path(result.reference_id)
        return payload

    @app.get("/api/related/{reference_id}")
    async def related(reference_id: str, limit: int = 10):
        """Items related to the entity with ``reference_id``."""
        try:
            results = await asyncio.to_thread(engine.related, reference_id, limit=limit)
        except CatalogSearchError as exc:
            return _error_response(exc)
        return {
            "reference_id": reference_id.strip().upper(),
            "results": [result.to_dict() for result in results],
        }

    @app.get("/api/catalog/status")
    async def catalog_status():
        """Snapshot version, entity counts and cache stats."""
        try:
            return await asyncio.to_thread(engine.status)
        except CatalogSearchError as exc:
            return _error_response(exc)

    return app


app = create_app()


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
