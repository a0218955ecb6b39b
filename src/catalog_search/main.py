import json
import logging
from typing import Annotated, Any

import duckdb
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from typer import Argument, Exit, Option, Typer, echo

from .config import SearchConfig, resolve_db_path
from .errors import CatalogSearchError, ValidationError
from .models import SearchableEntity
from .search import (
    CatalogQueryEngine,
    SearchFilters,
    SearchResponse,
    parse_search_filters,
    supported_filter_syntax,
)
from .search.filters import parse_entity_kind
from .search.reference import reference_path
from .storage import (
    DuckDBCatalogStore,
    StaticSnapshotProvider,
    import_catalog,
    load_catalog_file,
    read_catalog_entries,
    store_loader,
)

app = Typer(help="Search a multi-entity local catalog.")
console = Console()

RETRY_MESSAGE = "no results, please retry"

# Bad config values surface as ValueError; locked or corrupt databases as duckdb.Error.
CLI_ERRORS = (CatalogSearchError, ValueError, OSError, duckdb.Error)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _print_error(exc: Exception) -> None:
    console.print(
        Panel(
            f"{RETRY_MESSAGE}\n\n{exc}",
            title="Search failed",
            title_align="left",
            border_style="bold red",
        )
    )


def _load_entities(catalog: str | None, db_path: str | None) -> list[SearchableEntity]:
    if catalog:
        return load_catalog_file(catalog)
    return store_loader(lambda: DuckDBCatalogStore(resolve_db_path(db_path)))()


def _engine(catalog: str | None, db_path: str | None) -> CatalogQueryEngine:
    provider = StaticSnapshotProvider.from_entities(_load_entities(catalog, db_path))
    return CatalogQueryEngine(provider, config=SearchConfig.from_env())


def _results_table(response: SearchResponse) -> Table:
    table = Table(title=f"Results for {response.query!r}", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Reference", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Score", justify="right")
    table.add_column("Match")
    table.add_column("Distance", justify="right")
    for position, result in enumerate(response.results, start=1):
        table.add_row(
            str(position),
            result.reference_id,
            result.kind,
            result.entity.name,
            f"{result.score:.2f}",
            result.match_type,
            "-" if result.distance_km is None else f"{result.distance_km:.2f} km",
        )
    return table


@app.callback()
def main(
    verbose: Annotated[
        bool,
        Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    configure_logging(verbose)


DbPathOption = Annotated[
    str | None,
    Option("--db-path", help="DuckDB catalog path (defaults to CATALOG_SEARCH_DB_PATH)."),
]
CatalogOption = Annotated[
    str | None,
    Option("--catalog", "-c", help="Search a JSON catalog file instead of the database."),
]


@app.command()
def load(
    catalog_file: Annotated[str, Argument(help="JSON catalog file to import.")],
    db_path: DbPathOption = None,
) -> None:
    """Import catalog entities from a JSON file into the database."""
    try:
        entries = read_catalog_entries(catalog_file)
        store = DuckDBCatalogStore(resolve_db_path(db_path))
        try:
            written = import_catalog(entries, store)
            counts = store.count_by_kind()
        finally:
            store.close()
    except CLI_ERRORS as exc:
        _print_error(exc)
        raise Exit(code=1)

    summary = ", ".join(f"{kind}: {count}" for kind, count in counts.items()) or "empty"
    console.print(
        Panel(
            f"Imported {written} entities.\nCatalog now holds {summary}.",
            title="Catalog loaded",
            title_align="left",
            border_style="bold green",
        )
    )


@app.command()
def search(
    query: Annotated[str, Argument(help="Search text or a reference ID.")],
    entity_type: Annotated[
        list[str] | None,
        Option("--type", "-t", help="Restrict to entity kinds (repeatable)."),
    ] = None,
    filters: Annotated[
        str | None,
        Option("--filters", "-f", help=supported_filter_syntax()),
    ] = None,
    lat: Annotated[float | None, Option("--lat", help="User latitude.")] = None,
    lng: Annotated[float | None, Option("--lng", help="User longitude.")] = None,
    radius: Annotated[
        float | None, Option("--radius", help="Only results within this many km.")
    ] = None,
    sort: Annotated[
        str, Option("--sort", help="relevance, price, rating, distance or newest.")
    ] = "relevance",
    limit: Annotated[int | None, Option("--limit", "-n")] = None,
    offset: Annotated[int, Option("--offset")] = 0,
    include_out_of_stock: Annotated[
        bool, Option("--include-out-of-stock", help="Keep unavailable items.")
    ] = False,
    as_json: Annotated[bool, Option("--json", help="Print the raw response.")] = False,
    catalog: CatalogOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Search the catalog."""
    try:
        config = SearchConfig.from_env()
        base: dict[str, Any] = {
            "sort_by": sort,
            "limit": limit or config.default_limit,
            "offset": offset,
            "include_out_of_stock": include_out_of_stock,
        }
        if lat is not None and lng is not None:
            base["location"] = {"lat": lat, "lng": lng, "radius_km": radius}
        if entity_type:
            base["entity_types"] = frozenset(parse_entity_kind(kind) for kind in entity_type)
        try:
            search_filters = SearchFilters.model_validate(base)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid search options: {exc.errors()[0]['msg']}"
            ) from exc
        search_filters = parse_search_filters(filters, base=search_filters)
        response = _engine(catalog, db_path).search(query, search_filters)
    except CLI_ERRORS as exc:
        _print_error(exc)
        raise Exit(code=1)

    if as_json:
        echo(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        return

    if response.degraded:
        _print_error(CatalogSearchError(response.error or "Catalog unavailable."))
        raise Exit(code=1)
    if not response.results:
        console.print(f"[bold yellow]No results for {query!r}.[/]")
    else:
        console.print(_results_table(response))
        console.print(
            f"{len(response.results)} of {response.total_results} results "
            f"in {response.search_time_ms} ms"
        )
    if response.did_you_mean:
        console.print(f"[bold cyan]Did you mean:[/] {', '.join(response.did_you_mean)}")
    if response.related_searches:
        console.print(f"[bold]Related:[/] {', '.join(response.related_searches)}")


@app.command()
def suggest(
    query: Annotated[str, Argument(help="Partial query.")],
    catalog: CatalogOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Show autocomplete suggestions and spelling corrections."""
    try:
        result = _engine(catalog, db_path).suggest(query)
    except CLI_ERRORS as exc:
        _print_error(exc)
        raise Exit(code=1)
    console.print(f"[bold]Suggestions:[/] {', '.join(result.suggestions) or '-'}")
    console.print(f"[bold]Did you mean:[/] {', '.join(result.did_you_mean) or '-'}")


@app.command()
def lookup(
    reference_id: Annotated[str, Argument(help="Reference ID such as PRD-MAN-001.")],
    catalog: CatalogOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Look up one entity by reference ID."""
    try:
        result = _engine(catalog, db_path).lookup(reference_id)
    except CLI_ERRORS as exc:
        _print_error(exc)
        raise Exit(code=1)
    console.print(
        Panel(
            json.dumps(result.entity.model_dump(mode="json"), indent=2, ensure_ascii=False),
            title=f"{result.reference_id}  {reference_path(result.reference_id)}",
            title_align="left",
            border_style="bold green",
        )
    )


@app.command()
def status(db_path: DbPathOption = None) -> None:
    """Show entity counts in the catalog database."""
    try:
        store = DuckDBCatalogStore(resolve_db_path(db_path))
        try:
            counts = store.count_by_kind()
        finally:
            store.close()
    except CLI_ERRORS as exc:
        _print_error(exc)
        raise Exit(code=1)
    table = Table(title="Catalog", title_justify="left")
    table.add_column("Kind")
    table.add_column("Entities", justify="right")
    for kind, count in counts.items():
        table.add_row(kind, str(count))
    table.add_row("total", str(sum(counts.values())))
    console.print(table)


@app.command()
def serve(
    host: Annotated[str, Option("--host")] = "127.0.0.1",
    port: Annotated[int, Option("--port")] = 8000,
) -> None:
    """Run the HTTP API."""
    from .server import run_server

    run_server(host=host, port=port)
