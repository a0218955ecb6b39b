"""
Snapshot providers and catalog file loading.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from ..errors import CatalogUnavailable, ValidationError
from ..models import KIND_TO_PREFIX, SearchableEntity, parse_entities
from ..search.reference import generate_reference_id
from ..snapshot import CatalogSnapshot
from ..transliteration import fill_localized_fields
from .base import CatalogStore
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_TTL_SECONDS = 300.0


def read_catalog_entries(path: str | Path) -> list[dict[str, Any]]:
    """
    Read the raw entries of a JSON catalog file.

    The file holds either a list of entity objects or an object with an
    ``entities`` list. Missing Devanagari names and categories are
    transliterated from their Latin-script counterparts.
    """
    catalog_path = Path(path).expanduser()
    try:
        payload: Any = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Catalog file {catalog_path} is not valid JSON: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("entities")
    if not isinstance(payload, list):
        raise ValidationError(
            f"Catalog file {catalog_path} must contain a list of entities "
            "or an object with an 'entities' list."
        )
    return [
        fill_localized_fields(entry) if isinstance(entry, dict) else entry
        for entry in payload
    ]


def _validate(entries: list[dict[str, Any]]) -> list[SearchableEntity]:
    try:
        return parse_entities(entries)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid catalog entry at {location}: {first.get('msg')}"
        ) from exc


def load_catalog_file(path: str | Path) -> list[SearchableEntity]:
    """Read and validate a JSON catalog file; every entry needs a reference ID."""
    return _validate(read_catalog_entries(path))


def import_catalog(entries: list[dict[str, Any]], store: CatalogStore) -> int:
    """
    Validate ``entries`` and write them to ``store``.

    Entries without a ``reference_id`` keep the ID already stored for their
    (kind, id), or get the next one issued by the store. Nothing is written
    when any entry is invalid.
    """
    pending: set[int] = set()
    prepared: list[Any] = []
    for index, entry in enumerate(entries):
        if (
            isinstance(entry, dict)
            and not entry.get("reference_id")
            and entry.get("kind") in KIND_TO_PREFIX
        ):
            # Placeholder so the entry validates; replaced before writing.
            entry = {
                **entry,
                "reference_id": generate_reference_id(
                    entry["kind"], str(entry.get("district") or ""), 0
                ),
            }
            pending.add(index)
        prepared.append(entry)
    entities = _validate(prepared)

    written = store.upsert_entities(
        entity for index, entity in enumerate(entities) if index not in pending
    )
    for index in sorted(pending):
        entity = entities[index]
        reference_id = store.get_reference_id(
            entity.kind, entity.id
        ) or store.next_reference_id(entity.kind, entity.district or "")
        written += store.upsert_entities(
            [entity.model_copy(update={"reference_id": reference_id})]
        )
    if pending:
        logger.info("Issued reference IDs for %d catalog entries", len(pending))
    return written


def store_loader(
    open_store: Callable[[], CatalogStore],
) -> Callable[[], list[SearchableEntity]]:
    """Loader that opens a store, reads every entity and closes it again."""

    def load() -> list[SearchableEntity]:
        store = open_store()
        try:
            return store.load_entities()
        finally:
            store.close()

    return load


class StaticSnapshotProvider:
    """Provider that always returns one prebuilt snapshot."""

    def __init__(self, snapshot: CatalogSnapshot) -> None:
        self._snapshot = snapshot

    @classmethod
    def from_entities(cls, entities: Iterable[SearchableEntity]) -> "StaticSnapshotProvider":
        return cls(CatalogSnapshot.build(entities))

    def get_current_snapshot(self) -> CatalogSnapshot:
        return self._snapshot


class RefreshingSnapshotProvider:
    """
    Provider that reloads the catalog once its snapshot is older than ``ttl_seconds``.

    A refresh swaps in a whole new snapshot; callers holding the previous
    one keep using it. When a refresh fails after retries, the stale
    snapshot keeps being served until the next TTL window. With no snapshot
    at all, failures surface as CatalogUnavailable.
    """

    def __init__(
        self,
        loader: Callable[[], Iterable[SearchableEntity]],
        *,
        ttl_seconds: float = DEFAULT_SNAPSHOT_TTL_SECONDS,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self.retry_policy = retry_policy or RetryPolicy()
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: CatalogSnapshot | None = None
        self._refreshed_at = 0.0

    def _is_fresh(self) -> bool:
        return (
            self._snapshot is not None
            and self._clock() - self._refreshed_at < self.ttl_seconds
        )

    def get_current_snapshot(self) -> CatalogSnapshot:
        snapshot = self._snapshot
        if snapshot is not None and self._is_fresh():
            return snapshot
        with self._lock:
            if self._is_fresh():
                assert self._snapshot is not None
                return self._snapshot
            return self._refresh_locked()

    def refresh(self) -> CatalogSnapshot:
        """Force a reload regardless of snapshot age."""
        with self._lock:
            return self._refresh_locked()

    def _refresh_locked(self) -> CatalogSnapshot:
        try:
            entities = self.retry_policy.call(lambda: list(self._loader()))
        except Exception as exc:
            self._refreshed_at = self._clock()
            if self._snapshot is not None:
                logger.warning(
                    "Catalog refresh failed; serving stale snapshot %s: %s",
                    self._snapshot.version,
                    exc,
                )
                return self._snapshot
            raise CatalogUnavailable(f"Catalog could not be loaded: {exc}") from exc

        snapshot = CatalogSnapshot.build(entities)
        self._snapshot = snapshot
        self._refreshed_at = self._clock()
        logger.info(
            "Loaded catalog snapshot %s with %d entities", snapshot.version, len(snapshot)
        )
        return snapshot
