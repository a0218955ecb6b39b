"""
Catalog store interface.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ..models import EntityKind, SearchableEntity


class CatalogStore(Protocol):
    """Persistence operations used by catalog loading and ID issuing."""

    def upsert_entities(self, entities: Iterable[SearchableEntity]) -> int:
        """Insert or replace entities keyed by (kind, id); return the count written."""

    def load_entities(self) -> list[SearchableEntity]:
        """Return every stored entity that still validates."""

    def count_by_kind(self) -> dict[str, int]:
        """Return stored entity counts per kind."""

    def next_reference_id(self, kind: EntityKind, district: str) -> str:
        """Return the next unused reference ID for ``kind`` in ``district``."""

    def get_reference_id(self, kind: EntityKind, entity_id: str) -> str | None:
        """Return the reference ID already stored for (kind, id), if any."""

    def close(self) -> None:
        """Release underlying resources."""
