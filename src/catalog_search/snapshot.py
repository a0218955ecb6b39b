"""
Immutable point-in-time view of the catalog.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol

from .models import GeoPoint, SearchableEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Read-only entity set with reference-ID and (kind, id) indexes."""

    entities: tuple[SearchableEntity, ...]
    version: str
    loaded_at: float
    _by_reference: Mapping[str, SearchableEntity] = field(repr=False, compare=False)
    _by_key: Mapping[tuple[str, str], SearchableEntity] = field(
        repr=False, compare=False
    )

    @classmethod
    def build(
        cls,
        entities: Iterable[SearchableEntity],
        *,
        version: str | None = None,
        loaded_at: float | None = None,
    ) -> "CatalogSnapshot":
        kept: list[SearchableEntity] = []
        by_reference: dict[str, SearchableEntity] = {}
        by_key: dict[tuple[str, str], SearchableEntity] = {}
        for entity in entities:
            if entity.reference_id in by_reference:
                logger.warning(
                    "Duplicate reference ID %s; keeping the first entry",
                    entity.reference_id,
                )
                continue
            if entity.key in by_key:
                logger.warning("Duplicate %s id %s; keeping the first entry", *entity.key)
                continue
            by_reference[entity.reference_id] = entity
            by_key[entity.key] = entity
            kept.append(entity)
        return cls(
            entities=tuple(kept),
            version=version or uuid.uuid4().hex,
            loaded_at=loaded_at if loaded_at is not None else time.time(),
            _by_reference=MappingProxyType(by_reference),
            _by_key=MappingProxyType(by_key),
        )

    def __len__(self) -> int:
        return len(self.entities)

    def get_by_reference(self, reference_id: str) -> SearchableEntity | None:
        return self._by_reference.get(reference_id)

    def get(self, kind: str, entity_id: str) -> SearchableEntity | None:
        return self._by_key.get((kind, entity_id))

    def parent_shop(self, entity: SearchableEntity) -> SearchableEntity | None:
        if entity.shop_id is None:
            return None
        return self._by_key.get(("shop", entity.shop_id))

    def location_of(self, entity: SearchableEntity) -> GeoPoint | None:
        """Entity location, falling back to the owning shop's location."""
        if entity.location is not None:
            return entity.location
        shop = self.parent_shop(entity)
        return shop.location if shop is not None else None

    def counts_by_kind(self) -> dict[str, int]:
        return dict(Counter(entity.kind for entity in self.entities))


class SnapshotProvider(Protocol):
    """Source of the current catalog snapshot."""

    def get_current_snapshot(self) -> CatalogSnapshot:
        """Return the current snapshot or raise CatalogUnavailable."""
