"""
Catalog entity models.

Every searchable record is one variant of a discriminated union keyed by
``kind``. Models are frozen so a loaded snapshot cannot be mutated while it
is being ranked.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Any, Literal, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

EntityKind: TypeAlias = Literal["product", "shop", "menu_item", "service", "office"]
ReferencePrefix: TypeAlias = Literal["SHP", "PRD", "MNU", "SRV", "OFF"]

ENTITY_KINDS: tuple[EntityKind, ...] = (
    "product",
    "menu_item",
    "shop",
    "service",
    "office",
)

PREFIX_TO_KIND: dict[str, EntityKind] = {
    "SHP": "shop",
    "PRD": "product",
    "MNU": "menu_item",
    "SRV": "service",
    "OFF": "office",
}
KIND_TO_PREFIX: dict[EntityKind, str] = {
    kind: prefix for prefix, kind in PREFIX_TO_KIND.items()
}

REFERENCE_ID_RE = re.compile(r"^(SHP|PRD|MNU|SRV|OFF)-([A-Z]{3})-(\d{3})$")


class GeoPoint(BaseModel):
    """A latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(description="Latitude in decimal degrees")
    lng: float = Field(description="Longitude in decimal degrees")


class PriceRange(BaseModel):
    """Inclusive price bounds."""

    model_config = ConfigDict(frozen=True)

    min: float = Field(default=0.0, ge=0)
    max: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PriceRange":
        if self.max is not None and self.max < self.min:
            raise ValueError("price range max must be >= min")
        return self

    def contains(self, value: float) -> bool:
        if value < self.min:
            return False
        return self.max is None or value <= self.max

    def overlaps(self, other: "PriceRange") -> bool:
        if self.max is not None and other.min > self.max:
            return False
        if other.max is not None and self.min > other.max:
            return False
        return True


class CatalogEntity(BaseModel):
    """Fields shared by every searchable record."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: EntityKind
    id: str = Field(min_length=1, description="Identifier, unique within its kind")
    reference_id: str = Field(description="Shareable ID such as PRD-MAN-001")
    name: str = Field(description="Primary display name")
    localized_name: str | None = Field(
        default=None, description="Secondary-script name, e.g. Hindi"
    )
    category: str | None = None
    localized_category: str | None = Field(
        default=None, description="Category in the secondary script"
    )
    brand: str | None = None
    tags: tuple[str, ...] = ()
    description: str | None = None
    district: str | None = None
    rating: float | None = None
    created_at: datetime | None = None
    is_featured: bool = False

    # Overridden by the variants that carry them.
    price: float | None = None
    location: GeoPoint | None = None
    shop_id: str | None = None

    @model_validator(mode="after")
    def _check_reference_prefix(self) -> "CatalogEntity":
        match = REFERENCE_ID_RE.match(self.reference_id)
        if match is None:
            raise ValueError(
                f"reference_id {self.reference_id!r} does not match "
                "PREFIX-DISTRICT-NUMBER"
            )
        expected = KIND_TO_PREFIX[self.kind]
        if match.group(1) != expected:
            raise ValueError(
                f"reference_id {self.reference_id!r} must start with "
                f"{expected} for kind {self.kind!r}"
            )
        return self

    @property
    def key(self) -> tuple[str, str]:
        return (self.kind, self.id)

    @property
    def is_available(self) -> bool:
        return True


class Product(CatalogEntity):
    """A stocked product sold by a shop."""

    kind: Literal["product"] = "product"
    stock: int | None = None
    availability: bool | None = Field(
        default=None, description="Explicit availability override"
    )
    variety: str | None = None

    @property
    def is_available(self) -> bool:
        if self.availability is not None:
            return self.availability
        return self.stock is None or self.stock > 0


class MenuItem(CatalogEntity):
    """A dish on a restaurant, cafe or hotel menu."""

    kind: Literal["menu_item"] = "menu_item"
    availability: bool | None = None
    is_veg: bool | None = None

    @property
    def is_available(self) -> bool:
        return self.availability is not False


class Shop(CatalogEntity):
    """A registered storefront."""

    kind: Literal["shop"] = "shop"
    address: str | None = None
    opening_time: str | None = None
    closing_time: str | None = None
    owner_name: str | None = None
    phone: str | None = None


class Service(CatalogEntity):
    """A bookable service offered by a shop."""

    kind: Literal["service"] = "service"
    price_range: PriceRange | None = None
    highlights: tuple[str, ...] = ()


class Office(CatalogEntity):
    """A public or private office listing."""

    kind: Literal["office"] = "office"
    address: str | None = None
    opening_time: str | None = None
    closing_time: str | None = None
    services: tuple[str, ...] = ()


SearchableEntity: TypeAlias = Annotated[
    Union[Product, Shop, MenuItem, Service, Office],
    Field(discriminator="kind"),
]

_ENTITY_LIST_ADAPTER: TypeAdapter[list[SearchableEntity]] = TypeAdapter(
    list[SearchableEntity]
)
_ENTITY_ADAPTER: TypeAdapter[SearchableEntity] = TypeAdapter(SearchableEntity)


def parse_entity(payload: dict[str, Any]) -> SearchableEntity:
    """Validate one raw mapping into its entity variant."""
    return _ENTITY_ADAPTER.validate_python(payload)


def parse_entities(payload: list[dict[str, Any]]) -> list[SearchableEntity]:
    """Validate a list of raw mappings into entity variants."""
    return _ENTITY_LIST_ADAPTER.validate_python(payload)
