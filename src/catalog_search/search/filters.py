"""
Search filter model and filter-string parsing helpers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from ..errors import FilterParseError
from ..models import ENTITY_KINDS, EntityKind, PriceRange

SortBy: TypeAlias = Literal["relevance", "price", "rating", "distance", "newest"]
FilterOperator: TypeAlias = Literal["eq", "gt", "gte", "lt", "lte", "in"]

DEFAULT_LIMIT = 50
MAX_LIMIT = 500

_KIND_ALIASES: dict[str, EntityKind] = {
    "product": "product",
    "products": "product",
    "item": "product",
    "shop": "shop",
    "shops": "shop",
    "menu": "menu_item",
    "menu_item": "menu_item",
    "menu_items": "menu_item",
    "service": "service",
    "services": "service",
    "office": "office",
    "offices": "office",
}


class LocationFilter(BaseModel):
    """User position, optionally with a hard search radius."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    radius_km: float | None = Field(default=None, gt=0)


class SearchFilters(BaseModel):
    """Optional constraints applied around relevance ranking."""

    model_config = ConfigDict(frozen=True)

    entity_types: frozenset[EntityKind] | None = Field(
        default=None, description="Kinds to search; all kinds when unset"
    )
    category: str | None = None
    district: str | None = None
    price_range: PriceRange | None = None
    location: LocationFilter | None = None
    sort_by: SortBy = "relevance"
    include_out_of_stock: bool = False
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    offset: int = Field(default=0, ge=0)

    def allows_kind(self, kind: str) -> bool:
        return self.entity_types is None or kind in self.entity_types

    def cache_key(self) -> str:
        return self.model_dump_json(exclude={"limit", "offset"})


@dataclass(frozen=True)
class FilterCondition:
    """One parsed ``field op value`` condition."""

    field: str
    operator: FilterOperator
    value: str | bool | int | float | list[str | bool | int | float]


_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")

SUPPORTED_FIELDS = frozenset(
    {"type", "category", "district", "price", "sort", "include_out_of_stock"}
)


def supported_filter_syntax() -> str:
    """Return a short help text for filter syntax."""
    return (
        "Supported filter syntax: "
        "`type=product`, `type in (product, shop)`, `category=grocery`, "
        "`district=mandsaur`, `price>=10`, `price<=500`, `sort=price`, "
        "`include_out_of_stock=true`; combine with comma or `and`."
    )


def parse_filter_conditions(raw_filters: str | None) -> list[FilterCondition]:
    """Parse a raw filter string into normalized conditions."""
    if raw_filters is None or not raw_filters.strip():
        return []
    return [_parse_condition(condition) for condition in _split_conditions(raw_filters)]


def parse_search_filters(
    raw_filters: str | None,
    *,
    base: SearchFilters | None = None,
) -> SearchFilters:
    """Parse a filter string and merge it over ``base``."""
    filters = base or SearchFilters()
    conditions = parse_filter_conditions(raw_filters)
    if not conditions:
        return filters

    update: dict[str, Any] = {}
    price_min: float | None = None
    price_max: float | None = None
    for condition in conditions:
        if condition.field == "type":
            values = condition.value if isinstance(condition.value, list) else [condition.value]
            if condition.operator not in {"eq", "in"}:
                raise FilterParseError("`type` only supports `=` and `in`.")
            update["entity_types"] = frozenset(parse_entity_kind(value) for value in values)
        elif condition.field in {"category", "district"}:
            _require_eq(condition)
            update[condition.field] = str(condition.value)
        elif condition.field == "sort":
            _require_eq(condition)
            update["sort_by"] = str(condition.value).lower()
        elif condition.field == "include_out_of_stock":
            _require_eq(condition)
            if not isinstance(condition.value, bool):
                raise FilterParseError("`include_out_of_stock` expects true or false.")
            update["include_out_of_stock"] = condition.value
        elif condition.field == "price":
            if not isinstance(condition.value, (int, float)) or isinstance(
                condition.value, bool
            ):
                raise FilterParseError("`price` requires a numeric value.")
            number = float(condition.value)
            if condition.operator in {"gt", "gte", "eq"}:
                price_min = number
            if condition.operator in {"lt", "lte", "eq"}:
                price_max = number

    if price_min is not None or price_max is not None:
        current = filters.price_range
        update["price_range"] = {
            "min": price_min if price_min is not None else (current.min if current else 0.0),
            "max": price_max if price_max is not None else (current.max if current else None),
        }

    try:
        return SearchFilters.model_validate({**filters.model_dump(), **update})
    except PydanticValidationError as exc:
        raise FilterParseError(f"Invalid filter values: {exc.errors()[0]['msg']}") from exc


def parse_entity_kind(value: Any) -> EntityKind:
    """Resolve a kind name or alias such as ``menu`` or ``shops``."""
    kind = _KIND_ALIASES.get(str(value).strip().lower())
    if kind is None:
        allowed = ", ".join(ENTITY_KINDS)
        raise FilterParseError(f"Unknown entity type {value!r}. Allowed types: {allowed}")
    return kind


def _require_eq(condition: FilterCondition) -> None:
    if condition.operator != "eq":
        raise FilterParseError(f"`{condition.field}` only supports `=`.")


def _parse_condition(condition: str) -> FilterCondition:
    text = condition.strip()
    if not text:
        raise FilterParseError("Empty filter condition.")

    in_match = re.match(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s+in\s+(.+)\s*$", text, flags=re.IGNORECASE)
    if in_match:
        field = in_match.group(1).lower()
        _validate_field(field)
        values = _parse_list_value(in_match.group(2))
        if not values:
            raise FilterParseError(f"`in` filter has no values: {text!r}")
        return FilterCondition(field=field, operator="in", value=values)

    op_match = re.match(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(<=|>=|=|<|>|:)\s*(.+)\s*$", text)
    if not op_match:
        raise FilterParseError(f"Invalid filter syntax: {text!r}")

    field = op_match.group(1).lower()
    operator_symbol = op_match.group(2)
    _validate_field(field)
    value = _parse_scalar_value(op_match.group(3))

    operator_map: dict[str, FilterOperator] = {
        "=": "eq",
        ":": "eq",
        ">": "gt",
        ">=": "gte",
        "<": "lt",
        "<=": "lte",
    }
    operator = operator_map[operator_symbol]

    if operator in {"gt", "gte", "lt", "lte"} and not isinstance(value, (int, float)):
        raise FilterParseError(
            f"Operator `{operator_symbol}` requires a numeric value: {text!r}"
        )

    return FilterCondition(field=field, operator=operator, value=value)


def _validate_field(field: str) -> None:
    if not _FIELD_RE.match(field):
        raise FilterParseError(f"Invalid field name: {field!r}")
    if field not in SUPPORTED_FIELDS:
        allowed = ", ".join(sorted(SUPPORTED_FIELDS))
        raise FilterParseError(f"Unknown filter field {field!r}. Allowed fields: {allowed}")


def _split_conditions(raw: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    depth = 0
    i = 0
    while i < len(raw):
        ch = raw[i]

        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in {"'", '"'}:
            quote = ch
        elif ch in {"(", "["}:
            depth += 1
        elif ch in {")", "]"}:
            depth = max(depth - 1, 0)
        elif depth == 0 and ch == ",":
            _flush_part(parts, current)
            i += 1
            continue
        elif (
            depth == 0
            and raw[i : i + 3].lower() == "and"
            and (i == 0 or raw[i - 1].isspace())
            and (i + 3 == len(raw) or raw[i + 3].isspace())
        ):
            _flush_part(parts, current)
            i += 3
            continue

        current.append(ch)
        i += 1

    _flush_part(parts, current)
    return parts


def _flush_part(parts: list[str], current: list[str]) -> None:
    text = "".join(current).strip()
    if text:
        parts.append(text)
    current.clear()


def _parse_list_value(raw_value: str) -> list[str | bool | int | float]:
    text = raw_value.strip()
    if (text.startswith("(") and text.endswith(")")) or (
        text.startswith("[") and text.endswith("]")
    ):
        text = text[1:-1]

    if not text.strip():
        return []

    return [_parse_scalar_value(item) for item in _split_conditions(text)]


def _parse_scalar_value(raw_value: str) -> str | bool | int | float:
    text = raw_value.strip()
    if not text:
        raise FilterParseError("Missing filter value.")

    if (text.startswith("'") and text.endswith("'")) or (
        text.startswith('"') and text.endswith('"')
    ):
        return text[1:-1]

    lower = text.lower()
    if lower == "true":
        return True
    if lower == "false":
        return False
    if _NUMBER_RE.match(text):
        if "." in text:
            return float(text)
        return int(text)
    return text
