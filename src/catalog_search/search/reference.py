"""
Reference-ID parsing, generation and direct lookup.

Reference IDs look like ``PRD-MAN-024``: an entity prefix, a three-letter
district code and a three-digit sequence number. A query in this shape
bypasses relevance scoring and resolves to exactly one catalog entry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import InvalidReferenceIdError, ReferenceNotFoundError
from ..models import KIND_TO_PREFIX, PREFIX_TO_KIND, REFERENCE_ID_RE, EntityKind
from ..snapshot import CatalogSnapshot
from .ranker import MatchResult
from .scorer import EXACT_SCORE

_NON_LETTERS_RE = re.compile(r"[^A-Z]")

_PATH_SEGMENTS: dict[EntityKind, str] = {
    "shop": "shop",
    "product": "product",
    "menu_item": "menu",
    "service": "service",
    "office": "office",
}


@dataclass(frozen=True)
class ParsedReference:
    """Components of a reference ID."""

    prefix: str
    district: str
    number: int

    @property
    def kind(self) -> EntityKind:
        return PREFIX_TO_KIND[self.prefix]

    def __str__(self) -> str:
        return f"{self.prefix}-{self.district}-{self.number:03d}"


def normalize_reference_id(raw: str) -> str:
    return raw.strip().upper()


def parse_reference_id(raw: str | None) -> ParsedReference | None:
    """Parse ``raw`` (any case) into its components, or None if malformed."""
    if not raw:
        return None
    match = REFERENCE_ID_RE.match(normalize_reference_id(raw))
    if match is None:
        return None
    return ParsedReference(
        prefix=match.group(1),
        district=match.group(2),
        number=int(match.group(3)),
    )


def is_reference_id(raw: str | None) -> bool:
    return parse_reference_id(raw) is not None


def kind_for_prefix(prefix: str) -> EntityKind | None:
    return PREFIX_TO_KIND.get(prefix.upper())


def district_code(district: str) -> str:
    """First three letters of a district name, padded with ``X``."""
    return _NON_LETTERS_RE.sub("", district.upper())[:3].ljust(3, "X")


def generate_reference_id(kind: EntityKind, district: str, count: int) -> str:
    """
    Build the next reference ID for ``kind`` in ``district``.

    ``count`` is the highest sequence number already issued for that prefix
    and district; the new number is ``count + 1``.
    """
    if count < 0:
        raise ValueError("count must be >= 0")
    if count + 1 > 999:
        raise ValueError(f"Reference ID space exhausted for {kind} in {district!r}")
    return f"{KIND_TO_PREFIX[kind]}-{district_code(district)}-{count + 1:03d}"


def reference_path(reference_id: str) -> str:
    """URL path for a reference ID, e.g. ``/product/PRD-MAN-024``."""
    parsed = parse_reference_id(reference_id)
    if parsed is None:
        return "/"
    return f"/{_PATH_SEGMENTS[parsed.kind]}/{parsed}"


def resolve(raw_query: str, snapshot: CatalogSnapshot) -> MatchResult | None:
    """
    Resolve a query shaped like a reference ID.

    Returns None when the query is not in reference-ID form so the caller
    can fall through to relevance ranking. Raises ReferenceNotFoundError when
    the ID is well-formed but absent from the snapshot.
    """
    parsed = parse_reference_id(raw_query)
    if parsed is None:
        return None

    reference_id = str(parsed)
    entity = snapshot.get_by_reference(reference_id)
    if entity is None or entity.kind != parsed.kind:
        raise ReferenceNotFoundError(reference_id)

    return MatchResult(
        entity=entity,
        score=EXACT_SCORE,
        match_type="exact",
        matched_fields=("reference_id",),
        distance_km=None,
    )


def lookup(raw_reference: str, snapshot: CatalogSnapshot) -> MatchResult:
    """Explicit reference-ID lookup; malformed input is a validation error."""
    result = resolve(raw_reference, snapshot)
    if result is None:
        raise InvalidReferenceIdError(raw_reference)
    return result
