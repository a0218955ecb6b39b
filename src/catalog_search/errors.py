"""
Error types raised by the catalog search engine.
"""

from __future__ import annotations


class CatalogSearchError(Exception):
    """Base class for catalog search failures."""


class ValidationError(CatalogSearchError, ValueError):
    """Raised when caller input is malformed."""


class InvalidReferenceIdError(ValidationError):
    """Raised when an explicit reference-ID lookup gets a malformed ID."""

    def __init__(self, raw_value: str) -> None:
        super().__init__(
            f"Invalid reference ID {raw_value!r}. "
            "Expected PREFIX-DISTRICT-NUMBER, e.g. PRD-MAN-001."
        )
        self.raw_value = raw_value


class FilterParseError(ValidationError):
    """Raised when search filter syntax is invalid."""


class ReferenceNotFoundError(CatalogSearchError):
    """Raised when a well-formed reference ID has no catalog entry."""

    def __init__(self, reference_id: str) -> None:
        super().__init__(f"No catalog entry with reference ID {reference_id}.")
        self.reference_id = reference_id


class CatalogUnavailable(CatalogSearchError):
    """Raised when the snapshot provider cannot deliver a catalog snapshot."""


class SearchCancelled(CatalogSearchError):
    """Raised when a search is cancelled or exceeds its deadline."""
