"""
Devanagari fill-in for catalog entries that only carry Latin-script names.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from indic_transliteration import sanscript
from indic_transliteration.sanscript import transliterate

logger = logging.getLogger(__name__)

DEVANAGARI_RE = re.compile(r"[\u0900-\u097F]")
LATIN_TEXT_RE = re.compile(r"^[a-zA-Z\s\-_.,()]+$")

# (source field, localized field) pairs filled on import.
LOCALIZED_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "localized_name"),
    ("category", "localized_category"),
)


def to_devanagari(text: str | None) -> str | None:
    """
    Transliterate Hinglish text such as ``toor dal`` into Devanagari.

    Text that already contains Devanagari is returned unchanged. Text with
    characters outside plain Latin letters and punctuation is skipped.
    """
    if not text or not text.strip():
        return None
    cleaned = text.strip()
    if DEVANAGARI_RE.search(cleaned):
        return cleaned
    if not LATIN_TEXT_RE.match(cleaned):
        return None
    # ITRANS treats capitals as distinct letters; catalog names are not ITRANS.
    result = transliterate(cleaned.lower(), sanscript.ITRANS, sanscript.DEVANAGARI)
    return result or None


def fill_localized_fields(entry: dict[str, Any]) -> dict[str, Any]:
    """Return ``entry`` with missing localized name and category transliterated."""
    filled = dict(entry)
    for source, target in LOCALIZED_FIELDS:
        current = filled.get(target)
        if isinstance(current, str) and current.strip():
            continue
        value = filled.get(source)
        if not isinstance(value, str):
            continue
        localized = to_devanagari(value)
        if localized is not None:
            filled[target] = localized
            logger.debug("Transliterated %s %r to %r", source, value, localized)
    return filled
