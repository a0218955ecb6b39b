"""
String match scoring for catalog text.

``score`` rates one candidate string against one query on a 0-10 scale.
Rules are tried in order and the first one that fires wins:

    exact                 10
    prefix                9 (query covers >= 70% of candidate) else 8
    substring             7 (query covers > 50% of candidate) else 6
    token overlap         up to 8
    whole-string fuzzy    similarity * 4 when similarity > 0.5
    short-query overlap   overlap * 2 for queries of <= 3 characters
"""

from __future__ import annotations

import re
import string
import unicodedata

from rapidfuzz.distance import Levenshtein

EXACT_SCORE = 10.0
TOKEN_SCORE_CAP = 8.0

PREFIX_STRONG_COVERAGE = 0.7
SUBSTRING_STRONG_COVERAGE = 0.5
TOKEN_FUZZY_MIN_SIMILARITY = 0.7
FUZZY_MIN_SIMILARITY = 0.5
SHORT_QUERY_MAX_LENGTH = 3
SHORT_QUERY_MIN_OVERLAP = 0.7

_WHITESPACE_RE = re.compile(r"\s+")
# Devanagari dandas count as punctuation; vowel signs must stay inside tokens.
_TOKEN_SPLIT_RE = re.compile("[\\s" + re.escape(string.punctuation) + "।॥]+")


def normalize_text(text: str | None) -> str:
    """NFKC-normalize, lowercase and collapse whitespace."""
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKC", text).lower()
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def tokenize(text: str) -> list[str]:
    """Split normalized text on whitespace and punctuation."""
    return [token for token in _TOKEN_SPLIT_RE.split(text) if token]


def _similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return 1.0 - Levenshtein.distance(a, b) / longest


def similarity(a: str | None, b: str | None) -> float:
    """Normalized Levenshtein similarity of two strings, in [0, 1]."""
    return _similarity(normalize_text(a), normalize_text(b))


def _best_token_score(query_token: str, candidate_tokens: list[str]) -> float:
    best = 0.0
    for candidate_token in candidate_tokens:
        if candidate_token == query_token:
            return 5.0
        if candidate_token.startswith(query_token):
            current = 4.0
        elif query_token in candidate_token:
            current = 3.0
        elif query_token.startswith(candidate_token):
            current = 2.0
        else:
            token_similarity = _similarity(candidate_token, query_token)
            current = (
                token_similarity * 2
                if token_similarity > TOKEN_FUZZY_MIN_SIMILARITY
                else 0.0
            )
        if current > best:
            best = current
    return best


def _token_score(text: str, needle: str) -> float:
    query_tokens = tokenize(needle)
    candidate_tokens = tokenize(text)
    if not query_tokens or not candidate_tokens:
        return 0.0

    matched_scores = [
        best
        for best in (_best_token_score(token, candidate_tokens) for token in query_tokens)
        if best > 0
    ]
    if not matched_scores:
        return 0.0

    matched_ratio = len(matched_scores) / len(query_tokens)
    average = sum(matched_scores) / len(matched_scores)
    return min(matched_ratio * average, TOKEN_SCORE_CAP)


def _char_overlap(text: str, needle: str) -> float:
    chars = [ch for ch in needle if not ch.isspace()]
    if not chars:
        return 0.0
    present = sum(1 for ch in chars if ch in text)
    return present / len(chars)


def score(candidate: str | None, query: str | None) -> float:
    """Score ``candidate`` against ``query``; 0 means no match."""
    text = normalize_text(candidate)
    needle = normalize_text(query)
    if not text or not needle:
        return 0.0

    if text == needle:
        return EXACT_SCORE

    coverage = len(needle) / len(text)
    if text.startswith(needle):
        return 9.0 if coverage >= PREFIX_STRONG_COVERAGE else 8.0
    if needle in text:
        return 7.0 if coverage > SUBSTRING_STRONG_COVERAGE else 6.0

    token_score = _token_score(text, needle)
    if token_score > 0:
        return token_score

    whole_similarity = _similarity(text, needle)
    if whole_similarity > FUZZY_MIN_SIMILARITY:
        return whole_similarity * 4

    if len(needle) <= SHORT_QUERY_MAX_LENGTH:
        overlap = _char_overlap(text, needle)
        if overlap >= SHORT_QUERY_MIN_OVERLAP:
            return overlap * 2

    return 0.0
