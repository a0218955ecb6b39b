"""Tests for string match scoring."""

from __future__ import annotations

import pytest

from catalog_search.search.scorer import normalize_text, score, similarity, tokenize


def test_exact_match_scores_ten_after_normalization() -> None:
    assert score("Basmati Rice", "basmati rice") == 10
    assert score("  Basmati   Rice ", "BASMATI RICE") == 10


def test_score_is_case_insensitive() -> None:
    assert score("Basmati Rice", "BASMATI") == score("basmati rice", "basmati")


@pytest.mark.parametrize(
    ("candidate", "query", "expected"),
    [
        ("Rice", "ric", 9.0),
        ("Rice Palace", "rice", 8.0),
        ("Brown Rice", "own rice", 7.0),
        ("Basmati Rice Premium", "rice", 6.0),
    ],
)
def test_prefix_and_substring_rules(candidate: str, query: str, expected: float) -> None:
    assert score(candidate, query) == expected


def test_token_overlap_scores_exact_tokens() -> None:
    # Both query tokens match exactly, but out of order.
    assert score("Rice Basmati", "basmati rice") == 5.0


def test_partial_token_overlap_scales_by_matched_ratio() -> None:
    # One of two query tokens matches exactly: 0.5 * 5.
    assert score("Toor Dal", "dal makhani") == pytest.approx(2.5)


def test_typo_scores_above_zero() -> None:
    assert score("Basmati Rice", "bastmati") > 0
    assert score("Basmati Rice", "bastmati") == pytest.approx(1.75)


def test_whole_string_fuzzy_fallback() -> None:
    # No token is close enough on its own; whole-string similarity is 0.8.
    assert score("Kaju Katli", "xkajukatli") == pytest.approx(3.2)


def test_single_token_typo_uses_token_similarity() -> None:
    assert score("paneer", "panner") == pytest.approx(5 / 6 * 2)


def test_short_query_character_overlap() -> None:
    assert score("Tea", "ate") == pytest.approx(2.0)


def test_unrelated_strings_score_zero() -> None:
    assert score("Toor Dal", "bastmati") == 0
    assert score(None, "rice") == 0
    assert score("Rice", "") == 0


def test_devanagari_text_matches() -> None:
    assert score("बासमती चावल", "चावल") > 0
    assert tokenize(normalize_text("दाल, चावल।")) == ["दाल", "चावल"]


def test_similarity_is_normalized_levenshtein() -> None:
    assert similarity("rice", "rice") == 1.0
    assert similarity("Rice", "rise") == pytest.approx(0.75)
    assert similarity("", "") == 0.0


def test_score_is_deterministic() -> None:
    scores = {score("Sharma General Store", "genral store") for _ in range(5)}
    assert len(scores) == 1
