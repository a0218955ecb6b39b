"""Tests for entity scoring, filtering and ordering."""

from __future__ import annotations

import logging

import pytest

import catalog_search.search.ranker as ranker_module
from catalog_search.errors import SearchCancelled
from catalog_search.models import MenuItem
from catalog_search.search import CancellationToken, SearchFilters, rank
from catalog_search.search.filters import LocationFilter
from catalog_search.search.ranker import MatchResult, merge_results, score_entity
from conftest import make_product, make_service, make_shop


def _ids(ranked) -> list[str]:
    return [result.id for result in ranked.items]


def test_rice_scenario_ranks_shop_name_prefix_above_product_substring() -> None:
    entities = [
        make_product("p1", 1, "Basmati Rice Premium", category="grocery", price=120),
        make_shop("s1", 1, "Rice Palace", category="grocery"),
    ]

    ranked = rank("rice", entities)

    assert _ids(ranked) == ["s1", "p1"]
    shop, product = ranked.items
    assert shop.score == 8.0
    assert shop.match_type == "partial"
    assert shop.matched_fields == ("name",)
    assert product.score == 6.0
    assert product.kind == "product"


def test_exact_match_is_ten_and_first(catalog_entities) -> None:
    ranked = rank("TOOR DAL", catalog_entities)

    assert ranked.items[0].id == "p2"
    assert ranked.items[0].score == 10
    assert ranked.items[0].match_type == "exact"
    assert all(result.score < 10 for result in ranked.items[1:])


def test_field_weights_scale_non_name_matches(catalog_entities) -> None:
    ranked = rank("grain", catalog_entities)

    assert _ids(ranked) == ["p1", "s1"]
    product, shop = ranked.items
    assert product.match_type == "category"
    assert product.score == pytest.approx(6.0)
    assert shop.match_type == "tag"
    assert shop.score == pytest.approx(6.0)


def test_exact_field_match_keeps_full_score_regardless_of_weight() -> None:
    product = make_product("p1", 1, "Basmati Rice Premium", brand="India Gate")

    result = score_entity(product, "india gate")

    assert result is not None
    assert result.score == 10
    assert result.match_type == "exact"
    assert result.matched_fields == ("brand",)


def test_typo_query_finds_item_among_unrelated(catalog_entities) -> None:
    ranked = rank("bastmati", catalog_entities)

    assert "p1" in _ids(ranked)
    assert "p2" not in _ids(ranked)


def test_unmatched_query_returns_nothing(catalog_entities) -> None:
    assert rank("xyzzy", catalog_entities).total == 0


def test_short_query_skips_scoring(catalog_entities, monkeypatch) -> None:
    def fail(*args, **kwargs):
        raise AssertionError("scorer must not run")

    monkeypatch.setattr(ranker_module, "score", fail)

    assert rank("r", catalog_entities).total == 0
    assert rank("  ", catalog_entities).total == 0


def test_out_of_stock_excluded_unless_requested(catalog_entities) -> None:
    assert "p3" not in _ids(rank("brown rice", catalog_entities))

    ranked = rank(
        "brown rice",
        catalog_entities,
        SearchFilters(include_out_of_stock=True),
    )
    assert ranked.items[0].id == "p3"
    assert ranked.items[0].match_type == "exact"


def test_availability_override_wins_over_stock() -> None:
    product = make_product("p9", 9, "Jaggery", stock=0, availability=True)

    assert _ids(rank("jaggery", [product])) == ["p9"]


def test_category_filter_is_case_insensitive(catalog_entities) -> None:
    ranked = rank("rice", catalog_entities, SearchFilters(category="GRAINS"))

    assert _ids(ranked) == ["p1"]


def test_entity_type_filter(catalog_entities) -> None:
    ranked = rank(
        "rice",
        catalog_entities,
        SearchFilters(entity_types=frozenset({"menu_item"})),
    )

    assert _ids(ranked) == ["m1"]
    assert ranked.items[0].matched_fields == ("description",)


def test_price_filter_excludes_unpriced_and_out_of_range(catalog_entities) -> None:
    ranked = rank(
        "rice",
        catalog_entities,
        SearchFilters(price_range={"min": 100, "max": 200}),
    )

    assert sorted(_ids(ranked)) == ["m1", "p1"]


def test_service_price_range_matches_on_overlap(catalog_entities) -> None:
    overlapping = SearchFilters(price_range={"min": 250, "max": 1000})
    disjoint = SearchFilters(price_range={"min": 400})

    assert _ids(rank("haircut", catalog_entities, overlapping)) == ["sv1"]
    assert _ids(rank("haircut", catalog_entities, disjoint)) == []


def test_relevance_order_by_default(catalog_entities) -> None:
    assert _ids(rank("rice", catalog_entities)) == ["s1", "p1", "m1"]


@pytest.mark.parametrize(
    ("sort_by", "expected"),
    [
        ("price", ["p1", "m1", "s1"]),
        ("rating", ["p1", "s1", "m1"]),
        ("newest", ["p1", "s1", "m1"]),
    ],
)
def test_sort_modes_put_unknown_values_last(catalog_entities, sort_by, expected) -> None:
    ranked = rank("rice", catalog_entities, SearchFilters(sort_by=sort_by))

    assert _ids(ranked) == expected


def _haircuts():
    return [
        make_service("far", 2, "Haircut", location={"lat": 24.2, "lng": 75.0}),
        make_service("nowhere", 3, "Haircut"),
        make_service("near", 1, "Haircut", location={"lat": 24.01, "lng": 75.0}),
    ]


@pytest.mark.parametrize("sort_by", ["distance", "relevance"])
def test_distance_breaks_ties_with_unknown_last(sort_by) -> None:
    filters = SearchFilters(location=LocationFilter(lat=24.0, lng=75.0), sort_by=sort_by)

    ranked = rank("haircut", _haircuts(), filters)

    assert _ids(ranked) == ["near", "far", "nowhere"]
    assert ranked.items[0].distance_km == pytest.approx(1.11, abs=0.01)
    assert ranked.items[2].distance_km is None


def test_radius_is_a_hard_filter_only_when_set() -> None:
    filters = SearchFilters(location=LocationFilter(lat=24.0, lng=75.0, radius_km=5))

    assert _ids(rank("haircut", _haircuts(), filters)) == ["near"]


def test_child_entity_distance_uses_parent_shop(snapshot) -> None:
    filters = SearchFilters(location=LocationFilter(lat=24.0734, lng=75.0679))

    ranked = rank(
        "basmati rice premium",
        snapshot.entities,
        filters,
        location_of=snapshot.location_of,
    )

    assert ranked.items[0].id == "p1"
    assert ranked.items[0].distance_km == 0.0


def test_type_priority_breaks_remaining_ties() -> None:
    entities = [
        make_shop("s1", 1, "Fresh Mart"),
        MenuItem(id="m1", reference_id="MNU-MAN-001", name="Fresh Mart"),
        make_product("p1", 1, "Fresh Mart"),
    ]

    assert _ids(rank("fresh mart", entities)) == ["p1", "m1", "s1"]


def test_ranked_output_has_no_duplicate_keys(catalog_entities) -> None:
    ranked = rank("rice", catalog_entities + catalog_entities)

    keys = [result.key for result in ranked.items]
    assert len(keys) == len(set(keys))


def test_merge_results_keeps_highest_score() -> None:
    product = make_product("p1", 1, "Basmati Rice")
    low = MatchResult(entity=product, score=4.0, match_type="tag", matched_fields=("tags",))
    high = MatchResult(entity=product, score=7.0, match_type="partial", matched_fields=("name",))

    merged = merge_results([low], [high, low])

    assert merged == [high]


def test_pagination_applies_after_ranking(catalog_entities) -> None:
    ranked = rank("rice", catalog_entities, SearchFilters(limit=1, offset=1))

    assert ranked.total == 3
    assert [result.id for result in ranked.page] == ["p1"]


def test_rank_is_deterministic(catalog_entities) -> None:
    first = [(r.id, r.score) for r in rank("rice", catalog_entities).items]
    second = [(r.id, r.score) for r in rank("rice", catalog_entities).items]

    assert first == second


def test_cancelled_token_aborts_ranking(catalog_entities) -> None:
    token = CancellationToken()
    token.cancel()

    with pytest.raises(SearchCancelled):
        rank("rice", catalog_entities, cancel_token=token)


def test_expired_deadline_aborts_ranking(catalog_entities) -> None:
    ticks = iter([0.0, 10.0])
    token = CancellationToken(timeout_ms=100, clock=lambda: next(ticks, 10.0))

    with pytest.raises(SearchCancelled):
        rank("rice", catalog_entities, cancel_token=token)


class _BrokenEntity:
    kind = "product"
    reference_id = "PRD-MAN-404"

    @property
    def is_available(self) -> bool:
        raise RuntimeError("corrupt stock data")


def test_malformed_entity_is_skipped_and_logged(catalog_entities, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="catalog_search.search.ranker"):
        ranked = rank("rice", [_BrokenEntity(), *catalog_entities])

    assert _ids(ranked) == ["s1", "p1", "m1"]
    assert "PRD-MAN-404" in caplog.text


def test_devanagari_query_matches_localized_category() -> None:
    product = make_product(
        "p9", 9, "Moong Dal", category="Pulses", localized_category="दालें"
    )

    result = score_entity(product, "दाल")

    assert result is not None
    assert result.match_type == "category"
    assert result.matched_fields == ("localized_category",)
    assert result.score == pytest.approx(8 * 2 / 3)
    assert rank("दाल", [product], SearchFilters(category="दालें")).total == 1
