"""Tests for the DuckDB catalog store."""

from __future__ import annotations

import logging
from pathlib import Path

from catalog_search.storage import DuckDBCatalogStore
from conftest import make_product, make_shop


def test_upsert_and_load_round_trip(tmp_path: Path, catalog_entities) -> None:
    store = DuckDBCatalogStore(str(tmp_path / "catalog.duckdb"))
    try:
        assert store.upsert_entities(catalog_entities) == len(catalog_entities)
        loaded = store.load_entities()
    finally:
        store.close()

    assert {entity.key for entity in loaded} == {entity.key for entity in catalog_entities}
    by_key = {entity.key: entity for entity in loaded}
    assert by_key[("product", "p1")].localized_name == "बासमती चावल"
    assert by_key[("service", "sv1")].price_range.max == 300


def test_upsert_replaces_existing_entity(tmp_path: Path) -> None:
    store = DuckDBCatalogStore(str(tmp_path / "catalog.duckdb"))
    try:
        store.upsert_entities([make_product("p1", 1, "Rice", price=50)])
        store.upsert_entities([make_product("p1", 1, "Rice", price=65)])
        loaded = store.load_entities()
        counts = store.count_by_kind()
    finally:
        store.close()

    assert len(loaded) == 1
    assert loaded[0].price == 65
    assert counts == {"product": 1}


def test_next_reference_id_follows_stored_ids(tmp_path: Path) -> None:
    store = DuckDBCatalogStore(str(tmp_path / "catalog.duckdb"))
    try:
        assert store.next_reference_id("shop", "Mandsaur") == "SHP-MAN-001"
        store.upsert_entities(
            [make_shop("s1", 1, "Rice Palace"), make_shop("s2", 2, "Sharma Store")]
        )
        assert store.next_reference_id("shop", "mandsaur") == "SHP-MAN-003"
        assert store.next_reference_id("product", "Mandsaur") == "PRD-MAN-001"
        assert store.next_reference_id("shop", "Neemuch") == "SHP-NEE-001"
    finally:
        store.close()


def test_load_skips_corrupt_payloads(tmp_path: Path, caplog) -> None:
    store = DuckDBCatalogStore(str(tmp_path / "catalog.duckdb"))
    try:
        store.upsert_entities([make_product("p1", 1, "Rice")])
        store._conn.execute(
            "INSERT INTO entities (kind, id, reference_id, payload_json) VALUES (?, ?, ?, ?)",
            ["product", "p2", "PRD-MAN-002", "{not json"],
        )
        with caplog.at_level(logging.WARNING, logger="catalog_search.storage.duckdb"):
            loaded = store.load_entities()
    finally:
        store.close()

    assert [entity.id for entity in loaded] == ["p1"]
    assert "p2" in caplog.text


def test_next_reference_id_never_reuses_numbers_after_gaps(tmp_path: Path) -> None:
    store = DuckDBCatalogStore(str(tmp_path / "catalog.duckdb"))
    try:
        store.upsert_entities([make_shop("s2", 2, "Sharma Store")])
        assert store.next_reference_id("shop", "Mandsaur") == "SHP-MAN-003"

        store.upsert_entities([make_shop("s9", 9, "Gupta Kirana"), make_shop("s4", 4, "Jain")])
        assert store.highest_reference_number("shop", "Mandsaur") == 9
        assert store.next_reference_id("shop", "Mandsaur") == "SHP-MAN-010"
    finally:
        store.close()


def test_get_reference_id_returns_stored_id(tmp_path: Path) -> None:
    store = DuckDBCatalogStore(str(tmp_path / "catalog.duckdb"))
    try:
        store.upsert_entities([make_product("p1", 7, "Rice")])
        assert store.get_reference_id("product", "p1") == "PRD-MAN-007"
        assert store.get_reference_id("product", "p2") is None
    finally:
        store.close()
