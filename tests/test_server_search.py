"""HTTP API tests."""

from __future__ import annotations

from fastapi.testclient import TestClient

from catalog_search.errors import CatalogUnavailable
from catalog_search.server import create_app


class FailingProvider:
    def get_current_snapshot(self):
        raise CatalogUnavailable("database is locked")


def test_search_endpoint_returns_ranked_results(provider) -> None:
    client = TestClient(create_app(provider))

    response = client.post("/api/search", json={"query": "rice"})

    assert response.status_code == 200
    payload = response.json()
    assert [hit["id"] for hit in payload["results"]] == ["s1", "p1", "m1"]
    assert payload["total_results"] == 3
    assert payload["results"][0]["match_type"] == "partial"
    assert payload["degraded"] is False


def test_search_endpoint_accepts_structured_and_string_filters(provider) -> None:
    client = TestClient(create_app(provider))

    response = client.post(
        "/api/search",
        json={
            "query": "rice",
            "filters": {"entity_types": ["product", "menu_item"], "limit": 1},
            "filter_expression": "price<=150",
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert [hit["id"] for hit in payload["results"]] == ["p1"]
    assert payload["total_results"] == 1


def test_search_endpoint_reference_lookup(provider) -> None:
    client = TestClient(create_app(provider))

    response = client.post("/api/search", json={"query": "srv-man-001"})

    assert response.status_code == 200
    assert response.json()["results"][0]["reference_id"] == "SRV-MAN-001"
    assert response.json()["results"][0]["score"] == 10


def test_search_endpoint_maps_errors(provider) -> None:
    client = TestClient(create_app(provider))

    missing = client.post("/api/search", json={"query": "PRD-MAN-999"})
    bad_filter = client.post(
        "/api/search", json={"query": "rice", "filter_expression": "owner=ramesh"}
    )
    bad_body = client.post(
        "/api/search", json={"query": "rice", "filters": {"sort_by": "popularity"}}
    )

    assert missing.status_code == 404
    assert missing.json()["error"] == "no results, please retry"
    assert missing.json()["results"] == []
    assert bad_filter.status_code == 400
    assert bad_body.status_code == 400


def test_search_endpoint_degrades_when_catalog_unavailable() -> None:
    client = TestClient(create_app(FailingProvider()))

    response = client.post("/api/search", json={"query": "rice"})

    assert response.status_code == 200
    assert response.json()["degraded"] is True
    assert response.json()["results"] == []


def test_status_endpoint_unavailable_is_503() -> None:
    client = TestClient(create_app(FailingProvider()))

    assert client.get("/api/catalog/status").status_code == 503


def test_suggestion_endpoints(provider) -> None:
    client = TestClient(create_app(provider))

    suggestions = client.get("/api/suggestions", params={"q": "ric"}).json()
    corrections = client.get("/api/did-you-mean", params={"q": "biryanni"}).json()

    assert suggestions["suggestions"][0] == "Rice Palace"
    assert corrections["did_you_mean"] == ["biryani"]


def test_reference_and_related_endpoints(provider) -> None:
    client = TestClient(create_app(provider))

    found = client.get("/api/reference/prd-man-001")
    missing = client.get("/api/reference/PRD-MAN-999")
    malformed = client.get("/api/reference/rice")
    related = client.get("/api/related/PRD-MAN-002")

    assert found.status_code == 200
    assert found.json()["path"] == "/product/PRD-MAN-001"
    assert missing.status_code == 404
    assert malformed.status_code == 400
    assert [hit["id"] for hit in related.json()["results"]] == ["p1"]


def test_status_endpoint(provider) -> None:
    client = TestClient(create_app(provider))

    payload = client.get("/api/catalog/status").json()

    assert payload["total_entities"] == 8
    assert payload["counts_by_kind"]["shop"] == 2
