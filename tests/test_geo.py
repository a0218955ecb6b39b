"""Tests for great-circle distance."""

from __future__ import annotations

import math

import pytest

from catalog_search.geo import distance_km
from catalog_search.models import GeoPoint


def test_one_degree_of_longitude_at_equator() -> None:
    assert distance_km(GeoPoint(lat=0, lng=0), GeoPoint(lat=0, lng=1)) == 111.19


def test_accepts_mappings_with_either_key_style() -> None:
    a = {"lat": 24.0, "lng": 75.0}
    b = {"latitude": 24.01, "longitude": 75.0}

    assert distance_km(a, b) == pytest.approx(1.11, abs=0.01)
    assert distance_km(a, a) == 0.0


@pytest.mark.parametrize(
    "other",
    [
        None,
        {"lat": 24.0},
        {"lat": "north", "lng": 75.0},
        {"lat": math.nan, "lng": 75.0},
        {"lat": True, "lng": 75.0},
    ],
)
def test_missing_or_invalid_points_give_none(other) -> None:
    assert distance_km({"lat": 24.0, "lng": 75.0}, other) is None
