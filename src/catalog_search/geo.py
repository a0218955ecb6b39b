"""
Great-circle distance helpers.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

EARTH_RADIUS_KM = 6371.0


def _coordinate(point: Any, *names: str) -> float | None:
    for name in names:
        if isinstance(point, Mapping):
            raw = point.get(name)
        else:
            raw = getattr(point, name, None)
        if raw is None or isinstance(raw, bool):
            continue
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return value if math.isfinite(value) else None
    return None


def _lat_lng(point: Any) -> tuple[float, float] | None:
    if point is None:
        return None
    lat = _coordinate(point, "lat", "latitude")
    lng = _coordinate(point, "lng", "longitude")
    if lat is None or lng is None:
        return None
    return lat, lng


def distance_km(a: Any, b: Any) -> float | None:
    """
    Haversine distance in kilometres, rounded to 2 decimals.

    Points may be ``GeoPoint`` models or mappings with ``lat``/``lng``
    (or ``latitude``/``longitude``) keys. Returns None when either point is
    missing or has a non-finite coordinate.
    """
    first = _lat_lng(a)
    second = _lat_lng(b)
    if first is None or second is None:
        return None

    lat1, lng1 = first
    lat2, lng2 = second
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_KM * c, 2)
