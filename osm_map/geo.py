"""Great-circle distance and bounding-box helpers."""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional, Sequence

import numpy as np

from .models import BoundingBox, Coordinate, LatLng

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(first: Coordinate, second: Coordinate) -> float:
    """Return the great-circle distance in metres between two coordinates.

    The result is symmetric and zero for coincident points. Non-finite inputs
    propagate to a ``nan`` result instead of raising.
    """

    sin = math.sin
    cos = math.cos
    radians = math.radians
    lat1_rad = radians(first.lat)
    lat2_rad = radians(second.lat)
    delta_lat = lat2_rad - lat1_rad
    delta_lng = radians(second.lng - first.lng)
    sin_half_lat = sin(delta_lat / 2.0)
    sin_half_lng = sin(delta_lng / 2.0)
    a = sin_half_lat**2 + cos(lat1_rad) * cos(lat2_rad) * sin_half_lng**2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def coerce_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not numeric."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_int(value: Any) -> Optional[int]:
    """Parse an integer the lenient way (``"12.7"`` -> ``12``)."""

    number = coerce_float(value)
    if number is None:
        return None
    return int(number)


def round_coordinate(value: float, precision: int) -> float:
    return round(float(value), precision)


def bounds_of(points: Sequence[LatLng]) -> Optional[BoundingBox]:
    """Return the bounding box of ``(lat, lng)`` points, or ``None`` when empty."""

    if not points:
        return None
    values = np.asarray(points, dtype=float)
    south, west = values.min(axis=0)
    north, east = values.max(axis=0)
    return BoundingBox(
        south=float(south), west=float(west), north=float(north), east=float(east)
    )


def circle_bounds(center: LatLng, radius_m: float) -> BoundingBox:
    """Approximate the box enclosing a circle of ``radius_m`` metres."""

    lat, lng = center
    delta_lat = math.degrees(radius_m / EARTH_RADIUS_M)
    cos_lat = math.cos(math.radians(lat))
    delta_lng = delta_lat / cos_lat if cos_lat > 1e-12 else 180.0
    return BoundingBox(
        south=lat - delta_lat,
        west=lng - delta_lng,
        north=lat + delta_lat,
        east=lng + delta_lng,
    )


def merge_bounds(boxes: Iterable[Optional[BoundingBox]]) -> Optional[BoundingBox]:
    """Return the smallest box containing every non-empty input box."""

    corners: list[LatLng] = []
    for box in boxes:
        if box is None:
            continue
        corners.append((box.south, box.west))
        corners.append((box.north, box.east))
    return bounds_of(corners)


__all__ = [
    "EARTH_RADIUS_M",
    "bounds_of",
    "circle_bounds",
    "coerce_float",
    "coerce_int",
    "haversine_distance",
    "merge_bounds",
    "round_coordinate",
]
