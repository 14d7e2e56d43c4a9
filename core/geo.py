#!/usr/bin/env python3
"""
Great-circle distance and bounding-box helpers.

Bounding boxes are a cheap pre-filter for SQL queries; exact distances are
computed with the haversine formula afterwards.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

EARTH_RADIUS_MILES = 3958.8
EARTH_RADIUS_KM = 6371.0
METERS_PER_MILE = 1609.34
MILES_PER_DEGREE_LAT = 69.0


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


def haversine_distance(
    point1: Tuple[float, float],
    point2: Tuple[float, float],
    unit: str = 'miles'
) -> float:
    """Great-circle distance between two (latitude, longitude) points."""
    if unit not in ('miles', 'km'):
        raise ValueError(f"Unsupported distance unit: {unit}")
    radius = EARTH_RADIUS_MILES if unit == 'miles' else EARTH_RADIUS_KM

    lat1, lon1 = point1
    lat2, lon2 = point2
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(phi1) * math.cos(phi2) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return radius * c


def distance_between(origin, destination) -> Optional[float]:
    """Miles between two objects exposing latitude/longitude, or None if either lacks them."""
    coords = [
        getattr(obj, attr, None)
        for obj in (origin, destination)
        for attr in ('latitude', 'longitude')
    ]
    if any(value is None for value in coords):
        return None
    return haversine_distance((coords[0], coords[1]), (coords[2], coords[3]))


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


def bounding_box(latitude: float, longitude: float, radius_miles: float) -> BoundingBox:
    lat_delta = radius_miles / MILES_PER_DEGREE_LAT
    lng_delta = radius_miles / (MILES_PER_DEGREE_LAT * math.cos(math.radians(latitude)))

    return BoundingBox(
        min_lat=latitude - lat_delta,
        max_lat=latitude + lat_delta,
        min_lng=longitude - lng_delta,
        max_lng=longitude + lng_delta,
    )
