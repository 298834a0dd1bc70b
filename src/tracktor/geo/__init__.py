"""Geodesic math, interpolation primitives and the unit-square projection."""

from tracktor.geo.models import Position
from tracktor.geo.primitives import EARTH_RADIUS_M, clamp, haversine, lerp, unlerp
from tracktor.geo.projection import project_to_lng_lat, project_to_plane

__all__ = [
    "EARTH_RADIUS_M",
    "Position",
    "clamp",
    "haversine",
    "lerp",
    "project_to_lng_lat",
    "project_to_plane",
    "unlerp",
]
