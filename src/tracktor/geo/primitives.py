"""Scalar interpolation helpers and great-circle distance."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from tracktor.errors import DomainConversionError

if TYPE_CHECKING:
    from tracktor.geo.models import Position

EARTH_RADIUS_M = 6_371_000.0


def lerp(lo: float, hi: float, ratio: float) -> float:
    """Affine interpolation between *lo* and *hi*.

    Written as ``(1 - r) * lo + r * hi`` so that ``ratio == 1`` returns *hi*
    exactly.
    """
    return (1 - ratio) * lo + ratio * hi


def unlerp(value: float, lo: float, hi: float) -> float:
    """Inverse of :func:`lerp`: where *value* falls between *lo* and *hi*.

    Raises:
        DomainConversionError: If ``lo == hi`` (the ratio is undefined).
    """
    span = hi - lo
    if span == 0:
        raise DomainConversionError(f"Cannot unlerp over a zero-width span at {lo!r}")
    return (value - lo) / span


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def haversine(a: Position, b: Position) -> float:
    """Great-circle distance between two positions in metres."""
    rad = math.pi / 180
    lat1 = a.lat * rad
    lat2 = b.lat * rad
    sin_dlat = math.sin((b.lat - a.lat) * rad / 2)
    sin_dlng = math.sin((b.lng - a.lng) * rad / 2)
    h = sin_dlat * sin_dlat + math.cos(lat1) * math.cos(lat2) * sin_dlng * sin_dlng
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c
