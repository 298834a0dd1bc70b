"""Geographic data structures."""

from __future__ import annotations

from dataclasses import dataclass

from tracktor.geo.projection import project_to_lng_lat, project_to_plane


@dataclass
class Position:
    """A geographic coordinate together with its projected plane coordinate.

    Both halves are always kept consistent; build instances through
    :meth:`from_lng_lat` or :meth:`from_plane` rather than by hand.
    """

    lng: float
    """Longitude in degrees."""

    lat: float
    """Latitude in degrees."""

    x: float
    """Projected x in the unit square."""

    y: float
    """Projected y in the unit square."""

    @classmethod
    def from_lng_lat(cls, lng: float, lat: float) -> Position:
        x, y = project_to_plane(lng, lat)
        return cls(lng=lng, lat=lat, x=x, y=y)

    @classmethod
    def from_plane(cls, x: float, y: float) -> Position:
        lng, lat = project_to_lng_lat(x, y)
        return cls(lng=lng, lat=lat, x=x, y=y)
