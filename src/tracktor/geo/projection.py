"""Web-mercator projection onto the unit square.

``x`` grows eastwards from 0 at -180° to 1 at +180°; ``y`` grows southwards
from 0 at the northern mercator limit to 1 at the southern one.  Elevation
tiles are addressed in this plane.
"""

from __future__ import annotations

import math


def project_to_plane(lng: float, lat: float) -> tuple[float, float]:
    """Project ``(lng, lat)`` degrees to unit-square ``(x, y)``."""
    x = (180.0 + lng) / 360.0
    y = (180.0 - (180.0 / math.pi) * math.log(math.tan(math.pi / 4 + lat * math.pi / 360.0))) / 360.0
    return x, y


def project_to_lng_lat(x: float, y: float) -> tuple[float, float]:
    """Inverse of :func:`project_to_plane`."""
    lng = x * 360.0 - 180.0
    y2 = 180.0 - y * 360.0
    lat = 360.0 / math.pi * math.atan(math.exp(y2 * math.pi / 180.0)) - 90.0
    return lng, lat
