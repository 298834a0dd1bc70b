"""Shared helpers and fixtures: fake tile source and track builders."""

from __future__ import annotations

import asyncio
import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from tracktor.elevation.cache import ElevationCache
from tracktor.errors import TileFetchError
from tracktor.geo.models import Position
from tracktor.track.models import Track, TrackPoint

TEST_ZOOM = 1
TEST_TILE_SIZE = 4
T0 = 1_700_000_000.0  # 2023-11-14T22:13:20Z


# ---------------------------------------------------------------------------
# Tiles
# ---------------------------------------------------------------------------

def elevation_rgb(meters: float) -> tuple[int, int, int]:
    """Terrain-RGB encoding of *meters*."""
    v = round((meters + 10000) * 10)
    return (v >> 16) & 0xFF, (v >> 8) & 0xFF, v & 0xFF


def png_tile(size: int = TEST_TILE_SIZE, meters: float = 250.0) -> bytes:
    """A uniform terrain-RGB PNG tile."""
    img = Image.new("RGBA", (size, size), elevation_rgb(meters) + (255,))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeTileSource:
    """In-memory tile source recording every fetch.

    Args:
        meters: Elevation encoded in every tile.
        fail_keys: ``(x, y)`` keys whose fetch raises *error*.
        delay: Seconds each fetch sleeps (to exercise concurrency).
    """

    def __init__(
        self,
        meters: float = 250.0,
        size: int = TEST_TILE_SIZE,
        fail_keys: tuple[tuple[int, int], ...] = (),
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.calls: list[tuple[int, int, int]] = []
        self.active = 0
        self.peak_active = 0
        self._payload = png_tile(size, meters)
        self._fail_keys = set(fail_keys)
        self._error = error
        self._delay = delay

    async def fetch(self, z: int, x: int, y: int) -> bytes:
        self.calls.append((z, x, y))
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            await asyncio.sleep(self._delay)
            if (x, y) in self._fail_keys:
                raise self._error or TileFetchError(f"boom {x}/{y}", (x, y))
            return self._payload
        finally:
            self.active -= 1


def make_cache(source: FakeTileSource | None = None, **kwargs) -> ElevationCache:
    kwargs.setdefault("zoom", TEST_ZOOM)
    kwargs.setdefault("tile_size", TEST_TILE_SIZE)
    return ElevationCache(source or FakeTileSource(), **kwargs)


@pytest.fixture
def tile_source() -> FakeTileSource:
    return FakeTileSource()


@pytest.fixture
def cache(tile_source: FakeTileSource) -> ElevationCache:
    return make_cache(tile_source)


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------

def make_track(
    speeds: list[float],
    step_s: float = 1.0,
    start: float = T0,
    elevations: list[float] | None = None,
) -> Track:
    """A normalized-looking Track with the given per-point speeds (km/h).

    Distances accumulate from the speeds; all points share one position.
    """
    position = Position.from_lng_lat(10.0, 45.0)
    points: Track = []
    distance = 0.0
    for i, speed in enumerate(speeds):
        if i > 0:
            distance += speed / 3.6 * step_s
        points.append(TrackPoint(
            time=start + i * step_s,
            position=position,
            elevation=elevations[i] if elevations is not None else 100.0,
            speed=speed if i > 0 else 0.0,
            distance=distance,
        ))
    return points


def _iso(t: float) -> str:
    return datetime.fromtimestamp(t, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def make_tcx(n: int = 30, start: float = T0, speed_mps: float = 5.0) -> str:
    """A TCX document of *n* points one second apart heading north-east."""
    points = []
    for i in range(n):
        points.append(
            "<Trackpoint>"
            f"<Time>{_iso(start + i)}</Time>"
            "<Position>"
            f"<LatitudeDegrees>{45.0 + i * 0.00003}</LatitudeDegrees>"
            f"<LongitudeDegrees>{10.0 + i * 0.00004}</LongitudeDegrees>"
            "</Position>"
            "<AltitudeMeters>240.0</AltitudeMeters>"
            f"<DistanceMeters>{i * speed_mps}</DistanceMeters>"
            "<Extensions><ns3:TPX>"
            f"<ns3:Speed>{speed_mps}</ns3:Speed>"
            "</ns3:TPX></Extensions>"
            "</Trackpoint>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<TrainingCenterDatabase '
        'xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2" '
        'xmlns:ns3="http://www.garmin.com/xmlschemas/ActivityExtension/v2">'
        '<Activities><Activity Sport="Biking"><Id>ride</Id><Lap><Track>'
        + "".join(points)
        + "</Track></Lap></Activity></Activities></TrainingCenterDatabase>"
    )
