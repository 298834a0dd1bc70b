"""Normalize a recorded TCX/GPX track and write it back out.

Usage:
  python scripts/normalize_track.py ride.tcx --output ride.gpx

Elevation tiles are fetched from the configured tile server; set
TRACKTOR_ACCESS_TOKEN (or put it in a .env file) first.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tracktor.config import Settings
from tracktor.elevation.cache import ElevationCache
from tracktor.elevation.tiles import HttpTileSource
from tracktor.errors import TracktorError
from tracktor.formats.gpx import generate_gpx, parse_gpx
from tracktor.formats.tcx import generate_tcx, parse_tcx
from tracktor.track.models import Track
from tracktor.track.normalizer import TrackNormalizer
from tracktor.track.ranges import compute_ranges

_logger = logging.getLogger("normalize_track")


async def _normalize(path: Path, settings: Settings) -> Track:
    text = path.read_text(encoding="utf-8")
    partial = parse_gpx(text) if path.suffix.lower() == ".gpx" else parse_tcx(text)

    source = HttpTileSource.from_settings(settings)
    cache = ElevationCache(
        source,
        zoom=settings.tile_zoom,
        tile_size=settings.tile_size,
        capacity=settings.cache_capacity,
        max_concurrency=settings.max_concurrency,
    )
    try:
        return await TrackNormalizer(cache, settings.step_s).normalize(partial)
    finally:
        await source.aclose()


def main() -> None:
    ap = argparse.ArgumentParser(description="Resample a GPS track to a uniform time step")
    ap.add_argument("input", type=Path, help="Input .tcx or .gpx file")
    ap.add_argument("--output", type=Path, help="Output file (.tcx or .gpx); default <input>.gpx")
    ap.add_argument("--step", type=float, default=None, help="Resampling step in seconds")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    load_dotenv()
    settings = Settings.from_env()
    if args.step is not None:
        settings.step_s = args.step

    output = args.output or args.input.with_suffix(".gpx")

    try:
        track = asyncio.run(_normalize(args.input, settings))
    except (TracktorError, OSError) as exc:
        _logger.error("Could not normalize %s: %s", args.input, exc)
        sys.exit(1)

    ranges = compute_ranges(track)
    _logger.info(
        "%d points, %.0f m, altitude %.0f–%.0f m, max speed %.0f km/h",
        len(track), ranges.max_distance, ranges.min_altitude, ranges.max_altitude, ranges.max_speed,
    )

    document = generate_tcx(track) if output.suffix.lower() == ".tcx" else generate_gpx(track)
    output.write_text(document, encoding="utf-8")
    _logger.info("Wrote %s", output)


if __name__ == "__main__":
    main()
