"""Elevation lookup backed by cached terrain-RGB raster tiles."""

from tracktor.elevation.cache import ElevationCache, TileSet
from tracktor.elevation.tiles import HttpTileSource, Tile, TileSource, decode_tile

__all__ = [
    "ElevationCache",
    "HttpTileSource",
    "Tile",
    "TileSet",
    "TileSource",
    "decode_tile",
]
