"""ElevationCache — memoizes decoded elevation tiles for a session.

Tiles are addressed at a fixed zoom by ``(floor(x * 2**zoom), floor(y * 2**zoom))``
in the unit-square projection.  The cache is LRU-bounded; a batch loaded by
:meth:`ElevationCache.ensure_loaded` is returned as a pinned :class:`TileSet`
so later evictions never invalidate a normalization in progress.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections import OrderedDict
from collections.abc import Iterable

from tracktor.elevation.tiles import Tile, TileKey, TileSource, decode_tile
from tracktor.errors import OutOfRangeError, TileFetchError
from tracktor.geo.primitives import clamp

_logger = logging.getLogger(__name__)


def _locate(x: float, y: float, zoom: int, tile_size: int) -> tuple[TileKey, int, int]:
    """Return the tile key and in-tile pixel for plane coordinate ``(x, y)``."""
    count = 2 ** zoom
    nx = x * count
    ny = y * count
    # the far edge (x or y == 1) belongs to the last tile
    kx = int(clamp(math.floor(nx), 0, count - 1))
    ky = int(clamp(math.floor(ny), 0, count - 1))
    px = int(clamp(math.floor((nx - kx) * tile_size), 0, tile_size - 1))
    py = int(clamp(math.floor((ny - ky) * tile_size), 0, tile_size - 1))
    return (kx, ky), px, py


class TileSet:
    """An immutable view of the tiles covering one batch of coordinates."""

    def __init__(self, tiles: dict[TileKey, Tile], zoom: int, tile_size: int) -> None:
        self._tiles = dict(tiles)
        self.zoom = zoom
        self.tile_size = tile_size

    def __len__(self) -> int:
        return len(self._tiles)

    def __contains__(self, key: object) -> bool:
        return key in self._tiles

    def elevation_at(self, x: float, y: float) -> float:
        """Height in metres at plane coordinate ``(x, y)``.

        Raises:
            OutOfRangeError: If ``(x, y)`` lies outside every tile of the set.
        """
        key, px, py = _locate(x, y, self.zoom, self.tile_size)
        tile = self._tiles.get(key)
        if tile is None:
            raise OutOfRangeError(f"Tile {key} is not part of this tile set")
        return tile.elevation_at(px, py)


class ElevationCache:
    """Session-owned, LRU-bounded store of decoded elevation tiles.

    Args:
        source: Where missing tiles are fetched from.
        zoom: Tile zoom level.
        tile_size: Tile edge length in pixels.
        capacity: Maximum number of decoded tiles retained.
        max_concurrency: Maximum simultaneous fetches within one batch.
    """

    def __init__(
        self,
        source: TileSource,
        zoom: int = 14,
        tile_size: int = 512,
        capacity: int = 256,
        max_concurrency: int = 8,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._source = source
        self.zoom = zoom
        self.tile_size = tile_size
        self.capacity = capacity
        self.max_concurrency = max_concurrency
        self._tiles: OrderedDict[TileKey, Tile] = OrderedDict()
        self._in_flight: dict[TileKey, asyncio.Future[Tile]] = {}

    def __len__(self) -> int:
        return len(self._tiles)

    def __contains__(self, key: object) -> bool:
        return key in self._tiles

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tile_key(self, x: float, y: float) -> TileKey:
        """Key of the tile covering plane coordinate ``(x, y)``."""
        key, _, _ = _locate(x, y, self.zoom, self.tile_size)
        return key

    async def ensure_loaded(self, coords: Iterable[tuple[float, float]]) -> TileSet:
        """Make sure every tile under *coords* is available.

        Missing tiles are fetched concurrently; a fetch already running for
        the same key (from another caller) is joined instead of repeated.

        Returns:
            A :class:`TileSet` pinning exactly the tiles needed by *coords*.

        Raises:
            TileFetchError: If any tile fails; no partial result is returned.
        """
        keys = list(dict.fromkeys(self.tile_key(x, y) for x, y in coords))
        pinned: dict[TileKey, Tile] = {}
        missing: list[TileKey] = []
        for key in keys:
            tile = self._tiles.get(key)
            if tile is None:
                missing.append(key)
            else:
                self._tiles.move_to_end(key)
                pinned[key] = tile

        if missing:
            _logger.info(
                "Fetching %d elevation tile(s) (%d already cached)", len(missing), len(pinned)
            )
            semaphore = asyncio.Semaphore(self.max_concurrency)
            requests = [self._request(key, semaphore) for key in missing]
            results = await asyncio.gather(*requests, return_exceptions=True)

            for key, result in zip(missing, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    _logger.warning("Elevation tile %s failed: %s", key, result)
                    if isinstance(result, TileFetchError):
                        raise result
                    raise TileFetchError(f"Tile {key} failed: {result}", key) from result
                pinned[key] = result

        return TileSet(pinned, self.zoom, self.tile_size)

    def query_elevation(self, x: float, y: float) -> float:
        """Height in metres at ``(x, y)`` from the cache.

        Raises:
            OutOfRangeError: If the covering tile has not been loaded (or has
                been evicted since).
        """
        key, px, py = _locate(x, y, self.zoom, self.tile_size)
        tile = self._tiles.get(key)
        if tile is None:
            raise OutOfRangeError(f"Elevation tile {key} is not loaded")
        self._tiles.move_to_end(key)
        return tile.elevation_at(px, py)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _request(self, key: TileKey, semaphore: asyncio.Semaphore) -> asyncio.Future[Tile]:
        """Shared fetch of *key*, shielded so one cancelled caller cannot cancel it for others."""
        future = self._in_flight.get(key)
        if future is not None:
            _logger.debug("Joining in-flight fetch for tile %s", key)
        else:
            future = asyncio.ensure_future(self._fetch(key, semaphore))
            self._in_flight[key] = future
            future.add_done_callback(lambda _f: self._in_flight.pop(key, None))
        return asyncio.shield(future)

    async def _fetch(self, key: TileKey, semaphore: asyncio.Semaphore) -> Tile:
        async with semaphore:
            payload = await self._source.fetch(self.zoom, key[0], key[1])
        tile = decode_tile(payload, key, self.tile_size)
        self._store(key, tile)
        return tile

    def _store(self, key: TileKey, tile: Tile) -> None:
        self._tiles[key] = tile
        self._tiles.move_to_end(key)
        while len(self._tiles) > self.capacity:
            evicted, _ = self._tiles.popitem(last=False)
            _logger.debug("Evicted elevation tile %s", evicted)
