"""Terrain-RGB elevation tiles: decoding and the remote tile source.

A tile is a square RGBA raster where each pixel encodes a height as
``-10000 + (R * 65536 + G * 256 + B) * 0.1`` metres.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from PIL import Image

from tracktor.config import DEFAULT_TILE_URL, Settings
from tracktor.errors import TileFetchError

_logger = logging.getLogger(__name__)

TileKey = tuple[int, int]


@dataclass
class Tile:
    """A decoded elevation tile at a fixed zoom level."""

    x: int
    """Tile column."""

    y: int
    """Tile row."""

    size: int
    """Width and height in pixels."""

    data: bytes
    """Raw RGBA bytes, row-major, ``size * size * 4`` long."""

    def elevation_at(self, px: int, py: int) -> float:
        """Decode the height in metres stored at pixel ``(px, py)``."""
        index = (py * self.size + px) * 4
        r = self.data[index]
        g = self.data[index + 1]
        b = self.data[index + 2]
        return -10000 + (r * 65536 + g * 256 + b) * 0.1


def decode_tile(payload: bytes, key: TileKey, tile_size: int) -> Tile:
    """Decode a PNG *payload* into a :class:`Tile`.

    Raises:
        TileFetchError: If the payload is not an image or has the wrong size.
    """
    try:
        with Image.open(io.BytesIO(payload)) as img:
            rgba = img.convert("RGBA")
    except (OSError, ValueError) as exc:
        raise TileFetchError(f"Could not decode tile {key}: {exc}", key) from exc

    if rgba.size != (tile_size, tile_size):
        raise TileFetchError(
            f"Tile {key} is {rgba.size[0]}x{rgba.size[1]}, expected {tile_size}x{tile_size}",
            key,
        )
    return Tile(x=key[0], y=key[1], size=tile_size, data=rgba.tobytes())


class TileSource(Protocol):
    """Anything able to deliver the encoded image of tile ``(z, x, y)``."""

    async def fetch(self, z: int, x: int, y: int) -> bytes: ...


class HttpTileSource:
    """Fetches terrain tiles over HTTP with :mod:`httpx`.

    Args:
        url_template: ``str.format`` template with ``z``, ``x``, ``y`` and
            ``token`` fields.
        access_token: Substituted for ``{token}``.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built client (injected in tests).  When omitted a
            client is created lazily and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        url_template: str = DEFAULT_TILE_URL,
        access_token: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url_template = url_template
        self._access_token = access_token
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpTileSource:
        return cls(
            url_template=settings.tile_url,
            access_token=settings.access_token,
            timeout=settings.request_timeout,
        )

    async def fetch(self, z: int, x: int, y: int) -> bytes:
        """Return the encoded tile image.

        Raises:
            TileFetchError: On transport failure or a non-2xx response.
        """
        url = self._url_template.format(z=z, x=x, y=y, token=self._access_token)
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            _logger.warning("Tile %d/%d/%d request failed: %s", z, x, y, type(exc).__name__)
            raise TileFetchError(f"Tile {z}/{x}/{y} request failed", (x, y)) from exc
        return response.content

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
