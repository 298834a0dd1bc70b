"""Runtime settings, read from ``TRACKTOR_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TILE_URL = (
    "https://api.mapbox.com/v4/mapbox.mapbox-terrain-dem-v1/"
    "{z}/{x}/{y}@2x.pngraw?access_token={token}"
)


@dataclass
class Settings:
    """Tunable parameters for tile fetching and resampling."""

    tile_url: str = DEFAULT_TILE_URL
    access_token: str = ""
    tile_zoom: int = 14
    tile_size: int = 512        # px — @2x raw tiles
    cache_capacity: int = 256   # decoded tiles kept in memory
    max_concurrency: int = 8    # simultaneous tile requests
    request_timeout: float = 10.0
    step_s: float = 1.0         # resampling step

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the environment, falling back to defaults."""
        env = os.environ
        default = cls()
        return cls(
            tile_url=env.get("TRACKTOR_TILE_URL", default.tile_url),
            access_token=env.get("TRACKTOR_ACCESS_TOKEN", default.access_token),
            tile_zoom=int(env.get("TRACKTOR_TILE_ZOOM", default.tile_zoom)),
            tile_size=int(env.get("TRACKTOR_TILE_SIZE", default.tile_size)),
            cache_capacity=int(env.get("TRACKTOR_CACHE_CAPACITY", default.cache_capacity)),
            max_concurrency=int(env.get("TRACKTOR_MAX_CONCURRENCY", default.max_concurrency)),
            request_timeout=float(env.get("TRACKTOR_REQUEST_TIMEOUT", default.request_timeout)),
            step_s=float(env.get("TRACKTOR_STEP_S", default.step_s)),
        )
