"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.conftest import FakeTileSource, make_cache, make_tcx
from tracktor.web.app import create_app
from tracktor.web.service import TrackService

ALL_TEST_TILES = ((0, 0), (0, 1), (1, 0), (1, 1))


def make_service(source: FakeTileSource | None = None) -> TrackService:
    return TrackService(make_cache(source or FakeTileSource()))


@pytest.fixture
def client():
    """FastAPI test client backed by an in-memory tile source."""
    with TestClient(create_app(make_service())) as c:
        yield c


@pytest.fixture
def failing_client():
    """Test client whose every tile fetch fails."""
    source = FakeTileSource(fail_keys=ALL_TEST_TILES)
    with TestClient(create_app(make_service(source))) as c:
        yield c


def import_track(client: TestClient, n: int = 30, name: str = "ride") -> dict:
    """POST a generated TCX track and return the summary body."""
    resp = client.post(
        "/api/tracks", json={"name": name, "format": "tcx", "content": make_tcx(n)}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()
