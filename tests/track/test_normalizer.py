"""Tests for hole filling, resampling and end-to-end normalization."""

from __future__ import annotations

import asyncio

import pytest

from tests.conftest import FakeTileSource, make_cache
from tracktor.errors import (
    InsufficientDataError,
    MalformedInputError,
    NoPositionDataError,
    TileFetchError,
)
from tracktor.geo.models import Position
from tracktor.geo.primitives import haversine
from tracktor.track.models import PartialTrackPoint
from tracktor.track.normalizer import (
    TrackNormalizer,
    fill_position_holes,
    normalize,
    resample,
)

# ---------------------------------------------------------------------------
# Test-data helpers
# ---------------------------------------------------------------------------

A = Position.from_lng_lat(10.0, 45.0)
B = Position.from_lng_lat(10.01, 45.01)


def partial(times: list[float], positions: list[Position | None]) -> list[PartialTrackPoint]:
    return [PartialTrackPoint(time=t, position=p) for t, p in zip(times, positions)]


# ---------------------------------------------------------------------------
# Hole filling
# ---------------------------------------------------------------------------

class TestFillPositionHoles:
    def test_interior_hole_is_linear_in_plane(self):
        """Positions only at 0 and 10 → index 5 is the projected midpoint."""
        positions = [A] + [None] * 9 + [B]
        filled = fill_position_holes(partial(list(range(11)), positions))
        mid = filled[5].position
        assert mid.x == pytest.approx((A.x + B.x) / 2, abs=1e-15)
        assert mid.y == pytest.approx((A.y + B.y) / 2, abs=1e-15)

    def test_every_interior_point_is_on_the_line(self):
        positions = [A] + [None] * 9 + [B]
        filled = fill_position_holes(partial(list(range(11)), positions))
        for i, p in enumerate(filled):
            assert p.position.x == pytest.approx(A.x + (B.x - A.x) * i / 10, abs=1e-15)

    def test_filled_points_have_consistent_lng_lat(self):
        filled = fill_position_holes(partial([0, 1, 2], [A, None, B]))
        p = filled[1].position
        again = Position.from_lng_lat(p.lng, p.lat)
        assert again.x == pytest.approx(p.x, abs=1e-12)

    def test_head_hole_uses_first_known_position(self):
        filled = fill_position_holes(partial([0, 1, 2, 3], [None, None, A, B]))
        assert filled[0].position.x == pytest.approx(A.x)
        assert filled[1].position.y == pytest.approx(A.y)

    def test_tail_hole_uses_last_known_position(self):
        filled = fill_position_holes(partial([0, 1, 2, 3], [A, B, None, None]))
        assert filled[2].position.x == pytest.approx(B.x)
        assert filled[3].position.y == pytest.approx(B.y)

    def test_single_known_point_fills_both_open_ends(self):
        filled = fill_position_holes(partial([0, 1, 2, 3, 4], [None, None, A, None, None]))
        for p in filled:
            assert p.position.x == pytest.approx(A.x)
            assert p.position.y == pytest.approx(A.y)

    def test_no_position_anywhere_raises(self):
        with pytest.raises(NoPositionDataError):
            fill_position_holes(partial([0, 1, 2], [None, None, None]))

    def test_input_is_not_mutated(self):
        points = partial([0, 1, 2], [A, None, B])
        fill_position_holes(points)
        assert points[1].position is None


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------

class TestResample:
    def test_two_points_one_second_apart(self):
        track = resample(partial([100.0, 101.0], [A, B]))
        assert [p.time for p in track] == [100.0, 101.0]
        assert track[0].position.x == pytest.approx(A.x)
        assert track[1].position.x == pytest.approx(B.x)

    def test_fractional_bounds_give_one_point(self):
        track = resample(partial([100.5, 101.5], [A, B]))
        assert [p.time for p in track] == [101.0]
        assert track[0].position.x == pytest.approx((A.x + B.x) / 2)

    def test_output_on_integer_seconds(self):
        track = resample(partial([0.3, 2.2, 7.9], [A, B, A]))
        assert [p.time for p in track] == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]

    def test_interpolates_by_time_ratio(self):
        track = resample(partial([0.0, 4.0], [A, B]))
        assert track[1].position.x == pytest.approx(A.x + (B.x - A.x) * 0.25)
        assert track[3].position.y == pytest.approx(A.y + (B.y - A.y) * 0.75)

    def test_custom_step(self):
        track = resample(partial([0.0, 10.0], [A, B]), step_s=2.5)
        assert [p.time for p in track] == [0.0, 2.5, 5.0, 7.5, 10.0]

    def test_duplicate_timestamps_are_tolerated(self):
        track = resample(partial([0.0, 0.0, 2.0], [A, A, B]))
        assert len(track) == 3

    def test_decreasing_time_raises(self):
        with pytest.raises(MalformedInputError):
            resample(partial([0.0, 2.0, 1.0], [A, B, A]))

    def test_single_point_raises(self):
        with pytest.raises(InsufficientDataError):
            resample(partial([0.0], [A]))

    def test_no_grid_time_inside_span_raises(self):
        with pytest.raises(InsufficientDataError):
            resample(partial([0.2, 0.8], [A, B]))

    def test_missing_position_raises(self):
        with pytest.raises(MalformedInputError):
            resample(partial([0.0, 1.0], [A, None]))


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

class TestNormalize:
    def test_hole_in_the_middle(self):
        """t=0,2,4 with no position at t=2 → 5 points, t=2 at the midpoint."""
        points = partial([0.0, 2.0, 4.0], [A, None, B])
        track = asyncio.run(normalize(points, make_cache()))

        assert [p.time for p in track] == [0.0, 1.0, 2.0, 3.0, 4.0]
        assert track[2].position.x == pytest.approx((A.x + B.x) / 2, abs=1e-15)
        assert track[2].position.y == pytest.approx((A.y + B.y) / 2, abs=1e-15)

    def test_derived_fields(self):
        track = asyncio.run(normalize(partial([0.0, 1.0, 2.0], [A, B, B]), make_cache()))

        assert track[0].distance == 0.0
        assert track[0].speed == 0.0
        step = haversine(A, B)
        assert track[1].distance == pytest.approx(step)
        assert track[1].speed == pytest.approx(step * 3.6)
        assert track[2].speed == pytest.approx(0.0)
        assert track[2].distance == pytest.approx(step)

    def test_elevation_comes_from_tiles(self):
        cache = make_cache(FakeTileSource(meters=812.3))
        track = asyncio.run(normalize(partial([0.0, 3.0], [A, B]), cache))
        for p in track:
            assert p.elevation == pytest.approx(812.3)

    def test_track_invariants(self):
        times = [0.0, 0.7, 3.1, 3.4, 9.9, 15.2]
        positions = [A, None, B, None, A, B]
        track = asyncio.run(normalize(partial(times, positions), make_cache()))

        for prev, curr in zip(track, track[1:]):
            assert curr.time - prev.time == 1.0
            assert curr.distance >= prev.distance
        assert all(p.position is not None for p in track)

    def test_step_is_configurable(self):
        normalizer = TrackNormalizer(make_cache(), step_s=2.0)
        track = asyncio.run(normalizer.normalize(partial([0.0, 8.0], [A, B])))
        assert [p.time for p in track] == [0.0, 2.0, 4.0, 6.0, 8.0]
        assert track[1].speed == pytest.approx(haversine(A, B) / 4 / 2 * 3.6, rel=1e-3)

    def test_too_short_raises(self):
        with pytest.raises(InsufficientDataError):
            asyncio.run(normalize(partial([0.0], [A]), make_cache()))
        with pytest.raises(InsufficientDataError):
            asyncio.run(normalize([], make_cache()))

    def test_decreasing_time_raises(self):
        with pytest.raises(MalformedInputError):
            asyncio.run(normalize(partial([5.0, 4.0], [A, B]), make_cache()))

    def test_tile_failure_propagates(self):
        cache = make_cache(FakeTileSource(fail_keys=((1, 0),)))
        with pytest.raises(TileFetchError):
            asyncio.run(normalize(partial([0.0, 2.0], [A, B]), cache))

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            TrackNormalizer(make_cache(), step_s=0.0)
