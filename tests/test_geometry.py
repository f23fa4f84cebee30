from __future__ import annotations

import math

import pytest

from conftest import AIRPORT, SEOGWIPO, point_along
from tripline.modules.tool_usage.distance_tool import (
    HaversineDistanceTool,
    StraightLineRouteTool,
    haversine_km,
    point_to_segment_km,
)
from tripline.schemas.itinerary import SpotLocation

A = AIRPORT.coords
B = SEOGWIPO.coords


def test_haversine_zero_for_same_point() -> None:
    assert haversine_km(33.5, 126.5, 33.5, 126.5) == 0.0


def test_haversine_airport_to_seogwipo() -> None:
    d = haversine_km(*A, *B)
    assert 27.0 < d < 30.0
    assert d == pytest.approx(haversine_km(*B, *A))


def test_point_to_segment_never_exceeds_farther_endpoint() -> None:
    for dlat in (-0.3, -0.1, 0.0, 0.05, 0.2, 0.4):
        for dlng in (-0.4, -0.1, 0.0, 0.1, 0.3):
            p = (33.38 + dlat, 126.52 + dlng)
            seg = point_to_segment_km(p, A, B)
            assert seg <= max(haversine_km(*p, *A), haversine_km(*p, *B)) + 1e-9
            assert seg >= 0.0


def test_projection_is_clamped_to_endpoints() -> None:
    # beyond B on the extension of the segment
    beyond = point_along(AIRPORT, SEOGWIPO, 1.5)
    assert point_to_segment_km(beyond, A, B) == pytest.approx(haversine_km(*beyond, *B))
    before = point_along(AIRPORT, SEOGWIPO, -0.5)
    assert point_to_segment_km(before, A, B) == pytest.approx(haversine_km(*before, *A))


def test_point_on_segment_has_zero_distance() -> None:
    mid = point_along(AIRPORT, SEOGWIPO, 0.5)
    assert point_to_segment_km(mid, A, B) == pytest.approx(0.0, abs=1e-9)


def test_zero_length_segment_uses_the_single_point() -> None:
    p = (33.40, 126.60)
    assert point_to_segment_km(p, A, A) == pytest.approx(haversine_km(*p, *A))


def test_haversine_tool_rounds_minutes_up() -> None:
    tool = HaversineDistanceTool(speed_kmh=40.0, detour_factor=1.0)
    same, far = tool.estimate_travel_time(AIRPORT, [AIRPORT, SEOGWIPO])
    assert same.duration_minutes == 0.0
    assert same.distance_km == 0.0
    expected_km = haversine_km(*A, *B)
    assert far.distance_km == pytest.approx(round(expected_km, 2))
    assert far.duration_minutes == math.ceil((expected_km / 40.0) * 60.0)


def test_haversine_tool_rejects_non_positive_speed() -> None:
    with pytest.raises(ValueError):
        HaversineDistanceTool(speed_kmh=0)


def test_straight_line_route_has_one_segment_per_pair() -> None:
    mid = SpotLocation("mid", *point_along(AIRPORT, SEOGWIPO, 0.5))
    segments = StraightLineRouteTool().stitch_route([AIRPORT, mid, SEOGWIPO])
    assert len(segments) == 2
    assert segments[0].origin == AIRPORT
    assert segments[1].destination == SEOGWIPO
    assert segments[0].steps[0].instruction == "제주국제공항 → mid"


def test_straight_line_route_needs_two_waypoints() -> None:
    with pytest.raises(ValueError):
        StraightLineRouteTool().stitch_route([AIRPORT])
