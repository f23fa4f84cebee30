"""
modules/tool_usage/distance_tool.py
-------------------------------------
Geometry kernel plus an offline travel-time oracle.

  haversine_km         great-circle distance (R = 6371 km)
  point_to_segment_km  planar projection onto a lat/lng segment, t clamped to
                       [0, 1], haversine distance to the closest point
  is_in_corridor       capsule membership test

The planar projection ignores meridian convergence; at regional scale
(a single island / city) the error is well below the corridor radius.

HaversineDistanceTool answers DistanceOracle calls without HTTP:
straight-line km × ROAD_DETOUR_FACTOR at FALLBACK_DRIVING_SPEED_KMH.
StraightLineRouteTool is the matching offline RouteOracle.
"""

from __future__ import annotations
import logging
import math
from datetime import datetime
from typing import TYPE_CHECKING

import tripline.config as config
from tripline.modules.tool_usage.services import DistanceOracle, RouteOracle, TravelEstimate
from tripline.schemas.itinerary import RouteSegment, RouteStep, SpotLocation

if TYPE_CHECKING:
    from tripline.schemas.itinerary import TravelCorridor

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

EARTH_RADIUS_KM = 6371.0

LatLng = tuple[float, float]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def location_distance_km(a: SpotLocation, b: SpotLocation) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def point_to_segment_km(point: LatLng, seg_start: LatLng, seg_end: LatLng) -> float:
    """
    Shortest distance in km from ``point`` to the segment seg_start→seg_end.

    All arguments are (lat, lng). The projection parameter t is clamped to
    [0, 1], so the closest point never lies beyond either endpoint.
    """
    ab_lat = seg_end[0] - seg_start[0]
    ab_lng = seg_end[1] - seg_start[1]
    ap_lat = point[0] - seg_start[0]
    ap_lng = point[1] - seg_start[1]

    ab_ab = ab_lat * ab_lat + ab_lng * ab_lng
    if ab_ab == 0.0:
        t = 0.0   # zero-length segment: distance to the single point
    else:
        t = max(0.0, min(1.0, (ap_lat * ab_lat + ap_lng * ab_lng) / ab_ab))

    closest_lat = seg_start[0] + t * ab_lat
    closest_lng = seg_start[1] + t * ab_lng
    return haversine_km(point[0], point[1], closest_lat, closest_lng)


def distance_from_corridor_km(lat: float, lng: float, corridor: "TravelCorridor") -> float:
    line = corridor.center_line
    return point_to_segment_km((lat, lng), (line.lat1, line.lng1), (line.lat2, line.lng2))


def is_in_corridor(lat: float, lng: float, corridor: "TravelCorridor") -> bool:
    return distance_from_corridor_km(lat, lng, corridor) <= corridor.radius_km


def _km_to_minutes(km: float, speed_kmh: float) -> float:
    """Straight-line km to minutes at a given speed."""
    return (km / speed_kmh) * 60.0


# ---------------------------------------------------------------------------
# HaversineDistanceTool
# ---------------------------------------------------------------------------


class HaversineDistanceTool(DistanceOracle):
    """
    Offline DistanceOracle. No external HTTP calls are made.

    Road distance is approximated as haversine × detour_factor; duration is
    that distance at speed_kmh, rounded up to whole minutes like the
    Distance Matrix adapter.
    """

    name = "haversine_distance"

    def __init__(
        self,
        speed_kmh: float = config.FALLBACK_DRIVING_SPEED_KMH,
        detour_factor: float = config.ROAD_DETOUR_FACTOR,
    ) -> None:
        if speed_kmh <= 0:
            raise ValueError(f"speed_kmh must be > 0 (got {speed_kmh})")
        self.speed_kmh = speed_kmh
        self.detour_factor = detour_factor

    def estimate_travel_time(
        self,
        origin: SpotLocation,
        destinations: list[SpotLocation],
        departure_time: datetime | None = None,
    ) -> list[TravelEstimate]:
        results: list[TravelEstimate] = []
        for dest in destinations:
            km = location_distance_km(origin, dest) * self.detour_factor
            minutes = math.ceil(_km_to_minutes(km, self.speed_kmh)) if km > 0 else 0
            results.append(TravelEstimate(duration_minutes=float(minutes), distance_km=round(km, 2)))
        return results


# ---------------------------------------------------------------------------
# StraightLineRouteTool
# ---------------------------------------------------------------------------


class StraightLineRouteTool(RouteOracle):
    """
    Offline RouteOracle: one segment per consecutive waypoint pair, timed by
    HaversineDistanceTool, with a single textual step each.
    """

    name = "straight_line_route"

    def __init__(self, distance_tool: HaversineDistanceTool | None = None) -> None:
        self.distance_tool = distance_tool or HaversineDistanceTool()

    def stitch_route(self, waypoints: list[SpotLocation]) -> list[RouteSegment]:
        if len(waypoints) < 2:
            raise ValueError("at least two waypoints are required")
        segments: list[RouteSegment] = []
        for origin, dest in zip(waypoints, waypoints[1:]):
            est = self.distance_tool.estimate_travel_time(origin, [dest])[0]
            segments.append(RouteSegment(
                origin=origin,
                destination=dest,
                duration_minutes=est.duration_minutes,
                distance_km=est.distance_km,
                steps=[RouteStep(
                    instruction=f"{origin.name} → {dest.name}",
                    distance_meters=int(round(est.distance_km * 1000)),
                    duration_seconds=int(est.duration_minutes * 60),
                )],
            ))
        return segments
