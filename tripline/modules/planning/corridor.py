"""
modules/planning/corridor.py
------------------------------
Corridor Builder and Candidate Filter.

A day's corridor is the capsule around the straight segment from the day's
start waypoint to its end waypoint. Only catalog spots whose distance to that
segment is within radius_km become candidates for the day.

  build_corridor(start, end, radius_km)  → TravelCorridor   (pure)
  filter_by_corridor(spots, corridor)    → list[CandidateSpot]

start == end is valid: the corridor degenerates to a disc around one point.
"""

from __future__ import annotations
import logging
import math

import tripline.config as config
from tripline.errors import InvalidRequestError
from tripline.modules.tool_usage.distance_tool import distance_from_corridor_km
from tripline.schemas.itinerary import (
    CandidateSpot,
    CatalogSpot,
    CenterLine,
    SpotLocation,
    TravelCorridor,
)

logger = logging.getLogger(__name__)


def build_corridor(
    start: SpotLocation,
    end: SpotLocation,
    radius_km: float = config.DEFAULT_CORRIDOR_RADIUS_KM,
) -> TravelCorridor:
    if not isinstance(radius_km, (int, float)) or not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidRequestError(
            f"corridor radius must be a positive number (got {radius_km!r})",
            code="ERROR_INVALID_CORRIDOR_RADIUS",
        )
    return TravelCorridor(
        start_point=start,
        end_point=end,
        radius_km=float(radius_km),
        center_line=CenterLine(
            lat1=start.latitude,
            lng1=start.longitude,
            lat2=end.latitude,
            lng2=end.longitude,
        ),
    )


def filter_by_corridor(
    spots: list[CatalogSpot],
    corridor: TravelCorridor,
) -> list[CandidateSpot]:
    """
    Keep spots within the corridor, in catalog order.

    Spots without coordinates are skipped and counted as a data-quality
    warning; they never raise.
    """
    candidates: list[CandidateSpot] = []
    missing = 0

    for index, spot in enumerate(spots):
        if not spot.has_coordinates:
            missing += 1
            continue
        dist = distance_from_corridor_km(spot.latitude, spot.longitude, corridor)  # type: ignore[arg-type]
        if dist <= corridor.radius_km:
            candidates.append(CandidateSpot(
                spot=spot,
                distance_from_corridor_km=dist,
                in_corridor=True,
                relevance_score=0.0,
                catalog_index=index,
            ))

    if missing:
        logger.warning("Skipped %d catalog spot(s) without coordinates", missing)
    logger.debug(
        "Corridor %s → %s (r=%.1f km): %d/%d spot(s) inside",
        corridor.start_point.name, corridor.end_point.name,
        corridor.radius_km, len(candidates), len(spots),
    )
    return candidates
