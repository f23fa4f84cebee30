"""
schemas/serialization.py
------------------------
TravelItinerary → JSON-ready dict (used by the API route and the CLI).

Times are rendered as "HH:MM", dates as ISO-8601, coordinates as floats.
"""

from __future__ import annotations
from datetime import datetime
from typing import Optional

from tripline.schemas.itinerary import (
    DayPlan,
    ItinerarySpot,
    RouteSegment,
    SpotLocation,
    TravelCorridor,
    TravelItinerary,
)


def _ser_time(t: Optional[datetime]) -> Optional[str]:
    return t.strftime("%H:%M") if t else None


def _ser_location(loc: SpotLocation) -> dict:
    return {
        "name":      loc.name,
        "latitude":  loc.latitude,
        "longitude": loc.longitude,
        "address":   loc.address,
        "place_id":  loc.place_id,
    }


def _ser_corridor(c: Optional[TravelCorridor]) -> Optional[dict]:
    if c is None:
        return None
    return {
        "start_point": _ser_location(c.start_point),
        "end_point":   _ser_location(c.end_point),
        "radius_km":   c.radius_km,
    }


def _ser_stop(s: ItinerarySpot) -> dict:
    return {
        "sequence":            s.sequence,
        "place_id":            s.spot.place_id,
        "name":                s.spot.name,
        "categories":          list(s.spot.categories),
        "region":              s.spot.region,
        "latitude":            s.spot.latitude,
        "longitude":           s.spot.longitude,
        "arrival_time":        _ser_time(s.arrival_time),
        "departure_time":      _ser_time(s.departure_time),
        "duration_minutes":    s.duration_minutes,
        "travel_time_minutes": s.travel_time_minutes,
        "travel_time_to_next": s.travel_time_to_next,
        "notes":               s.notes,
    }


def _ser_day(d: DayPlan) -> dict:
    return {
        "day_number":                  d.day_number,
        "date":                        d.date.isoformat(),
        "start_location":              _ser_location(d.start_location),
        "end_location":                _ser_location(d.end_location),
        "corridor":                    _ser_corridor(d.corridor),
        "spots":                       [_ser_stop(s) for s in d.spots],
        "total_travel_time_minutes":   d.total_travel_time_minutes,
        "total_activity_time_minutes": d.total_activity_time_minutes,
        "notes":                       list(d.notes),
        "failed":                      d.failed,
    }


def _ser_route(r: RouteSegment) -> dict:
    return {
        "origin":           _ser_location(r.origin),
        "destination":      _ser_location(r.destination),
        "duration_minutes": r.duration_minutes,
        "distance_km":      r.distance_km,
        "polyline":         r.polyline,
        "steps": [
            {
                "instruction":      st.instruction,
                "distance_meters":  st.distance_meters,
                "duration_seconds": st.duration_seconds,
            }
            for st in r.steps
        ],
    }


def serialize_itinerary(it: TravelItinerary) -> dict:
    return {
        "trip_id":      it.trip_id,
        "generated_at": it.generated_at,
        "start_date":   it.request.start_date.isoformat(),
        "end_date":     it.request.end_date.isoformat(),
        "days":         [_ser_day(d) for d in it.plans],
        "routes":       [_ser_route(r) for r in it.routes],
        "summary": {
            "total_days":                  it.summary.total_days,
            "total_spots":                 it.summary.total_spots,
            "total_travel_time_minutes":   it.summary.total_travel_time_minutes,
            "total_activity_time_minutes": it.summary.total_activity_time_minutes,
            "coverage_regions":            list(it.summary.coverage_regions),
        },
        "warnings": list(it.warnings),
    }
