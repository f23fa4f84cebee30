"""
schemas/request.py
------------------
Input structures for generate_itinerary().

TripPreferences is forwarded opaquely to the relevance scorer; the planner
itself only reads dates, daily hours, waypoints, accommodations, the
mandatory-visit list and the corridor radius.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

import tripline.config as config
from tripline.schemas.itinerary import SpotLocation


@dataclass(frozen=True)
class AccommodationByDate:
    """Where the traveler sleeps on the night of ``date``."""
    date: date
    location: SpotLocation


@dataclass(frozen=True)
class FixedSpot:
    """A must-visit spot chosen by the traveler."""
    place_id: str
    name: str = ""


@dataclass
class TripPreferences:
    interests: list[str] = field(default_factory=list)
    companions: list[str] = field(default_factory=list)   # e.g. "가족" | "연인" | "친구"
    pace: str = "moderate"                                # slow | moderate | fast
    budget: str = "medium"                                # low | medium | high
    prefer_rainy_day: bool = False
    prefer_hidden_gems: bool = False
    avoid_crowds: bool = False


@dataclass
class ItineraryRequest:
    start_date: date
    end_date: date
    daily_travel_hours: float
    start_point: SpotLocation
    end_point: SpotLocation
    accommodations: list[AccommodationByDate] = field(default_factory=list)
    preferences: TripPreferences = field(default_factory=TripPreferences)
    fixed_spots: list[FixedSpot] = field(default_factory=list)
    corridor_radius_km: float = config.DEFAULT_CORRIDOR_RADIUS_KM
    day_start: time = field(default_factory=lambda: time(config.DAY_START_HOUR, 0))

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def daily_budget_minutes(self) -> float:
        return self.daily_travel_hours * 60.0

    @property
    def mandatory_ids(self) -> frozenset[str]:
        return frozenset(f.place_id for f in self.fixed_spots)

    @property
    def mandatory_names(self) -> list[str]:
        return [f.name for f in self.fixed_spots if f.name]

    def accommodation_on(self, night: date, index: int) -> Optional[SpotLocation]:
        """
        Accommodation for the night of ``night``.

        Matched by date first. Position (index = day offset) is only used when
        no entry is dated inside the trip window; otherwise a night without an
        entry returns None and the caller falls back to the trip start/end.
        """
        for acc in self.accommodations:
            if acc.date == night:
                return acc.location
        keyed_by_date = any(
            self.start_date <= acc.date <= self.end_date for acc in self.accommodations
        )
        if not keyed_by_date and 0 <= index < len(self.accommodations):
            return self.accommodations[index].location
        return None
