"""
schemas/itinerary.py
--------------------
Dataclass definitions for the corridor planner and its output itinerary.

Lifecycle:
  SpotLocation, TravelCorridor, CatalogSpot   immutable values
  CandidateSpot    created by the corridor filter, relevance assigned once
  SpotEvaluation   ephemeral, one per candidate per evaluation round
  ItinerarySpot    immutable once appended to a DayPlan
  DayPlan          built incrementally by the DayPlanner
  TravelItinerary  root aggregate, owns its DayPlans exclusively
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, TYPE_CHECKING

from tripline.errors import CandidateScoreError

if TYPE_CHECKING:
    from tripline.schemas.request import ItineraryRequest


@dataclass(frozen=True)
class SpotLocation:
    """A named waypoint (airport, hotel, visited spot)."""
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    place_id: Optional[str] = None

    @property
    def coords(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class CenterLine:
    lat1: float
    lng1: float
    lat2: float
    lng2: float


@dataclass(frozen=True)
class TravelCorridor:
    """
    Capsule-shaped region: the segment start→end widened by radius_km.
    Built once per day; read-only thereafter.
    """
    start_point: SpotLocation
    end_point: SpotLocation
    radius_km: float
    center_line: CenterLine


@dataclass(frozen=True)
class CatalogSpot:
    """
    A point of interest as listed by the external catalog. Read-only here.

    operating_hours is a free-text hint only; a spot counts as closed solely
    when is_closed is set.
    """
    place_id: str
    name: str
    categories: tuple[str, ...] = ()
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    average_duration_minutes: Optional[int] = None
    operating_hours: Optional[str] = None
    is_closed: bool = False
    region: Optional[str] = None
    address: Optional[str] = None
    tags: tuple[str, ...] = ()
    attributes: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def primary_category(self) -> Optional[str]:
        return self.categories[0] if self.categories else None

    def to_location(self) -> SpotLocation:
        if not self.has_coordinates:
            raise ValueError(f"spot {self.place_id!r} has no coordinates")
        return SpotLocation(
            name=self.name,
            latitude=float(self.latitude),      # type: ignore[arg-type]
            longitude=float(self.longitude),    # type: ignore[arg-type]
            address=self.address,
            place_id=self.place_id,
        )


@dataclass
class CandidateSpot:
    """A catalog spot inside the day's corridor, pending scoring."""
    spot: CatalogSpot
    distance_from_corridor_km: float
    in_corridor: bool = True
    relevance_score: float = 0.0
    catalog_index: int = 0
    _scored: bool = field(default=False, repr=False, compare=False)

    @property
    def place_id(self) -> str:
        return self.spot.place_id

    @property
    def is_scored(self) -> bool:
        return self._scored

    def assign_relevance(self, score: float) -> None:
        """Set the external relevance score (clamped to [0, 100]). Allowed once."""
        if self._scored:
            raise CandidateScoreError(
                f"relevance score for {self.place_id!r} was already assigned"
            )
        value = float(score)
        if not math.isfinite(value):
            raise CandidateScoreError(
                f"relevance score for {self.place_id!r} is not finite: {score!r}"
            )
        self.relevance_score = max(0.0, min(100.0, value))
        self._scored = True


@dataclass
class SpotEvaluation:
    """Score breakdown for one candidate in one evaluation round."""
    candidate: CandidateSpot
    travel_time_minutes: float
    direction_score: float        # 0–100
    preference_score: float       # relevance passthrough, 0–100
    time_category_score: float    # 0–30
    travel_efficiency: float      # 0–100
    is_open_now: bool
    is_mandatory: bool
    total_score: float


@dataclass(frozen=True)
class ItinerarySpot:
    """A committed stop in a day's plan."""
    sequence: int
    spot: CatalogSpot
    arrival_time: datetime
    departure_time: datetime
    duration_minutes: int
    travel_time_minutes: float                  # travel spent reaching this stop
    travel_time_to_next: Optional[float] = None  # None for the day's last stop
    notes: str = ""

    @property
    def location(self) -> SpotLocation:
        return self.spot.to_location()


@dataclass
class DayPlan:
    """One calendar day: ordered stops, running totals and the day's corridor."""
    date: date
    day_number: int
    start_location: SpotLocation
    end_location: SpotLocation
    corridor: Optional[TravelCorridor] = None
    spots: list[ItinerarySpot] = field(default_factory=list)
    total_travel_time_minutes: float = 0.0
    total_activity_time_minutes: float = 0.0
    notes: list[str] = field(default_factory=list)
    failed: bool = False

    @property
    def total_minutes(self) -> float:
        return self.total_travel_time_minutes + self.total_activity_time_minutes

    @property
    def spot_ids(self) -> list[str]:
        return [s.spot.place_id for s in self.spots]


@dataclass(frozen=True)
class RouteStep:
    instruction: str
    distance_meters: int
    duration_seconds: int


@dataclass
class RouteSegment:
    """One leg between consecutive waypoints, as returned by the route oracle."""
    origin: SpotLocation
    destination: SpotLocation
    duration_minutes: float
    distance_km: float
    steps: list[RouteStep] = field(default_factory=list)
    polyline: Optional[str] = None


@dataclass
class ItinerarySummary:
    total_days: int = 0
    total_spots: int = 0
    total_travel_time_minutes: float = 0.0
    total_activity_time_minutes: float = 0.0
    coverage_regions: list[str] = field(default_factory=list)


@dataclass
class TravelItinerary:
    """
    Top-level output of generate_itinerary().

    warnings collects best-effort failures (days left empty, routes missing).
    """
    trip_id: str
    request: "ItineraryRequest"
    plans: list[DayPlan] = field(default_factory=list)
    routes: list[RouteSegment] = field(default_factory=list)
    summary: ItinerarySummary = field(default_factory=ItinerarySummary)
    warnings: list[str] = field(default_factory=list)
    generated_at: str = ""  # ISO-8601 timestamp

    @property
    def visited_ids(self) -> list[str]:
        return [pid for plan in self.plans for pid in plan.spot_ids]
