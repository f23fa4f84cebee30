"""
schemas package: dataclasses shared by the planner, the API and the CLI.
"""
from tripline.schemas.itinerary import (
    CandidateSpot,
    CatalogSpot,
    CenterLine,
    DayPlan,
    ItinerarySpot,
    ItinerarySummary,
    RouteSegment,
    RouteStep,
    SpotEvaluation,
    SpotLocation,
    TravelCorridor,
    TravelItinerary,
)
from tripline.schemas.planner import FailurePolicy, PlannerParameters, ScoringWeights
from tripline.schemas.request import (
    AccommodationByDate,
    FixedSpot,
    ItineraryRequest,
    TripPreferences,
)

__all__ = [
    "AccommodationByDate",
    "CandidateSpot",
    "CatalogSpot",
    "CenterLine",
    "DayPlan",
    "FailurePolicy",
    "FixedSpot",
    "ItineraryRequest",
    "ItinerarySpot",
    "ItinerarySummary",
    "PlannerParameters",
    "RouteSegment",
    "RouteStep",
    "ScoringWeights",
    "SpotEvaluation",
    "SpotLocation",
    "TravelCorridor",
    "TravelItinerary",
    "TripPreferences",
]
