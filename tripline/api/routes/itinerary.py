"""
api/routes/itinerary.py
------------------------
POST /v1/itinerary/generate

Validates the body, runs the corridor planner and returns the itinerary JSON.
Spots can be supplied inline (``spots``); otherwise the configured catalog
(CATALOG_SOURCE) is read.

Error mapping:
    InvalidRequestError       → 422
    ItineraryGenerationError  → 502
"""

from __future__ import annotations

from datetime import date as date_type, time as time_type
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from tripline.errors import InvalidRequestError, ItineraryGenerationError
from tripline.modules.planning.itinerary_orchestrator import ItineraryOrchestrator
from tripline.modules.tool_usage.catalog_tool import (
    InMemorySpotCatalog,
    default_catalog,
    spots_from_records,
)
from tripline.modules.tool_usage.services import SpotCatalog
from tripline.schemas.itinerary import SpotLocation
from tripline.schemas.request import (
    AccommodationByDate,
    FixedSpot,
    ItineraryRequest,
    TripPreferences,
)
from tripline.schemas.serialization import serialize_itinerary
import tripline.config as config

router = APIRouter()


# ── Request schemas ────────────────────────────────────────────────────────────

class LocationModel(BaseModel):
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    place_id: Optional[str] = None

    def to_location(self) -> SpotLocation:
        return SpotLocation(
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
            place_id=self.place_id,
        )


class AccommodationModel(BaseModel):
    date: date_type
    location: LocationModel


class FixedSpotModel(BaseModel):
    place_id: str
    name: str = ""


class GenerateRequest(BaseModel):
    start_date: date_type = Field(..., description="ISO-8601 date YYYY-MM-DD")
    end_date:   date_type = Field(..., description="ISO-8601 date YYYY-MM-DD")
    daily_travel_hours: float = Field(8.0, description="Travel + activity budget per day")
    start_point: LocationModel
    end_point:   LocationModel
    accommodations: list[AccommodationModel] = Field(default_factory=list)
    fixed_spots:    list[FixedSpotModel] = Field(default_factory=list)
    corridor_radius_km: float = Field(config.DEFAULT_CORRIDOR_RADIUS_KM)
    day_start: time_type = Field(default_factory=lambda: time_type(config.DAY_START_HOUR, 0))
    # Traveler preferences (forwarded to the relevance scorer)
    interests:          list[str] = Field(default_factory=list)
    companions:         list[str] = Field(default_factory=list)
    pace:               str = Field("moderate", description="slow | moderate | fast")
    budget:             str = Field("medium", description="low | medium | high")
    prefer_rainy_day:   bool = False
    prefer_hidden_gems: bool = False
    avoid_crowds:       bool = False
    # Optional inline catalog; same record shape as the JSON catalog file
    spots: Optional[list[dict[str, Any]]] = None

    def to_request(self) -> ItineraryRequest:
        return ItineraryRequest(
            start_date=self.start_date,
            end_date=self.end_date,
            daily_travel_hours=self.daily_travel_hours,
            start_point=self.start_point.to_location(),
            end_point=self.end_point.to_location(),
            accommodations=[
                AccommodationByDate(date=a.date, location=a.location.to_location())
                for a in self.accommodations
            ],
            preferences=TripPreferences(
                interests=list(self.interests),
                companions=list(self.companions),
                pace=self.pace,
                budget=self.budget,
                prefer_rainy_day=self.prefer_rainy_day,
                prefer_hidden_gems=self.prefer_hidden_gems,
                avoid_crowds=self.avoid_crowds,
            ),
            fixed_spots=[FixedSpot(place_id=f.place_id, name=f.name) for f in self.fixed_spots],
            corridor_radius_km=self.corridor_radius_km,
            day_start=self.day_start,
        )


# ── Dependencies (overridable in tests) ───────────────────────────────────────

def get_orchestrator() -> ItineraryOrchestrator:
    return ItineraryOrchestrator()


def get_catalog() -> SpotCatalog:
    return default_catalog()


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/generate", summary="Generate a multi-day corridor itinerary")
def generate_itinerary(
    req: GenerateRequest,
    orchestrator: ItineraryOrchestrator = Depends(get_orchestrator),
    catalog: SpotCatalog = Depends(get_catalog),
) -> dict:
    """
    For each day: build the start→end corridor, score candidates, then pick
    stops greedily within the daily budget. Returns days, routes and summary.
    """
    if req.spots is not None:
        catalog = InMemorySpotCatalog(spots_from_records(req.spots))

    try:
        itinerary = orchestrator.generate(req.to_request(), catalog)
    except InvalidRequestError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": exc.code, "errors": exc.errors},
        ) from exc
    except ItineraryGenerationError as exc:
        raise HTTPException(
            status_code=502,
            detail={
                "code": exc.code,
                "service": exc.service,
                "day_number": exc.day_number,
                "message": str(exc),
            },
        ) from exc

    return serialize_itinerary(itinerary)
