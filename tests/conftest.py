from __future__ import annotations

from datetime import date, datetime

import pytest

from tripline.errors import ExternalServiceError
from tripline.modules.observability.logger import StructuredLogger
from tripline.modules.tool_usage.services import (
    DistanceOracle,
    RelevanceScore,
    RelevanceScorer,
    TravelEstimate,
)
from tripline.schemas.itinerary import CatalogSpot, SpotLocation
from tripline.schemas.request import ItineraryRequest

AIRPORT = SpotLocation("제주국제공항", 33.5066, 126.4931)
SEOGWIPO = SpotLocation("서귀포", 33.2541, 126.5601)


def point_along(start: SpotLocation, end: SpotLocation, frac: float) -> tuple[float, float]:
    return (
        start.latitude + (end.latitude - start.latitude) * frac,
        start.longitude + (end.longitude - start.longitude) * frac,
    )


def make_spot(
    place_id: str,
    lat: float | None,
    lng: float | None,
    categories: tuple[str, ...] = ("관광지",),
    duration: int | None = 60,
    **kwargs,
) -> CatalogSpot:
    return CatalogSpot(
        place_id=place_id,
        name=kwargs.pop("name", f"spot {place_id}"),
        categories=categories,
        latitude=lat,
        longitude=lng,
        average_duration_minutes=duration,
        **kwargs,
    )


def line_spots(count: int = 9) -> list[CatalogSpot]:
    """Spots evenly spaced on the airport → Seogwipo segment."""
    cats = [("관광지",), ("맛집",), ("카페",), ("자연",), ("포토존",)]
    spots = []
    for i in range(1, count + 1):
        lat, lng = point_along(AIRPORT, SEOGWIPO, i / (count + 1))
        spots.append(make_spot(f"line-{i}", lat, lng, cats[i % len(cats)], region=f"region-{i % 3}"))
    return spots


class FixedScorer(RelevanceScorer):
    name = "fixed_scorer"

    def __init__(self, scores: dict[str, float] | None = None) -> None:
        self.scores = scores or {}
        self.calls = 0

    def score_relevance(self, candidates, preferences):
        self.calls += 1
        return [
            RelevanceScore(c.place_id, self.scores[c.place_id])
            for c in candidates if c.place_id in self.scores
        ]


class TableDistanceOracle(DistanceOracle):
    """Minutes looked up by destination place_id."""

    name = "table_distance"

    def __init__(self, minutes: dict[str, float] | None = None, default: float = 10.0) -> None:
        self.minutes = minutes or {}
        self.default = default
        self.calls = 0

    def estimate_travel_time(self, origin, destinations, departure_time=None):
        self.calls += 1
        return [
            TravelEstimate(self.minutes.get(d.place_id, self.default), 1.0)
            for d in destinations
        ]


class FailingDistanceOracle(DistanceOracle):
    name = "fake_distance"

    def estimate_travel_time(self, origin, destinations, departure_time=None):
        raise ExternalServiceError(self.name, "boom")


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    return StructuredLogger(enabled=False)


@pytest.fixture
def one_day_request() -> ItineraryRequest:
    return ItineraryRequest(
        start_date=date(2025, 5, 1),
        end_date=date(2025, 5, 1),
        daily_travel_hours=8,
        start_point=AIRPORT,
        end_point=SEOGWIPO,
    )


@pytest.fixture
def morning() -> datetime:
    return datetime(2025, 5, 1, 10, 0)
