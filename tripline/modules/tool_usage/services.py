"""
modules/tool_usage/services.py
--------------------------------
Contracts for the external collaborators the planner depends on.

  RelevanceScorer  score_relevance(candidates, preferences)      once per day
  DistanceOracle   estimate_travel_time(origin, destinations, t) once per evaluation round
  RouteOracle      stitch_route(waypoints)                       once per itinerary
  SpotCatalog      list_spots_with_coordinates()                 once per itinerary

Implementations are injected into the orchestrator. Each implementation owns
its timeout and retry policy and raises ExternalServiceError on failure;
calls are plain synchronous call-and-return.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, TypeVar

import tripline.config as config
from tripline.errors import ExternalServiceError
from tripline.schemas.itinerary import CatalogSpot, RouteSegment, SpotLocation
from tripline.schemas.request import TripPreferences

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Duration/distance reported for an unreachable destination (element status != OK)
UNREACHABLE_MINUTES: float = 9999.0
UNREACHABLE_KM: float = 9999.0


# ── Value types ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RelevanceInput:
    place_id: str
    name: str
    categories: tuple[str, ...] = ()
    attributes: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass
class RelevancePreferences:
    """TripPreferences plus the names of mandatory spots, forwarded opaquely."""
    trip: TripPreferences
    fixed_spot_names: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RelevanceScore:
    place_id: str
    score: float          # 0–100
    reasoning: str = ""


@dataclass(frozen=True)
class TravelEstimate:
    duration_minutes: float
    distance_km: float

    @property
    def reachable(self) -> bool:
        return self.duration_minutes < UNREACHABLE_MINUTES


# ── Retry policy ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RetryPolicy:
    retries: int = config.HTTP_RETRIES
    base_delay: float = config.HTTP_RETRY_DELAY

    def run(self, service: str, fn: Callable[[], T], retry_on: tuple[type[BaseException], ...]) -> T:
        """
        Call ``fn``; on an exception in ``retry_on`` sleep base_delay × attempt
        and try again, at most ``retries`` extra times. Exhaustion raises
        ExternalServiceError chained to the last failure.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn()
            except retry_on as exc:
                if attempt <= self.retries:
                    logger.warning(
                        "%s: attempt %d failed (%s); retrying", service, attempt, exc
                    )
                    time.sleep(self.base_delay * attempt)
                    continue
                raise ExternalServiceError(
                    service, f"gave up after {attempt} attempt(s): {exc}"
                ) from exc


# ── Contracts ─────────────────────────────────────────────────────────────────

class RelevanceScorer(ABC):
    name: str = "relevance_scorer"

    @abstractmethod
    def score_relevance(
        self,
        candidates: list[RelevanceInput],
        preferences: RelevancePreferences,
    ) -> list[RelevanceScore]:
        """Return a 0–100 suitability score per candidate (any order, may omit ids)."""


class DistanceOracle(ABC):
    name: str = "distance_oracle"

    @abstractmethod
    def estimate_travel_time(
        self,
        origin: SpotLocation,
        destinations: list[SpotLocation],
        departure_time: datetime | None = None,
    ) -> list[TravelEstimate]:
        """Return one estimate per destination, in the same order."""


class RouteOracle(ABC):
    name: str = "route_oracle"

    @abstractmethod
    def stitch_route(self, waypoints: list[SpotLocation]) -> list[RouteSegment]:
        """Return one RouteSegment per consecutive waypoint pair."""


class SpotCatalog(ABC):
    name: str = "spot_catalog"

    @abstractmethod
    def list_spots_with_coordinates(self) -> list[CatalogSpot]:
        """Return every catalog spot that has a location."""
