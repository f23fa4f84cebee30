"""
modules/planning/itinerary_orchestrator.py
--------------------------------------------
Top-level entry point: ItineraryRequest + SpotCatalog → TravelItinerary.

Pipeline:
  1. Validate the request (InvalidRequestError before any planning).
  2. Read the catalog once; drop invalid / duplicate records.
  3. For each calendar day, strictly in order:
       start = trip start (day 1) | previous night's accommodation
       end   = tonight's accommodation | trip end (last day)
       corridor → DayPlanner.plan_day(..., excluded_ids=visited so far)
  4. Stitch one route over every day's start, every stop, and the last end.
  5. Summarise and emit structured log records; the trip's log file is
     closed on every exit path.

External failures follow PlannerParameters.failure_policy:
  ABORT        → ItineraryGenerationError(service, cause, day_number)
  BEST_EFFORT  → empty DayPlan(failed=True) / no routes, plus a warning
"""

from __future__ import annotations
import logging
import time as _time_mod
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any

import tripline.config as config
from tripline.errors import ExternalServiceError, ItineraryGenerationError
from tripline.modules.observability.logger import StructuredLogger
from tripline.modules.planning.corridor import build_corridor
from tripline.modules.planning.day_planner import DayPlanner
from tripline.modules.planning.spot_evaluator import SpotEvaluator
from tripline.modules.planning.time_slots import DEFAULT_TIME_SLOT_TABLE, TimeSlotTable
from tripline.modules.tool_usage.services import (
    DistanceOracle,
    RelevanceScorer,
    RouteOracle,
    SpotCatalog,
)
from tripline.modules.validation.request_validator import (
    ensure_valid_request,
    filter_valid,
    validate_spot_record,
)
from tripline.schemas.itinerary import (
    CatalogSpot,
    DayPlan,
    ItinerarySummary,
    RouteSegment,
    SpotLocation,
    TravelItinerary,
)
from tripline.schemas.planner import FailurePolicy, PlannerParameters
from tripline.schemas.request import ItineraryRequest

logger = logging.getLogger(__name__)


# ── Default services ─────────────────────────────────────────────────────────

def build_default_services() -> dict[str, Any]:
    """
    Service implementations selected by the USE_STUB_* flags.
    Stubs make no network calls; the real adapters need API keys.
    """
    if config.USE_STUB_RELEVANCE:
        from tripline.modules.tool_usage.relevance_tool import KeywordRelevanceScorer
        relevance: RelevanceScorer = KeywordRelevanceScorer()
    else:
        from tripline.modules.tool_usage.relevance_tool import GeminiRelevanceScorer
        relevance = GeminiRelevanceScorer()

    if config.USE_STUB_DISTANCE:
        from tripline.modules.tool_usage.distance_tool import HaversineDistanceTool
        distance: DistanceOracle = HaversineDistanceTool()
    else:
        from tripline.modules.tool_usage.google_maps_tool import GoogleDistanceMatrixTool
        distance = GoogleDistanceMatrixTool()

    if config.USE_STUB_ROUTES:
        from tripline.modules.tool_usage.distance_tool import StraightLineRouteTool
        routes: RouteOracle = StraightLineRouteTool()
    else:
        from tripline.modules.tool_usage.google_maps_tool import GoogleDirectionsTool
        routes = GoogleDirectionsTool()

    return {
        "relevance_scorer": relevance,
        "distance_oracle": distance,
        "route_oracle": routes,
    }


def _spot_record(spot: CatalogSpot) -> dict:
    return {
        "place_id": spot.place_id,
        "name": spot.name,
        "latitude": spot.latitude,
        "longitude": spot.longitude,
        "average_duration_minutes": spot.average_duration_minutes,
    }


def _unique_spots(spots: list[CatalogSpot]) -> list[CatalogSpot]:
    seen: set[str] = set()
    unique: list[CatalogSpot] = []
    for spot in spots:
        if spot.place_id in seen:
            logger.warning("Duplicate catalog place_id %r ignored", spot.place_id)
            continue
        seen.add(spot.place_id)
        unique.append(spot)
    return unique


class ItineraryOrchestrator:
    """Sequential multi-day planner over injected external services."""

    def __init__(
        self,
        relevance_scorer: RelevanceScorer | None = None,
        distance_oracle: DistanceOracle | None = None,
        route_oracle: RouteOracle | None = None,
        params: PlannerParameters | None = None,
        time_slots: TimeSlotTable = DEFAULT_TIME_SLOT_TABLE,
        structured_logger: StructuredLogger | None = None,
    ) -> None:
        if relevance_scorer is None or distance_oracle is None or route_oracle is None:
            defaults = build_default_services()
            relevance_scorer = relevance_scorer or defaults["relevance_scorer"]
            distance_oracle = distance_oracle or defaults["distance_oracle"]
            route_oracle = route_oracle or defaults["route_oracle"]

        self.params = params or PlannerParameters()
        self.relevance_scorer = relevance_scorer
        self.distance_oracle = distance_oracle
        self.route_oracle = route_oracle
        self.evaluator = SpotEvaluator(distance_oracle, self.params, time_slots)
        self.day_planner = DayPlanner(relevance_scorer, self.evaluator, self.params)
        self.slog = structured_logger or StructuredLogger()

    # ── Public entry point ────────────────────────────────────────────────────

    def generate(self, request: ItineraryRequest, catalog: SpotCatalog) -> TravelItinerary:
        ensure_valid_request(request)

        _t0 = _time_mod.perf_counter()
        trip_id = f"trip_{uuid.uuid4().hex[:12]}"
        itinerary = TravelItinerary(
            trip_id=trip_id,
            request=request,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            self._build(itinerary, catalog, started=_t0)
        finally:
            self.slog.close(trip_id)
        return itinerary

    def _build(self, itinerary: TravelItinerary, catalog: SpotCatalog, started: float) -> None:
        request = itinerary.request
        trip_id = itinerary.trip_id

        spots = catalog.list_spots_with_coordinates()
        spots = _unique_spots(filter_valid(spots, validate_spot_record, to_dict=_spot_record))
        logger.info(
            "[%s] Planning %d day(s) over %d catalog spot(s)",
            trip_id, request.total_days, len(spots),
        )

        visited: set[str] = set()
        for offset in range(request.total_days):
            plan = self._plan_one_day(itinerary, offset, spots, visited)
            visited.update(plan.spot_ids)
            itinerary.plans.append(plan)

        itinerary.routes = self._stitch(itinerary)
        itinerary.summary = summarize(itinerary.plans)

        self.slog.log(trip_id, "ITINERARY_COMPLETE", {
            "total_days": itinerary.summary.total_days,
            "total_spots": itinerary.summary.total_spots,
            "total_travel_time_minutes": itinerary.summary.total_travel_time_minutes,
            "warnings": len(itinerary.warnings),
        })
        self.slog.log(trip_id, "PERFORMANCE", {
            "component": "ItineraryOrchestrator.generate",
            "duration_ms": round((_time_mod.perf_counter() - started) * 1000, 2),
        })

    # ── Per-day ───────────────────────────────────────────────────────────────

    def _day_endpoints(
        self, request: ItineraryRequest, offset: int, day_date: date,
    ) -> tuple[SpotLocation, SpotLocation]:
        last = offset == request.total_days - 1
        if offset == 0:
            start = request.start_point
        else:
            start = request.accommodation_on(day_date - timedelta(days=1), offset - 1) or request.start_point
        if last:
            end = request.end_point
        else:
            end = request.accommodation_on(day_date, offset) or request.end_point
        return start, end

    def _plan_one_day(
        self,
        itinerary: TravelItinerary,
        offset: int,
        spots: list[CatalogSpot],
        visited: set[str],
    ) -> DayPlan:
        request = itinerary.request
        day_number = offset + 1
        day_date = request.start_date + timedelta(days=offset)
        start, end = self._day_endpoints(request, offset, day_date)
        corridor = build_corridor(start, end, request.corridor_radius_km)
        logger.info(
            "[%s] Day %d (%s): %s → %s, r=%.1f km",
            itinerary.trip_id, day_number, day_date, start.name, end.name, corridor.radius_km,
        )

        _t0 = _time_mod.perf_counter()
        try:
            plan = self.day_planner.plan_day(
                day_number, day_date, start, end, corridor, spots, request,
                excluded_ids=frozenset(visited),
            )
        except ExternalServiceError as exc:
            self.slog.log(itinerary.trip_id, "DAY_FAILED", {
                "day": day_number,
                "service": exc.service,
                "error": str(exc),
                "policy": self.params.failure_policy.value,
            })
            if self.params.failure_policy is not FailurePolicy.BEST_EFFORT:
                raise ItineraryGenerationError(exc.service, exc, day_number=day_number) from exc

            logger.warning("[%s] Day %d left empty: %s", itinerary.trip_id, day_number, exc)
            itinerary.warnings.append(f"Day {day_number}: {exc.service} failed ({exc}); day left empty")
            return DayPlan(
                date=day_date,
                day_number=day_number,
                start_location=start,
                end_location=end,
                corridor=corridor,
                notes=[f"Planning failed: {exc}"],
                failed=True,
            )

        self.slog.log(itinerary.trip_id, "DAY_PLANNED", {
            "day": day_number,
            "date": day_date.isoformat(),
            "spot_ids": plan.spot_ids,
            "total_travel_time_minutes": plan.total_travel_time_minutes,
            "total_activity_time_minutes": plan.total_activity_time_minutes,
            "notes": plan.notes,
        })
        self.slog.log(itinerary.trip_id, "PERFORMANCE", {
            "component": "DayPlanner.plan_day",
            "day": day_number,
            "duration_ms": round((_time_mod.perf_counter() - _t0) * 1000, 2),
        })
        return plan

    # ── Route stitching ───────────────────────────────────────────────────────

    def _stitch(self, itinerary: TravelItinerary) -> list[RouteSegment]:
        waypoints = route_waypoints(itinerary.plans)
        if len(waypoints) < 2:
            return []
        try:
            return self.route_oracle.stitch_route(waypoints)
        except ExternalServiceError as exc:
            if self.params.failure_policy is not FailurePolicy.BEST_EFFORT:
                raise ItineraryGenerationError(exc.service, exc) from exc
            logger.warning("[%s] Route stitching failed: %s", itinerary.trip_id, exc)
            itinerary.warnings.append(f"Routes unavailable: {exc}")
            return []


# ── Pure helpers ─────────────────────────────────────────────────────────────

def route_waypoints(plans: list[DayPlan]) -> list[SpotLocation]:
    """Each day's start, then each of its stops; finally the last day's end."""
    waypoints: list[SpotLocation] = []
    for plan in plans:
        waypoints.append(plan.start_location)
        waypoints.extend(stop.location for stop in plan.spots)
    if plans:
        waypoints.append(plans[-1].end_location)
    return waypoints


def summarize(plans: list[DayPlan]) -> ItinerarySummary:
    regions: list[str] = []
    for plan in plans:
        for stop in plan.spots:
            region = stop.spot.region
            if region and region not in regions:
                regions.append(region)
    return ItinerarySummary(
        total_days=len(plans),
        total_spots=sum(len(p.spots) for p in plans),
        total_travel_time_minutes=sum(p.total_travel_time_minutes for p in plans),
        total_activity_time_minutes=sum(p.total_activity_time_minutes for p in plans),
        coverage_regions=regions,
    )


def generate_itinerary(
    request: ItineraryRequest,
    catalog: SpotCatalog,
    *,
    relevance_scorer: RelevanceScorer | None = None,
    distance_oracle: DistanceOracle | None = None,
    route_oracle: RouteOracle | None = None,
    params: PlannerParameters | None = None,
    structured_logger: StructuredLogger | None = None,
) -> TravelItinerary:
    """Convenience wrapper around ItineraryOrchestrator.generate()."""
    orchestrator = ItineraryOrchestrator(
        relevance_scorer=relevance_scorer,
        distance_oracle=distance_oracle,
        route_oracle=route_oracle,
        params=params,
        structured_logger=structured_logger,
    )
    return orchestrator.generate(request, catalog)
