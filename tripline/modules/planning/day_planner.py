"""
modules/planning/day_planner.py
---------------------------------
Fills one calendar day with stops, greedily, between the day's start and end
waypoints.

State machine:
    PLANNING ──(spot committed)──▶ PLANNING
    PLANNING ──(no survivor | budget exhausted | pool empty)──▶ DONE

Initial state:
    location = start, clock = plan_date @ day_start,
    working set = corridor candidates (minus ids visited on earlier days),
    each scored once by the RelevanceScorer.

Per iteration:
    best = SpotEvaluator.select_next(...)
    stay = average_duration_minutes or default_stay_minutes
    used + travel + stay > budget  → DONE   (checked before the append)
    otherwise append ItinerarySpot, back-fill the previous stop's
    travel_time_to_next, advance location / clock / last category.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from enum import Enum

from tripline.modules.planning.corridor import filter_by_corridor
from tripline.modules.planning.spot_evaluator import SpotEvaluator
from tripline.modules.tool_usage.services import (
    RelevanceInput,
    RelevancePreferences,
    RelevanceScorer,
)
from tripline.schemas.itinerary import (
    CandidateSpot,
    CatalogSpot,
    DayPlan,
    ItinerarySpot,
    SpotLocation,
    TravelCorridor,
)
from tripline.schemas.planner import PlannerParameters
from tripline.schemas.request import ItineraryRequest

logger = logging.getLogger(__name__)


class PlannerState(str, Enum):
    PLANNING = "planning"
    DONE = "done"


class DayPlanner:
    """Single-day greedy planner. Stateless between calls."""

    def __init__(
        self,
        relevance_scorer: RelevanceScorer,
        evaluator: SpotEvaluator,
        params: PlannerParameters | None = None,
    ) -> None:
        self.relevance_scorer = relevance_scorer
        self.evaluator = evaluator
        self.params = params or evaluator.params

    # ── Public entry point ────────────────────────────────────────────────────

    def plan_day(
        self,
        day_number: int,
        plan_date: date,
        start: SpotLocation,
        end: SpotLocation,
        corridor: TravelCorridor,
        catalog_spots: list[CatalogSpot],
        request: ItineraryRequest,
        excluded_ids: set[str] | frozenset[str] = frozenset(),
    ) -> DayPlan:
        plan = DayPlan(
            date=plan_date,
            day_number=day_number,
            start_location=start,
            end_location=end,
            corridor=corridor,
        )

        candidates = [
            c for c in filter_by_corridor(catalog_spots, corridor)
            if c.place_id not in excluded_ids
        ]
        if not candidates:
            plan.notes.append(
                f"No catalog spots within {corridor.radius_km:g} km of "
                f"{start.name} → {end.name}"
            )
            logger.info("Day %d: empty corridor", day_number)
            return plan

        self._score_candidates(candidates, request)

        # Working set, keyed by place_id; entries are removed once committed
        remaining: dict[str, CandidateSpot] = {c.place_id: c for c in candidates}

        budget = request.daily_budget_minutes
        mandatory_ids = request.mandatory_ids
        current_location = start
        current_time = datetime.combine(plan_date, request.day_start)
        last_category: str | None = None
        state = PlannerState.PLANNING

        while state is PlannerState.PLANNING:
            if not remaining:
                plan.notes.append("All corridor candidates scheduled")
                state = PlannerState.DONE
                continue

            best = self.evaluator.select_next(
                current_location,
                end,
                list(remaining.values()),
                current_time,
                last_category,
                mandatory_ids,
            )
            if best is None:
                plan.notes.append(
                    f"No remaining candidate passes the direction/travel filters "
                    f"after {current_location.name} at {current_time:%H:%M}"
                )
                state = PlannerState.DONE
                continue

            spot = best.candidate.spot
            travel = best.travel_time_minutes
            stay = spot.average_duration_minutes or self.params.default_stay_minutes

            if plan.total_minutes + travel + stay > budget:
                plan.notes.append(
                    f"Daily budget of {budget:g} min reached "
                    f"({plan.total_minutes:g} min used; next stop {spot.name} needs "
                    f"{travel:g}+{stay} min)"
                )
                state = PlannerState.DONE
                continue

            arrival = current_time + timedelta(minutes=travel)
            departure = arrival + timedelta(minutes=stay)

            if plan.spots:
                plan.spots[-1] = _with_travel_to_next(plan.spots[-1], travel)
            plan.spots.append(ItinerarySpot(
                sequence=len(plan.spots) + 1,
                spot=spot,
                arrival_time=arrival,
                departure_time=departure,
                duration_minutes=stay,
                travel_time_minutes=travel,
                notes="must-visit" if best.is_mandatory else "",
            ))
            plan.total_travel_time_minutes += travel
            plan.total_activity_time_minutes += stay

            logger.info(
                "Day %d: %d. %s (arrive %s, stay %d min, score %.1f)",
                day_number, len(plan.spots), spot.name,
                arrival.strftime("%H:%M"), stay, best.total_score,
            )

            current_location = spot.to_location()
            current_time = departure
            if spot.categories:
                last_category = spot.categories[0]
            del remaining[spot.place_id]

        return plan

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _score_candidates(self, candidates: list[CandidateSpot], request: ItineraryRequest) -> None:
        """One relevance call for the whole day; unscored candidates keep 0."""
        inputs = [
            RelevanceInput(
                place_id=c.place_id,
                name=c.spot.name,
                categories=c.spot.categories,
                attributes=c.spot.attributes,
            )
            for c in candidates
        ]
        prefs = RelevancePreferences(
            trip=request.preferences,
            fixed_spot_names=request.mandatory_names,
        )
        by_id = {c.place_id: c for c in candidates}
        for score in self.relevance_scorer.score_relevance(inputs, prefs):
            cand = by_id.get(score.place_id)
            if cand is not None and not cand.is_scored:
                cand.assign_relevance(score.score)


def _with_travel_to_next(stop: ItinerarySpot, minutes: float) -> ItinerarySpot:
    return replace(stop, travel_time_to_next=minutes)
