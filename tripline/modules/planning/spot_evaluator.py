"""
modules/planning/spot_evaluator.py
------------------------------------
Scores every remaining candidate from the traveler's current position and
picks the next stop.

Per evaluation round:
  1. One batched DistanceOracle call for all candidates (origin → each).
  2. Hard filters:  direction_score < min_direction_score  → rejected
                    travel_time     > max_travel_minutes   → rejected
  3. Soft score:
       total = w_rel·relevance + w_dir·direction + w_eff·efficiency
             + w_time·time_category + open_bonus·[open] + mandatory_bonus·[fixed]
       efficiency = max(0, 100 − 100·travel/max_travel_minutes)
  4. Sort by total desc, ties by catalog_index asc.

Opening hours are not parsed: a spot is open unless the catalog flags it
closed.
"""

from __future__ import annotations
import logging
import math
from datetime import datetime
from typing import Optional

from tripline.errors import ExternalServiceError
from tripline.modules.planning.direction_scoring import direction_score
from tripline.modules.planning.time_slots import (
    DEFAULT_TIME_SLOT_TABLE,
    TimeSlotTable,
    find_time_slot,
    score_time_category,
)
from tripline.modules.tool_usage.services import DistanceOracle
from tripline.schemas.itinerary import CandidateSpot, CatalogSpot, SpotEvaluation, SpotLocation
from tripline.schemas.planner import PlannerParameters

logger = logging.getLogger(__name__)


def is_open_at(spot: CatalogSpot, at: datetime) -> bool:
    return not spot.is_closed


class SpotEvaluator:
    """Greedy next-stop selection for the Day Planner."""

    def __init__(
        self,
        distance_oracle: DistanceOracle,
        params: PlannerParameters | None = None,
        time_slots: TimeSlotTable = DEFAULT_TIME_SLOT_TABLE,
    ) -> None:
        self.distance_oracle = distance_oracle
        self.params = params or PlannerParameters()
        self.time_slots = time_slots

    # ── Public API ────────────────────────────────────────────────────────────

    def evaluate(
        self,
        current_location: SpotLocation,
        destination: SpotLocation,
        candidates: list[CandidateSpot],
        current_time: datetime,
        last_visited_category: Optional[str] = None,
        mandatory_ids: frozenset[str] = frozenset(),
    ) -> list[SpotEvaluation]:
        """Return surviving evaluations, best first."""
        if not candidates:
            return []

        locations = [c.spot.to_location() for c in candidates]
        estimates = self.distance_oracle.estimate_travel_time(
            current_location, locations, departure_time=current_time,
        )
        if len(estimates) != len(candidates):
            raise ExternalServiceError(
                self.distance_oracle.name,
                f"expected {len(candidates)} travel estimate(s), got {len(estimates)}",
            )

        p = self.params
        w = p.weights
        slot = find_time_slot(current_time, self.time_slots.slots)
        evaluations: list[SpotEvaluation] = []

        for cand, loc, est in zip(candidates, locations, estimates):
            direction = direction_score(current_location, loc, destination)
            if direction < p.min_direction_score:
                continue

            travel = est.duration_minutes
            if not math.isfinite(travel) or travel > p.max_travel_minutes:
                continue

            is_open = is_open_at(cand.spot, current_time)
            is_mandatory = cand.place_id in mandatory_ids
            time_score = score_time_category(
                cand.spot, current_time, last_visited_category, self.time_slots,
            )
            efficiency = max(0.0, 100.0 - (travel / p.max_travel_minutes) * 100.0)

            total = (
                w.relevance * cand.relevance_score
                + w.direction * direction
                + w.travel_efficiency * efficiency
                + w.time_category * time_score
                + (w.open_bonus if is_open else 0.0)
            )
            if is_mandatory:
                total += w.mandatory_bonus

            logger.debug(
                "  %s: total=%.1f (rel=%.0f, dir=%.1f, time=%.0f, travel=%.0fm) [%s]",
                cand.spot.name, total, cand.relevance_score, direction, time_score,
                travel, slot.label if slot else "no slot",
            )
            evaluations.append(SpotEvaluation(
                candidate=cand,
                travel_time_minutes=travel,
                direction_score=direction,
                preference_score=cand.relevance_score,
                time_category_score=time_score,
                travel_efficiency=efficiency,
                is_open_now=is_open,
                is_mandatory=is_mandatory,
                total_score=total,
            ))

        evaluations.sort(key=lambda e: (-e.total_score, e.candidate.catalog_index))
        return evaluations

    def select_next(
        self,
        current_location: SpotLocation,
        destination: SpotLocation,
        candidates: list[CandidateSpot],
        current_time: datetime,
        last_visited_category: Optional[str] = None,
        mandatory_ids: frozenset[str] = frozenset(),
    ) -> Optional[SpotEvaluation]:
        ranked = self.evaluate(
            current_location, destination, candidates,
            current_time, last_visited_category, mandatory_ids,
        )
        if ranked:
            logger.debug("%d candidate(s) survived; best %.1f", len(ranked), ranked[0].total_score)
            return ranked[0]
        return None
