"""
schemas/planner.py
------------------
Tunable planner parameters.

ScoringWeights holds the Spot Evaluator's linear combination:

  total = w_rel·relevance + w_dir·direction + w_eff·travel_efficiency
        + w_time·time_category + (open_bonus if open) + (mandatory_bonus if fixed)

PlannerParameters bundles the weights with the hard filters and day limits.
Defaults come from config.py; tests build their own instances.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

import tripline.config as config


class FailurePolicy(str, Enum):
    ABORT = "abort"              # any external failure aborts the whole itinerary
    BEST_EFFORT = "best_effort"  # failed day is left empty with a warning


@dataclass(frozen=True)
class ScoringWeights:
    relevance: float = 0.30
    direction: float = 0.25
    travel_efficiency: float = 0.15
    time_category: float = 0.20
    open_bonus: float = 10.0
    mandatory_bonus: float = 50.0


@dataclass
class PlannerParameters:
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    max_travel_minutes: float = config.MAX_TRAVEL_MINUTES
    min_direction_score: float = config.MIN_DIRECTION_SCORE
    default_stay_minutes: int = config.DEFAULT_STAY_MINUTES
    failure_policy: FailurePolicy = FailurePolicy(config.FAILURE_POLICY)

    def __post_init__(self) -> None:
        if self.max_travel_minutes <= 0:
            raise ValueError(f"max_travel_minutes must be > 0 (got {self.max_travel_minutes})")
        if self.default_stay_minutes <= 0:
            raise ValueError(f"default_stay_minutes must be > 0 (got {self.default_stay_minutes})")
