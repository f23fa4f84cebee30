"""modules/tool_usage: adapters for the external services the planner calls."""

from tripline.modules.tool_usage.services import (
    DistanceOracle,
    RelevanceInput,
    RelevancePreferences,
    RelevanceScore,
    RelevanceScorer,
    RetryPolicy,
    RouteOracle,
    SpotCatalog,
    TravelEstimate,
)

__all__ = [
    "DistanceOracle",
    "RelevanceInput",
    "RelevancePreferences",
    "RelevanceScore",
    "RelevanceScorer",
    "RetryPolicy",
    "RouteOracle",
    "SpotCatalog",
    "TravelEstimate",
]
