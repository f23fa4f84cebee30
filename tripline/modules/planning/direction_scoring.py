"""
modules/planning/direction_scoring.py
---------------------------------------
How much a candidate moves the traveler toward the day's destination.

  direct       = d(current, destination)
  to_spot      = d(current, candidate)
  spot_to_dest = d(candidate, destination)
  progress     = direct − spot_to_dest
  detour       = to_spot + spot_to_dest − direct

  progress < 0             → 0   (candidate lies behind us)
  efficiency               = 100 if detour ≤ 0 else max(0, 100 − 100·detour/direct)
  progress_ratio           = 100·progress/direct
  score                    = min(100, 0.7·efficiency + 0.3·progress_ratio)

All distances are haversine km.
"""

from __future__ import annotations

from tripline.modules.tool_usage.distance_tool import location_distance_km
from tripline.schemas.itinerary import SpotLocation

_EFFICIENCY_WEIGHT = 0.7
_PROGRESS_WEIGHT = 0.3

# Below this the traveler is considered to be at the destination already
_AT_DESTINATION_KM = 1e-9


def direction_score(
    current: SpotLocation,
    candidate: SpotLocation,
    destination: SpotLocation,
) -> float:
    """Return a score in [0, 100]; higher means better progress."""
    direct = location_distance_km(current, destination)
    to_spot = location_distance_km(current, candidate)
    spot_to_dest = location_distance_km(candidate, destination)

    if direct <= _AT_DESTINATION_KM:
        return 100.0 if spot_to_dest <= _AT_DESTINATION_KM else 0.0

    progress = direct - spot_to_dest
    if progress < 0:
        return 0.0

    detour = to_spot + spot_to_dest - direct
    efficiency = 100.0 if detour <= 0 else max(0.0, 100.0 - (detour / direct) * 100.0)
    progress_ratio = (progress / direct) * 100.0

    return min(100.0, _EFFICIENCY_WEIGHT * efficiency + _PROGRESS_WEIGHT * progress_ratio)
