"""
tripline: corridor-based multi-day itinerary generator for Jeju.

    from tripline import generate_itinerary
    from tripline.schemas import ItineraryRequest, SpotLocation
"""

from tripline.modules.planning.itinerary_orchestrator import (
    ItineraryOrchestrator,
    generate_itinerary,
)

__version__ = "0.1.0"

__all__ = ["ItineraryOrchestrator", "generate_itinerary", "__version__"]
