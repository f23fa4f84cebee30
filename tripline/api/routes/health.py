"""
api/routes/health.py
--------------------
Health-check endpoint for load balancers and container liveness checks.
"""
from __future__ import annotations

from fastapi import APIRouter

import tripline.config as config

router = APIRouter()


@router.get("/health", summary="Health check")
def health() -> dict:
    """Returns 200 OK when the service is running, plus which adapters are stubbed."""
    return {
        "status": "ok",
        "service": "tripline",
        "catalog_source": config.CATALOG_SOURCE,
        "stubs": {
            "relevance": config.USE_STUB_RELEVANCE,
            "distance":  config.USE_STUB_DISTANCE,
            "routes":    config.USE_STUB_ROUTES,
        },
    }
