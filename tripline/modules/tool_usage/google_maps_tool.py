"""
modules/tool_usage/google_maps_tool.py
---------------------------------------
Google Maps Platform adapters (driving mode, rental-car trips).

Distance Matrix (DistanceOracle)
    GET {base}/distancematrix/json
        origins=lat,lng  destinations=lat,lng|lat,lng|...
        mode=driving  language=ko  departure_time=<unix seconds>  key=...
    rows[0].elements[i].duration.value  → seconds  → ceil(/60) minutes
    rows[0].elements[i].distance.value  → metres   → km (2 dp)
    element.status != "OK"              → UNREACHABLE_MINUTES / UNREACHABLE_KM
    top-level status != "OK"            → ExternalServiceError

Directions (RouteOracle)
    GET {base}/directions/json
        origin=lat,lng  destination=lat,lng  waypoints=lat,lng|...
    routes[0].legs[k] → RouteSegment(waypoints[k] → waypoints[k+1])
    step.html_instructions has its HTML tags stripped.

Google caps a Directions request at 25 points, so long trips are stitched
in chunks of max_waypoints_per_request + 1 points (24 by default) that
share their boundary waypoint. Distance Matrix requests are chunked at 25
destinations.
"""

from __future__ import annotations
import logging
import math
import re
from datetime import datetime
from typing import Any

import requests

import tripline.config as config
from tripline.errors import ExternalServiceError
from tripline.modules.tool_usage.services import (
    UNREACHABLE_KM,
    UNREACHABLE_MINUTES,
    DistanceOracle,
    RetryPolicy,
    RouteOracle,
    TravelEstimate,
)
from tripline.schemas.itinerary import RouteSegment, RouteStep, SpotLocation

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = (429, 500, 502, 503, 504)
_HTML_TAG = re.compile(r"<[^>]*>")

MAX_MATRIX_DESTINATIONS = 25
MAX_WAYPOINTS_PER_REQUEST = 23


class _RetryableHTTPError(Exception):
    pass


def _latlng(loc: SpotLocation) -> str:
    return f"{loc.latitude},{loc.longitude}"


class _GoogleMapsClient:
    """Shared HTTP plumbing: session, API key, timeout, retry policy."""

    name = "google_maps"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = config.GOOGLE_MAPS_BASE_URL,
        timeout: float = config.GOOGLE_MAPS_TIMEOUT,
        language: str = config.GOOGLE_MAPS_LANGUAGE,
        mode: str = config.GOOGLE_MAPS_TRAVEL_MODE,
        retry_policy: RetryPolicy | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.GOOGLE_MAPS_API_KEY
        if not self.api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.language = language
        self.mode = mode
        self.retry_policy = retry_policy or RetryPolicy()
        self.session = session or requests.Session()

    def _get_json(self, endpoint: str, params: dict[str, Any]) -> dict:
        url = f"{self.base_url}/{endpoint}/json"
        query = {
            **params,
            "mode": self.mode,
            "language": self.language,
            "key": self.api_key,
        }

        def _call() -> dict:
            resp = self.session.get(url, params=query, timeout=self.timeout)
            if resp.status_code in _RETRYABLE_STATUS:
                raise _RetryableHTTPError(f"upstream {resp.status_code}")
            if not resp.ok:
                raise ExternalServiceError(
                    self.name, f"upstream {resp.status_code}: {resp.text[:300]}"
                )
            try:
                return resp.json()
            except ValueError as exc:
                raise ExternalServiceError(self.name, "invalid json response") from exc

        data = self.retry_policy.run(
            self.name, _call, retry_on=(requests.RequestException, _RetryableHTTPError)
        )
        status = data.get("status")
        if status != "OK":
            detail = data.get("error_message") or ""
            raise ExternalServiceError(self.name, f"{endpoint} status {status} {detail}".strip())
        return data


# ─────────────────────────────────────────────────────────────────────────────
# Distance Matrix
# ─────────────────────────────────────────────────────────────────────────────

class GoogleDistanceMatrixTool(_GoogleMapsClient, DistanceOracle):
    """One origin → many destinations travel times."""

    name = "google_distance_matrix"

    def estimate_travel_time(
        self,
        origin: SpotLocation,
        destinations: list[SpotLocation],
        departure_time: datetime | None = None,
    ) -> list[TravelEstimate]:
        results: list[TravelEstimate] = []
        for i in range(0, len(destinations), MAX_MATRIX_DESTINATIONS):
            chunk = destinations[i:i + MAX_MATRIX_DESTINATIONS]
            params: dict[str, Any] = {
                "origins": _latlng(origin),
                "destinations": "|".join(_latlng(d) for d in chunk),
            }
            if departure_time is not None:
                params["departure_time"] = int(departure_time.timestamp())
            data = self._get_json("distancematrix", params)
            results.extend(self._parse_elements(data, expected=len(chunk)))
        return results

    def _parse_elements(self, data: dict, expected: int) -> list[TravelEstimate]:
        rows = data.get("rows") or []
        elements = rows[0].get("elements", []) if rows else []
        if len(elements) != expected:
            raise ExternalServiceError(
                self.name, f"expected {expected} elements, got {len(elements)}"
            )
        parsed: list[TravelEstimate] = []
        for idx, el in enumerate(elements):
            try:
                if el.get("status") != "OK":
                    parsed.append(TravelEstimate(UNREACHABLE_MINUTES, UNREACHABLE_KM))
                    continue
                parsed.append(TravelEstimate(
                    duration_minutes=float(math.ceil(el["duration"]["value"] / 60)),
                    distance_km=round(el["distance"]["value"] / 1000, 2),
                ))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise ExternalServiceError(
                    self.name, f"malformed distance matrix element {idx}: {exc!r}"
                ) from exc
        return parsed


# ─────────────────────────────────────────────────────────────────────────────
# Directions
# ─────────────────────────────────────────────────────────────────────────────

class GoogleDirectionsTool(_GoogleMapsClient, RouteOracle):
    """Turn-by-turn segments for the final ordered waypoint list."""

    name = "google_directions"

    def __init__(self, *args: Any, max_waypoints_per_request: int = MAX_WAYPOINTS_PER_REQUEST, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        if max_waypoints_per_request < 1:
            raise ValueError("max_waypoints_per_request must be >= 1")
        self.max_waypoints_per_request = max_waypoints_per_request

    def stitch_route(self, waypoints: list[SpotLocation]) -> list[RouteSegment]:
        if len(waypoints) < 2:
            raise ValueError("at least two waypoints are required")
        segments: list[RouteSegment] = []
        step = self.max_waypoints_per_request
        for i in range(0, len(waypoints) - 1, step):
            chunk = waypoints[i:i + step + 1]
            segments.extend(self._directions(chunk))
        logger.info("Stitched %d waypoint(s) into %d segment(s)", len(waypoints), len(segments))
        return segments

    def _directions(self, waypoints: list[SpotLocation]) -> list[RouteSegment]:
        params: dict[str, Any] = {
            "origin": _latlng(waypoints[0]),
            "destination": _latlng(waypoints[-1]),
        }
        if len(waypoints) > 2:
            params["waypoints"] = "|".join(_latlng(w) for w in waypoints[1:-1])
        data = self._get_json("directions", params)

        routes = data.get("routes") or []
        if not routes:
            raise ExternalServiceError(self.name, "no routes in response")
        route = routes[0]
        legs = route.get("legs") or []
        if len(legs) != len(waypoints) - 1:
            raise ExternalServiceError(
                self.name, f"expected {len(waypoints) - 1} legs, got {len(legs)}"
            )
        polyline = (route.get("overview_polyline") or {}).get("points")

        segments: list[RouteSegment] = []
        for idx, leg in enumerate(legs):
            try:
                steps = [
                    RouteStep(
                        instruction=_HTML_TAG.sub("", s.get("html_instructions", "")),
                        distance_meters=int(s["distance"]["value"]),
                        duration_seconds=int(s["duration"]["value"]),
                    )
                    for s in leg.get("steps", [])
                ]
                segments.append(RouteSegment(
                    origin=waypoints[idx],
                    destination=waypoints[idx + 1],
                    duration_minutes=float(math.ceil(leg["duration"]["value"] / 60)),
                    distance_km=round(leg["distance"]["value"] / 1000, 2),
                    steps=steps,
                    polyline=polyline,
                ))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise ExternalServiceError(
                    self.name, f"malformed directions leg {idx}: {exc!r}"
                ) from exc
        return segments
