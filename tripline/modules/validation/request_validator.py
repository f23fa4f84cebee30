"""
modules/validation/request_validator.py
-----------------------------------------
Guards applied before any planning starts, plus data-quality checks on
catalog records.

  Trip request:
    ✓ start_date / end_date are dates and end_date >= start_date
    ✓ daily_travel_hours > 0 and <= 24
    ✓ corridor_radius_km > 0 and finite
    ✓ start_point / end_point present with valid coordinates
    ✓ every accommodation has valid coordinates

  Spot record (catalog row):
    ✓ non-empty place_id and name
    ✓ latitude in [-90, 90], longitude in [-180, 180], not both 0.0
    ✓ average_duration_minutes > 0 if present

Usage:
    from tripline.modules.validation import ensure_valid_request, validate_spot_record

    ensure_valid_request(request)          # raises InvalidRequestError
    clean = filter_valid(rows, validate_spot_record)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, TypeVar

from tripline.errors import InvalidRequestError
from tripline.schemas.itinerary import SpotLocation
from tripline.schemas.request import ItineraryRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
        record: The input record dict (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    record: dict = field(default_factory=dict, repr=False)

    def __bool__(self) -> bool:
        return self.valid


# ── Coordinates ────────────────────────────────────────────────────────────────

def _coordinate_errors(label: str, lat: Any, lng: Any) -> list[str]:
    if lat is None or lng is None:
        return [f"{label}: latitude/longitude must not be NULL (got lat={lat!r}, lng={lng!r})"]
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return [f"{label}: latitude/longitude must be numeric (got lat={lat!r}, lng={lng!r})"]

    errors: list[str] = []
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return [f"{label}: latitude/longitude must be finite"]
    if not (-90.0 <= lat_f <= 90.0):
        errors.append(f"{label}: latitude={lat_f} is outside valid range [-90, 90]")
    if not (-180.0 <= lng_f <= 180.0):
        errors.append(f"{label}: longitude={lng_f} is outside valid range [-180, 180]")
    if lat_f == 0.0 and lng_f == 0.0:
        errors.append(f"{label}: (0.0, 0.0) is a missing/default value, not a location")
    return errors


def _location_errors(label: str, loc: SpotLocation | None) -> list[str]:
    if loc is None:
        return [f"{label} is required"]
    return _coordinate_errors(label, loc.latitude, loc.longitude)


# ── Trip request ───────────────────────────────────────────────────────────────

def validate_request(request: ItineraryRequest) -> ValidationResult:
    """Collect every problem with a trip request (does not raise)."""
    errors: list[str] = []

    # ── Dates ──────────────────────────────────────────────────────────────
    start, end = request.start_date, request.end_date
    if not isinstance(start, date) or not isinstance(end, date):
        errors.append(f"start_date/end_date must be dates (got {start!r}, {end!r})")
    elif end < start:
        errors.append(f"end_date={end} is before start_date={start}")

    # ── Daily budget ───────────────────────────────────────────────────────
    hours = request.daily_travel_hours
    if not isinstance(hours, (int, float)) or not math.isfinite(hours) or hours <= 0:
        errors.append(f"daily_travel_hours={hours!r} must be > 0")
    elif hours > 24:
        errors.append(f"daily_travel_hours={hours} must be <= 24")

    # ── Corridor ───────────────────────────────────────────────────────────
    radius = request.corridor_radius_km
    if not isinstance(radius, (int, float)) or not math.isfinite(radius) or radius <= 0:
        errors.append(f"corridor_radius_km={radius!r} must be a positive number")

    # ── Waypoints ──────────────────────────────────────────────────────────
    errors.extend(_location_errors("start_point", request.start_point))
    errors.extend(_location_errors("end_point", request.end_point))
    for idx, acc in enumerate(request.accommodations):
        errors.extend(_location_errors(f"accommodations[{idx}] ({acc.date})", acc.location))

    return ValidationResult(valid=not errors, errors=errors)


def ensure_valid_request(request: ItineraryRequest) -> None:
    """Raise InvalidRequestError listing every failure, or return silently."""
    result = validate_request(request)
    if not result.valid:
        raise InvalidRequestError(result.errors)


# ── Spot record ────────────────────────────────────────────────────────────────

def validate_spot_record(record: dict[str, Any]) -> ValidationResult:
    """
    Validate a raw catalog row before it becomes a CatalogSpot.
    Rows without coordinates fail here; the corridor filter never sees them.
    """
    errors: list[str] = []

    if not str(record.get("place_id") or "").strip():
        errors.append("place_id must not be empty or NULL")
    if not str(record.get("name") or "").strip():
        errors.append("name must not be empty or NULL")

    errors.extend(_coordinate_errors("location", record.get("latitude"), record.get("longitude")))

    duration = record.get("average_duration_minutes")
    if duration is not None:
        try:
            if int(duration) <= 0:
                errors.append(f"average_duration_minutes={duration} must be > 0")
        except (TypeError, ValueError):
            errors.append(f"average_duration_minutes={duration!r} must be an integer")

    return ValidationResult(valid=not errors, errors=errors, record=record)


# ── Batch filter helper ────────────────────────────────────────────────────────

def filter_valid(
    items: list[T],
    validator: Callable[[dict], ValidationResult],
    to_dict: Callable[[T], dict] | None = None,
) -> list[T]:
    """
    Apply a validator to every item, return only the valid ones.
    Rejections are logged as data-quality warnings, never raised.
    """
    valid_items: list[T] = []
    rejected = 0

    for item in items:
        record_dict = (
            to_dict(item)
            if to_dict is not None
            else (item if isinstance(item, dict) else item.__dict__)
        )
        result = validator(record_dict)
        if result.valid:
            valid_items.append(item)
        else:
            rejected += 1
            name = record_dict.get("name", record_dict.get("place_id", "?"))
            logger.warning("Rejected catalog record %r: %s", name, "; ".join(result.errors))

    if rejected:
        logger.warning(
            "%d/%d catalog records rejected; %d passed.",
            rejected, len(items), len(valid_items),
        )
    return valid_items
