from __future__ import annotations

import math
from datetime import date

import pytest

from conftest import AIRPORT, SEOGWIPO
from tripline.errors import InvalidRequestError
from tripline.modules.validation import (
    ensure_valid_request,
    filter_valid,
    validate_request,
    validate_spot_record,
)
from tripline.schemas.itinerary import SpotLocation
from tripline.schemas.request import AccommodationByDate, ItineraryRequest


def _request(**overrides) -> ItineraryRequest:
    fields = dict(
        start_date=date(2025, 5, 1),
        end_date=date(2025, 5, 2),
        daily_travel_hours=8,
        start_point=AIRPORT,
        end_point=SEOGWIPO,
    )
    fields.update(overrides)
    return ItineraryRequest(**fields)


def _record(**overrides) -> dict:
    record = {
        "place_id": "jeju-001",
        "name": "성산일출봉",
        "latitude": 33.458,
        "longitude": 126.942,
        "average_duration_minutes": 90,
    }
    record.update(overrides)
    return record


# ── Trip request ───────────────────────────────────────────────────────────────

def test_valid_request_passes() -> None:
    result = validate_request(_request())
    assert result.valid
    assert result.errors == []
    ensure_valid_request(_request())


def test_single_day_trip_is_valid() -> None:
    assert validate_request(_request(end_date=date(2025, 5, 1)))


def test_end_before_start_is_rejected() -> None:
    result = validate_request(_request(end_date=date(2025, 4, 30)))
    assert not result
    assert "before start_date" in result.errors[0]


@pytest.mark.parametrize("hours", [0, -1, 25, math.nan])
def test_daily_hours_out_of_range(hours) -> None:
    assert not validate_request(_request(daily_travel_hours=hours))


@pytest.mark.parametrize("radius", [0, -5, math.inf])
def test_corridor_radius_must_be_positive(radius) -> None:
    result = validate_request(_request(corridor_radius_km=radius))
    assert any("corridor_radius_km" in e for e in result.errors)


def test_bad_waypoints_are_reported() -> None:
    result = validate_request(_request(
        start_point=SpotLocation("nowhere", 0.0, 0.0),
        end_point=SpotLocation("off-planet", 95.0, 126.5),
    ))
    assert len(result.errors) == 2
    assert result.errors[0].startswith("start_point")
    assert "latitude=95.0" in result.errors[1]


def test_missing_waypoint_is_reported() -> None:
    result = validate_request(_request(end_point=None))
    assert result.errors == ["end_point is required"]


def test_accommodation_coordinates_are_checked() -> None:
    bad = AccommodationByDate(date(2025, 5, 1), SpotLocation("hotel", 33.25, 200.0))
    result = validate_request(_request(accommodations=[bad]))
    assert len(result.errors) == 1
    assert result.errors[0].startswith("accommodations[0]")


def test_ensure_valid_request_lists_every_failure() -> None:
    with pytest.raises(InvalidRequestError) as excinfo:
        ensure_valid_request(_request(end_date=date(2025, 4, 1), daily_travel_hours=0))
    err = excinfo.value
    assert len(err.errors) == 2
    assert err.code == "ERROR_INVALID_REQUEST"
    assert isinstance(err, ValueError)


# ── Spot record ────────────────────────────────────────────────────────────────

def test_valid_spot_record() -> None:
    assert validate_spot_record(_record())
    assert validate_spot_record(_record(average_duration_minutes=None))


@pytest.mark.parametrize(
    "overrides",
    [
        {"place_id": ""},
        {"name": None},
        {"latitude": None},
        {"longitude": "east"},
        {"latitude": 0.0, "longitude": 0.0},
        {"average_duration_minutes": 0},
        {"average_duration_minutes": "long"},
    ],
)
def test_invalid_spot_records(overrides) -> None:
    result = validate_spot_record(_record(**overrides))
    assert not result.valid
    assert result.record["place_id"] == overrides.get("place_id", "jeju-001")


def test_filter_valid_drops_rejected_records(caplog) -> None:
    rows = [_record(), _record(place_id="jeju-002", latitude=None), _record(place_id="jeju-003")]
    with caplog.at_level("WARNING"):
        kept = filter_valid(rows, validate_spot_record)
    assert [r["place_id"] for r in kept] == ["jeju-001", "jeju-003"]
    assert "1/3 catalog records rejected" in caplog.text


def test_filter_valid_uses_converter() -> None:
    class Row:
        def __init__(self, pid: str, lat):
            self.pid, self.lat = pid, lat

    rows = [Row("a", 33.4), Row("b", None)]
    kept = filter_valid(
        rows,
        validate_spot_record,
        to_dict=lambda r: {"place_id": r.pid, "name": r.pid, "latitude": r.lat, "longitude": 126.5},
    )
    assert [r.pid for r in kept] == ["a"]
