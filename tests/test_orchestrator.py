from __future__ import annotations

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from conftest import (
    AIRPORT,
    SEOGWIPO,
    FailingDistanceOracle,
    line_spots,
    make_spot,
)
from tripline.errors import ExternalServiceError, InvalidRequestError, ItineraryGenerationError
from tripline.modules.observability.logger import StructuredLogger
from tripline.modules.planning.itinerary_orchestrator import (
    ItineraryOrchestrator,
    generate_itinerary,
    route_waypoints,
    summarize,
)
from tripline.modules.tool_usage.catalog_tool import InMemorySpotCatalog
from tripline.modules.tool_usage.distance_tool import HaversineDistanceTool, StraightLineRouteTool
from tripline.modules.tool_usage.google_maps_tool import GoogleDistanceMatrixTool
from tripline.modules.tool_usage.relevance_tool import KeywordRelevanceScorer
from tripline.modules.tool_usage.services import RetryPolicy, RouteOracle
from tripline.schemas.itinerary import SpotLocation
from tripline.schemas.planner import FailurePolicy, PlannerParameters
from tripline.schemas.request import AccommodationByDate, ItineraryRequest

HOTEL = SpotLocation("서귀포 호텔", SEOGWIPO.latitude, SEOGWIPO.longitude)


class FailingRouteOracle(RouteOracle):
    name = "fake_routes"

    def stitch_route(self, waypoints):
        raise ExternalServiceError(self.name, "directions down")


def _orchestrator(logger, distance=None, routes=None, policy=FailurePolicy.ABORT) -> ItineraryOrchestrator:
    return ItineraryOrchestrator(
        relevance_scorer=KeywordRelevanceScorer(),
        distance_oracle=distance or HaversineDistanceTool(),
        route_oracle=routes or StraightLineRouteTool(),
        params=PlannerParameters(failure_policy=policy),
        structured_logger=logger,
    )


def _three_day_request() -> ItineraryRequest:
    return ItineraryRequest(
        start_date=date(2025, 5, 1),
        end_date=date(2025, 5, 3),
        daily_travel_hours=8,
        start_point=AIRPORT,
        end_point=AIRPORT,
        accommodations=[
            AccommodationByDate(date(2025, 5, 1), HOTEL),
            AccommodationByDate(date(2025, 5, 2), HOTEL),
        ],
    )


def test_multi_day_itinerary_has_no_repeated_spots(quiet_logger) -> None:
    catalog = InMemorySpotCatalog(line_spots())
    it = _orchestrator(quiet_logger).generate(_three_day_request(), catalog)

    assert len(it.plans) == 3
    assert len(it.visited_ids) == len(set(it.visited_ids))
    for plan in it.plans:
        assert plan.total_minutes <= 8 * 60


def test_day_endpoints_follow_accommodations(quiet_logger) -> None:
    it = _orchestrator(quiet_logger).generate(_three_day_request(), InMemorySpotCatalog(line_spots()))
    d1, d2, d3 = it.plans
    assert (d1.start_location, d1.end_location) == (AIRPORT, HOTEL)
    assert (d2.start_location, d2.end_location) == (HOTEL, HOTEL)
    assert (d3.start_location, d3.end_location) == (HOTEL, AIRPORT)
    assert [p.date for p in it.plans] == [date(2025, 5, 1), date(2025, 5, 2), date(2025, 5, 3)]


def test_missing_accommodation_falls_back_to_trip_endpoints(quiet_logger) -> None:
    request = _three_day_request()
    request.accommodations = []
    request.end_point = SEOGWIPO
    it = _orchestrator(quiet_logger).generate(request, InMemorySpotCatalog([]))
    assert it.plans[0].end_location == SEOGWIPO
    assert it.plans[1].start_location == AIRPORT


def test_accommodation_matched_by_date_before_position() -> None:
    request = _three_day_request()
    other = SpotLocation("애월 숙소", 33.46, 126.31)
    request.accommodations = [
        AccommodationByDate(date(2025, 5, 2), other),
        AccommodationByDate(date(2025, 5, 1), HOTEL),
    ]
    assert request.accommodation_on(date(2025, 5, 1), 0) == HOTEL
    assert request.accommodation_on(date(2025, 5, 2), 1) == other
    assert request.accommodation_on(date(2025, 5, 3), 1) is None


def test_accommodation_position_used_when_dates_are_outside_trip() -> None:
    request = _three_day_request()
    request.accommodations = [AccommodationByDate(date(2024, 1, 1), HOTEL)]
    assert request.accommodation_on(date(2025, 5, 1), 0) == HOTEL
    assert request.accommodation_on(date(2025, 5, 2), 1) is None


def test_night_without_booking_does_not_borrow_another_hotel(quiet_logger) -> None:
    request = _three_day_request()
    other = SpotLocation("애월 숙소", 33.46, 126.31)
    request.accommodations = [
        AccommodationByDate(date(2025, 5, 1), HOTEL),
        AccommodationByDate(date(2025, 5, 3), other),
    ]
    it = _orchestrator(quiet_logger).generate(request, InMemorySpotCatalog([]))
    assert it.plans[1].start_location == HOTEL
    assert it.plans[1].end_location == AIRPORT
    assert it.plans[2].start_location == AIRPORT


def test_single_day_without_candidates_is_not_an_error(quiet_logger, one_day_request) -> None:
    catalog = InMemorySpotCatalog([make_spot("seongsan", 33.4580, 126.9420)])
    it = _orchestrator(quiet_logger).generate(one_day_request, catalog)

    (plan,) = it.plans
    assert plan.spots == []
    assert plan.total_minutes == 0
    assert not plan.failed
    assert it.summary.total_spots == 0
    assert [(r.origin, r.destination) for r in it.routes] == [(AIRPORT, SEOGWIPO)]


def test_invalid_request_is_rejected_before_planning(quiet_logger) -> None:
    request = _three_day_request()
    request.end_date = date(2025, 4, 1)
    request.corridor_radius_km = -3
    catalog = MagicMock(spec=InMemorySpotCatalog)

    with pytest.raises(InvalidRequestError) as excinfo:
        _orchestrator(quiet_logger).generate(request, catalog)
    assert len(excinfo.value.errors) == 2
    catalog.list_spots_with_coordinates.assert_not_called()


def test_abort_policy_raises_generation_error(quiet_logger, one_day_request) -> None:
    orch = _orchestrator(quiet_logger, distance=FailingDistanceOracle())
    with pytest.raises(ItineraryGenerationError) as excinfo:
        orch.generate(one_day_request, InMemorySpotCatalog(line_spots()))
    err = excinfo.value
    assert err.day_number == 1
    assert err.service == "fake_distance"
    assert str(err).startswith("ERROR_ITINERARY_GENERATION")
    assert isinstance(err.__cause__, ExternalServiceError)


def test_best_effort_policy_leaves_failed_days_empty(quiet_logger) -> None:
    orch = _orchestrator(quiet_logger, distance=FailingDistanceOracle(), policy=FailurePolicy.BEST_EFFORT)
    it = orch.generate(_three_day_request(), InMemorySpotCatalog(line_spots()))

    assert [p.failed for p in it.plans] == [True, True, True]
    assert all(p.spots == [] for p in it.plans)
    assert len(it.warnings) == 3
    assert "fake_distance" in it.warnings[0]
    assert len(it.routes) == 3      # start → hotel → hotel → airport


def _matrix_without_durations() -> tuple[GoogleDistanceMatrixTool, MagicMock]:
    def reply(url, params, timeout):
        count = len(params["destinations"].split("|"))
        resp = MagicMock(status_code=200, ok=True)
        resp.json.return_value = {"status": "OK", "rows": [{"elements": [{"status": "OK"}] * count}]}
        return resp

    session = MagicMock()
    session.get.side_effect = reply
    tool = GoogleDistanceMatrixTool(
        api_key="k", session=session, retry_policy=RetryPolicy(retries=0, base_delay=0)
    )
    return tool, session


def test_malformed_matrix_reply_leaves_day_empty_under_best_effort(quiet_logger, one_day_request) -> None:
    matrix, session = _matrix_without_durations()
    orch = _orchestrator(quiet_logger, distance=matrix, policy=FailurePolicy.BEST_EFFORT)

    it = orch.generate(one_day_request, InMemorySpotCatalog(line_spots()))

    assert session.get.called
    assert it.plans[0].failed
    assert it.plans[0].spots == []
    assert "google_distance_matrix" in it.warnings[0]


def test_malformed_matrix_reply_aborts_with_day_number(quiet_logger, one_day_request) -> None:
    matrix, _ = _matrix_without_durations()
    with pytest.raises(ItineraryGenerationError) as excinfo:
        _orchestrator(quiet_logger, distance=matrix).generate(
            one_day_request, InMemorySpotCatalog(line_spots())
        )
    assert excinfo.value.day_number == 1
    assert excinfo.value.service == "google_distance_matrix"


def test_route_failure_under_abort_names_no_day(quiet_logger, one_day_request) -> None:
    orch = _orchestrator(quiet_logger, routes=FailingRouteOracle())
    with pytest.raises(ItineraryGenerationError) as excinfo:
        orch.generate(one_day_request, InMemorySpotCatalog(line_spots()))
    assert excinfo.value.day_number is None
    assert excinfo.value.service == "fake_routes"


def test_route_failure_under_best_effort_keeps_plans(quiet_logger, one_day_request) -> None:
    orch = _orchestrator(quiet_logger, routes=FailingRouteOracle(), policy=FailurePolicy.BEST_EFFORT)
    it = orch.generate(one_day_request, InMemorySpotCatalog(line_spots()))
    assert it.routes == []
    assert it.plans[0].spots
    assert any("Routes unavailable" in w for w in it.warnings)


def test_routes_cover_every_stop(quiet_logger) -> None:
    it = _orchestrator(quiet_logger).generate(_three_day_request(), InMemorySpotCatalog(line_spots()))
    waypoints = route_waypoints(it.plans)
    assert len(it.routes) == len(waypoints) - 1
    assert it.routes[0].origin == AIRPORT
    assert it.routes[-1].destination == AIRPORT


def test_route_waypoints_order(quiet_logger, one_day_request) -> None:
    it = _orchestrator(quiet_logger).generate(one_day_request, InMemorySpotCatalog(line_spots()))
    plan = it.plans[0]
    waypoints = route_waypoints(it.plans)
    assert waypoints[0] == AIRPORT
    assert waypoints[-1] == SEOGWIPO
    assert [w.place_id for w in waypoints[1:-1]] == plan.spot_ids


def test_summary_totals_and_regions(quiet_logger) -> None:
    it = _orchestrator(quiet_logger).generate(_three_day_request(), InMemorySpotCatalog(line_spots()))
    s = it.summary
    assert s.total_days == 3
    assert s.total_spots == sum(len(p.spots) for p in it.plans)
    assert s.total_travel_time_minutes == pytest.approx(sum(p.total_travel_time_minutes for p in it.plans))
    assert s.total_activity_time_minutes == pytest.approx(sum(p.total_activity_time_minutes for p in it.plans))
    assert len(s.coverage_regions) == len(set(s.coverage_regions))
    assert summarize([]).total_days == 0


def test_duplicate_catalog_ids_are_dropped(quiet_logger, one_day_request) -> None:
    spots = line_spots(3)
    catalog = InMemorySpotCatalog(spots + [spots[0]])
    it = _orchestrator(quiet_logger).generate(one_day_request, catalog)
    assert len(it.visited_ids) == len(set(it.visited_ids))


def test_structured_log_records_each_day(tmp_path, one_day_request) -> None:
    slog = StructuredLogger(logs_dir=tmp_path, enabled=True)
    it = _orchestrator(slog).generate(one_day_request, InMemorySpotCatalog(line_spots()))
    slog.close()

    lines = (tmp_path / f"{it.trip_id}.jsonl").read_text(encoding="utf-8").splitlines()
    events = [json.loads(line)["event_type"] for line in lines]
    assert events.count("DAY_PLANNED") == 1
    assert "ITINERARY_COMPLETE" in events
    assert "PERFORMANCE" in events


def test_generate_itinerary_wrapper(quiet_logger, one_day_request) -> None:
    it = generate_itinerary(
        one_day_request,
        InMemorySpotCatalog(line_spots()),
        relevance_scorer=KeywordRelevanceScorer(),
        distance_oracle=HaversineDistanceTool(),
        route_oracle=StraightLineRouteTool(),
        structured_logger=quiet_logger,
    )
    assert it.trip_id.startswith("trip_")
    assert it.generated_at
    assert it.summary.total_days == 1


def test_trip_log_is_closed_after_generation(tmp_path, one_day_request) -> None:
    slog = StructuredLogger(logs_dir=tmp_path, enabled=True)
    it = _orchestrator(slog).generate(one_day_request, InMemorySpotCatalog(line_spots()))
    assert slog.open_trips == []
    assert slog.path_for(it.trip_id).exists()


def test_trip_log_is_closed_when_generation_aborts(tmp_path, one_day_request) -> None:
    slog = StructuredLogger(logs_dir=tmp_path, enabled=True)
    orch = _orchestrator(slog, distance=FailingDistanceOracle())
    with pytest.raises(ItineraryGenerationError):
        orch.generate(one_day_request, InMemorySpotCatalog(line_spots()))
    assert slog.open_trips == []
    (log_file,) = tmp_path.glob("trip_*.jsonl")
    assert "DAY_FAILED" in log_file.read_text(encoding="utf-8")
