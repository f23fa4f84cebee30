from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from conftest import (
    FixedScorer,
    TableDistanceOracle,
    line_spots,
    make_spot,
)
from tripline.errors import CandidateScoreError
from tripline.modules.planning.corridor import build_corridor
from tripline.modules.planning.day_planner import DayPlanner
from tripline.modules.planning.spot_evaluator import SpotEvaluator
from tripline.modules.tool_usage.distance_tool import HaversineDistanceTool
from tripline.modules.tool_usage.relevance_tool import KeywordRelevanceScorer
from tripline.schemas.itinerary import CandidateSpot
from tripline.schemas.request import FixedSpot

DAY = date(2025, 5, 1)


def _planner(scorer=None, oracle=None) -> DayPlanner:
    evaluator = SpotEvaluator(oracle or HaversineDistanceTool())
    return DayPlanner(scorer or KeywordRelevanceScorer(), evaluator)


def _plan(planner: DayPlanner, spots, request, excluded=frozenset()):
    corridor = build_corridor(request.start_point, request.end_point, request.corridor_radius_km)
    return planner.plan_day(1, DAY, request.start_point, request.end_point, corridor, spots, request, excluded)


def test_empty_corridor_yields_empty_day(one_day_request) -> None:
    seongsan = make_spot("seongsan", 33.4580, 126.9420)
    scorer = FixedScorer()
    plan = _plan(_planner(scorer), [seongsan, make_spot("nowhere", None, None)], one_day_request)

    assert plan.spots == []
    assert plan.total_travel_time_minutes == 0
    assert plan.total_activity_time_minutes == 0
    assert plan.notes and "No catalog spots" in plan.notes[0]
    assert scorer.calls == 0


def test_day_fills_within_budget(one_day_request) -> None:
    plan = _plan(_planner(), line_spots(), one_day_request)
    budget = one_day_request.daily_budget_minutes

    assert len(plan.spots) >= 2
    used = 0.0
    for stop in plan.spots:
        used += stop.travel_time_minutes + stop.duration_minutes
        assert used <= budget
    assert plan.total_minutes == pytest.approx(used)


def test_tight_budget_stops_before_overrun(one_day_request) -> None:
    one_day_request.daily_travel_hours = 2
    plan = _plan(_planner(), line_spots(), one_day_request)

    assert 1 <= len(plan.spots)
    assert plan.total_minutes <= 120
    assert any("budget" in note for note in plan.notes)


def test_stops_are_timed_and_linked(one_day_request) -> None:
    plan = _plan(_planner(), line_spots(), one_day_request)
    stops = plan.spots

    start = datetime.combine(DAY, time(9, 0))
    assert stops[0].arrival_time == start + timedelta(minutes=stops[0].travel_time_minutes)
    for prev, nxt in zip(stops, stops[1:]):
        assert prev.travel_time_to_next == nxt.travel_time_minutes
        assert nxt.arrival_time == prev.departure_time + timedelta(minutes=nxt.travel_time_minutes)
    assert stops[-1].travel_time_to_next is None
    assert [s.sequence for s in stops] == list(range(1, len(stops) + 1))


def test_stops_move_toward_destination(one_day_request) -> None:
    plan = _plan(_planner(), line_spots(), one_day_request)
    lats = [s.spot.latitude for s in plan.spots]
    # Seogwipo is south of the airport
    assert lats == sorted(lats, reverse=True)


def test_no_spot_is_visited_twice(one_day_request) -> None:
    plan = _plan(_planner(), line_spots(), one_day_request)
    assert len(plan.spot_ids) == len(set(plan.spot_ids))


def test_excluded_ids_never_scheduled(one_day_request) -> None:
    spots = line_spots()
    excluded = frozenset({"line-1", "line-2", "line-3"})
    plan = _plan(_planner(), spots, one_day_request, excluded)
    assert not excluded & set(plan.spot_ids)


def test_default_stay_applies_without_duration(one_day_request) -> None:
    spots = [make_spot("short", 33.45, 126.507, duration=None)]
    plan = _plan(_planner(oracle=TableDistanceOracle(default=5)), spots, one_day_request)
    assert plan.spots[0].duration_minutes == 60


def test_relevance_is_scored_once_per_day(one_day_request) -> None:
    scorer = FixedScorer({"line-1": 50.0})
    _plan(_planner(scorer), line_spots(), one_day_request)
    assert scorer.calls == 1


def test_candidate_relevance_cannot_be_assigned_twice() -> None:
    cand = CandidateSpot(spot=make_spot("x", 33.4, 126.5), distance_from_corridor_km=0.0)
    cand.assign_relevance(150)
    assert cand.relevance_score == 100.0
    with pytest.raises(CandidateScoreError):
        cand.assign_relevance(10)


def test_candidate_relevance_rejects_nan() -> None:
    cand = CandidateSpot(spot=make_spot("x", 33.4, 126.5), distance_from_corridor_km=0.0)
    with pytest.raises(CandidateScoreError):
        cand.assign_relevance(float("nan"))
    assert not cand.is_scored
    assert cand.relevance_score == 0.0


def test_mandatory_stop_is_noted(one_day_request) -> None:
    spots = line_spots()
    one_day_request.fixed_spots = [FixedSpot("line-2", "spot line-2")]
    plan = _plan(_planner(), spots, one_day_request)
    assert "line-2" in plan.spot_ids
    stop = next(s for s in plan.spots if s.spot.place_id == "line-2")
    assert stop.notes == "must-visit"
