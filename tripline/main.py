"""
main.py
--------
Command-line entry point.

Run:
  python -m tripline.main --request data/sample_request.json
  python -m tripline.main --catalog data/jeju_spots.json --request req.json --output out.json
  python -m tripline.main --replay <trip_id>

The request file holds the same JSON body accepted by
POST /v1/itinerary/generate. External adapters are chosen by the
USE_STUB_* flags in config.py (stubs by default, so no API keys are needed).
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

import tripline.config as config
from tripline.api.routes.itinerary import GenerateRequest
from tripline.errors import InvalidRequestError, ItineraryGenerationError
from tripline.modules.observability.replay import replay_trip
from tripline.modules.planning.itinerary_orchestrator import ItineraryOrchestrator
from tripline.modules.tool_usage.catalog_tool import (
    InMemorySpotCatalog,
    JsonFileSpotCatalog,
    default_catalog,
    spots_from_records,
)
from tripline.schemas.itinerary import TravelItinerary
from tripline.schemas.planner import FailurePolicy, PlannerParameters
from tripline.schemas.serialization import serialize_itinerary


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tripline",
        description="Generate a corridor-based multi-day Jeju itinerary.",
    )
    parser.add_argument("--request", type=Path, help="JSON trip request file")
    parser.add_argument("--catalog", type=Path, help="JSON spot catalog (default: CATALOG_SOURCE)")
    parser.add_argument("--output", type=Path, help="write itinerary JSON here instead of stdout")
    parser.add_argument(
        "--failure-policy",
        choices=[p.value for p in FailurePolicy],
        default=config.FAILURE_POLICY,
        help="what to do when an external service fails mid-trip",
    )
    parser.add_argument("--replay", metavar="TRIP_ID", help="print a recorded trip log and exit")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser


def _print_summary(it: TravelItinerary) -> None:
    print(f"\n{'=' * 60}")
    print(f"  ITINERARY {it.trip_id}")
    print(f"{'=' * 60}")
    for plan in it.plans:
        flag = "  [FAILED]" if plan.failed else ""
        print(f"\n  Day {plan.day_number} ({plan.date}): "
              f"{plan.start_location.name} → {plan.end_location.name}{flag}")
        for stop in plan.spots:
            print(f"    {stop.sequence}. {stop.arrival_time:%H:%M}–{stop.departure_time:%H:%M}  "
                  f"{stop.spot.name}  (+{stop.travel_time_minutes:g} min drive)")
        for note in plan.notes:
            print(f"    · {note}")
    s = it.summary
    print(f"\n  {s.total_spots} spot(s) over {s.total_days} day(s); "
          f"travel {s.total_travel_time_minutes:g} min, activity {s.total_activity_time_minutes:g} min")
    if s.coverage_regions:
        print(f"  Regions: {', '.join(s.coverage_regions)}")
    for warning in it.warnings:
        print(f"  ⚠ {warning}")
    print(f"{'=' * 60}\n")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.replay:
        replay_trip(args.replay)
        return 0

    if args.request is None:
        print("error: --request is required (or use --replay)", file=sys.stderr)
        return 2

    body = GenerateRequest.model_validate(json.loads(args.request.read_text(encoding="utf-8")))
    if body.spots is not None:
        catalog = InMemorySpotCatalog(spots_from_records(body.spots))
    elif args.catalog is not None:
        catalog = JsonFileSpotCatalog(args.catalog)
    else:
        catalog = default_catalog()

    orchestrator = ItineraryOrchestrator(
        params=PlannerParameters(failure_policy=FailurePolicy(args.failure_policy)),
    )
    try:
        itinerary = orchestrator.generate(body.to_request(), catalog)
    except InvalidRequestError as exc:
        for err in exc.errors:
            print(f"invalid request: {err}", file=sys.stderr)
        return 2
    except ItineraryGenerationError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    payload = json.dumps(serialize_itinerary(itinerary), ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        _print_summary(itinerary)
        print(f"  Written to {args.output}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
