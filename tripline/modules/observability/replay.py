"""
modules/observability/replay.py
---------------------------------
Read back a trip's structured log and print it as a timeline.

Usage:
    python -m tripline.main --replay <trip_id>

Reads <LOGS_DIR>/<trip_id>.jsonl and prints DAY_PLANNED, DAY_FAILED,
ITINERARY_COMPLETE and PERFORMANCE events in order. Nothing is re-planned;
no external service is called.
"""

from __future__ import annotations

import json
from pathlib import Path

import tripline.config as config

_REPLAY_EVENT_TYPES = frozenset({"DAY_PLANNED", "DAY_FAILED", "ITINERARY_COMPLETE", "PERFORMANCE"})


def load_trip_log(trip_id: str, *, logs_dir: Path | str | None = None) -> list[dict]:
    base = Path(logs_dir) if logs_dir else Path(config.LOGS_DIR)
    log_path = base / f"{trip_id}.jsonl"
    if not log_path.exists():
        raise FileNotFoundError(f"Log file not found: {log_path}")

    records: list[dict] = []
    with open(log_path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if line:
                records.append(json.loads(line))
    return records


def replay_trip(trip_id: str, *, logs_dir: Path | str | None = None) -> list[dict]:
    """Print the recorded timeline; returns the records that were shown."""
    records = [
        r for r in load_trip_log(trip_id, logs_dir=logs_dir)
        if r.get("event_type") in _REPLAY_EVENT_TYPES
    ]
    if not records:
        print(f"  [replay] No planner events for trip {trip_id}.")
        return records

    print(f"\n{'=' * 60}")
    print(f"  REPLAY — trip {trip_id}  ({len(records)} event(s))")
    print(f"{'=' * 60}\n")

    for step, rec in enumerate(records, start=1):
        ts = rec.get("timestamp", "")
        event_type = rec["event_type"]
        payload = rec.get("payload", {})

        if event_type == "DAY_PLANNED":
            print(f"  [{step:>4}] {ts}  DAY_PLANNED        "
                  f"day={payload.get('day')}  spots={len(payload.get('spot_ids', []))}  "
                  f"travel={payload.get('total_travel_time_minutes')}m  "
                  f"activity={payload.get('total_activity_time_minutes')}m")
        elif event_type == "DAY_FAILED":
            print(f"  [{step:>4}] {ts}  DAY_FAILED         "
                  f"day={payload.get('day')}  service={payload.get('service')}  "
                  f"policy={payload.get('policy')}")
        elif event_type == "ITINERARY_COMPLETE":
            print(f"  [{step:>4}] {ts}  ITINERARY_COMPLETE "
                  f"days={payload.get('total_days')}  spots={payload.get('total_spots')}  "
                  f"warnings={payload.get('warnings')}")
        else:
            print(f"  [{step:>4}] {ts}  PERFORMANCE        "
                  f"{payload.get('component')}  {payload.get('duration_ms')} ms")

    print(f"\n{'=' * 60}\n")
    return records
