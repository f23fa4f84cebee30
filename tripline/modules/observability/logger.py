"""
modules/observability/logger.py
-------------------------------
Per-trip planner event log. Each trip gets ``<LOGS_DIR>/<trip_id>.jsonl``
with one JSON object per line:

    {"timestamp": "...", "trip_id": "trip_3f2a...", "event_type": "DAY_PLANNED",
     "payload": {"day": 1, "spot_ids": [...]}}

Events written by ItineraryOrchestrator:
    PERFORMANCE          component timing (duration_ms)
    DAY_PLANNED          per-day spot ids and totals
    DAY_FAILED           best-effort day failure (service, error)
    ITINERARY_COMPLETE   summary counts

The orchestrator closes a trip's file when generation ends. Replay lives in
replay.py. STRUCTURED_LOGS_ENABLED=false turns every call into a no-op.
"""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO

import tripline.config as config


class StructuredLogger:
    """Append-only JSONL writer keyed by trip id; safe to share across threads."""

    def __init__(self, logs_dir: Path | str | None = None, enabled: bool | None = None) -> None:
        self.logs_dir = Path(logs_dir or config.LOGS_DIR)
        self.enabled = config.STRUCTURED_LOGS_ENABLED if enabled is None else enabled
        self._open_files: dict[str, TextIO] = {}
        self._guard = threading.Lock()

    def path_for(self, trip_id: str) -> Path:
        return self.logs_dir / f"{trip_id}.jsonl"

    def log(self, trip_id: str, event_type: str, payload: dict) -> None:
        if not self.enabled:
            return
        line = json.dumps(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "trip_id": trip_id,
                "event_type": event_type,
                "payload": payload,
            },
            ensure_ascii=False,
            default=str,
        )
        with self._guard:
            out = self._open_files.get(trip_id)
            if out is None:
                self.logs_dir.mkdir(parents=True, exist_ok=True)
                out = self.path_for(trip_id).open("a", encoding="utf-8")
                self._open_files[trip_id] = out
            out.write(line + "\n")
            out.flush()

    def close(self, trip_id: str | None = None) -> None:
        """Close one trip's file, or every open file when trip_id is None."""
        with self._guard:
            if trip_id is None:
                doomed = list(self._open_files)
            else:
                doomed = [trip_id] if trip_id in self._open_files else []
            for tid in doomed:
                self._open_files.pop(tid).close()

    @property
    def open_trips(self) -> list[str]:
        with self._guard:
            return sorted(self._open_files)
