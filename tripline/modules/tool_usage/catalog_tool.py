"""
modules/tool_usage/catalog_tool.py
------------------------------------
SpotCatalog implementations. The catalog is owned by another service; every
reader here is read-only and returns spots in a stable order so candidate
tie-breaking is deterministic.

  InMemorySpotCatalog   wraps a list already in memory (tests, API callers)
  JsonFileSpotCatalog   loads a JSON list of spot records from disk
  PostgresSpotCatalog   queries the spots table via db.connection.get_conn

Record shape accepted by spot_from_record():
    {
      "place_id": "...",
      "place_name" | "name": "...",
      "categories": ["관광지", "오름"],
      "location": {"latitude": 33.4, "longitude": 126.5}   # or flat latitude/longitude
      "average_duration_minutes": 90,
      "public_info": {"operating_hours": "09:00-18:00"}    # or flat operating_hours
      "is_closed": false,
      "region": "애월읍", "address": "...",
      "tags": [...], "interest_tags": [...], "attributes": {...}
    }
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any

import tripline.config as config
from tripline.modules.tool_usage.services import SpotCatalog
from tripline.modules.validation.request_validator import filter_valid, validate_spot_record
from tripline.schemas.itinerary import CatalogSpot

logger = logging.getLogger(__name__)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def normalize_record(record: dict[str, Any]) -> dict[str, Any]:
    """Flatten nested location / public_info blocks into one flat dict."""
    flat = dict(record)
    loc = record.get("location") or {}
    if isinstance(loc, dict):
        if flat.get("latitude") is None:
            flat["latitude"] = loc.get("latitude", loc.get("lat"))
        if flat.get("longitude") is None:
            flat["longitude"] = loc.get("longitude", loc.get("lng"))
    if not flat.get("name"):
        flat["name"] = record.get("place_name", "")
    public_info = record.get("public_info") or {}
    if not flat.get("operating_hours") and isinstance(public_info, dict):
        flat["operating_hours"] = public_info.get("operating_hours")
    return flat


def spot_from_record(record: dict[str, Any]) -> CatalogSpot:
    """Build a CatalogSpot from a (normalized or raw) catalog record."""
    flat = normalize_record(record)
    lat = flat.get("latitude")
    lng = flat.get("longitude")
    duration = flat.get("average_duration_minutes")

    attributes = dict(flat.get("attributes") or {})
    tags = _as_tuple(flat.get("tags"))
    interest_tags = _as_tuple(flat.get("interest_tags"))
    if tags:
        attributes.setdefault("tags", list(tags))
    if interest_tags:
        attributes.setdefault("interest_tags", list(interest_tags))

    return CatalogSpot(
        place_id=str(flat["place_id"]),
        name=str(flat.get("name") or ""),
        categories=_as_tuple(flat.get("categories")),
        latitude=float(lat) if lat is not None else None,
        longitude=float(lng) if lng is not None else None,
        average_duration_minutes=int(duration) if duration is not None else None,
        operating_hours=flat.get("operating_hours"),
        is_closed=bool(flat.get("is_closed", False)),
        region=flat.get("region"),
        address=flat.get("address"),
        tags=tags,
        attributes=attributes,
    )


def spots_from_records(records: list[dict[str, Any]]) -> list[CatalogSpot]:
    """Validate raw rows (rejects logged as warnings) and convert the rest."""
    flat = [normalize_record(r) for r in records]
    return [spot_from_record(r) for r in filter_valid(flat, validate_spot_record)]


# ─────────────────────────────────────────────────────────────────────────────

class InMemorySpotCatalog(SpotCatalog):
    name = "memory_catalog"

    def __init__(self, spots: list[CatalogSpot]) -> None:
        self._spots = list(spots)

    def list_spots_with_coordinates(self) -> list[CatalogSpot]:
        return [s for s in self._spots if s.has_coordinates]


class JsonFileSpotCatalog(SpotCatalog):
    """Reads a JSON file holding a list of records (or {"spots": [...]})."""

    name = "json_catalog"

    def __init__(self, path: str | Path = config.CATALOG_JSON_PATH) -> None:
        self.path = Path(path)

    def list_spots_with_coordinates(self) -> list[CatalogSpot]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise RuntimeError(f"ERROR_CATALOG_NOT_FOUND: {self.path}") from exc
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"ERROR_CATALOG_INVALID_JSON: {self.path}: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("spots", [])
        if not isinstance(data, list):
            raise RuntimeError(f"ERROR_CATALOG_INVALID_JSON: {self.path}: expected a list of spots")

        spots = spots_from_records(data)
        logger.info("Loaded %d spot(s) from %s", len(spots), self.path)
        return spots


class PostgresSpotCatalog(SpotCatalog):
    """Read-only view over the catalog service's spots table."""

    name = "postgres_catalog"

    def list_spots_with_coordinates(self) -> list[CatalogSpot]:
        from tripline.db.connection import get_conn
        from tripline.db.repositories import spot_repo

        with get_conn() as conn:
            rows = spot_repo.list_spots_with_coordinates(conn)
        spots = spots_from_records(rows)
        logger.info("Loaded %d spot(s) from PostgreSQL", len(spots))
        return spots


def default_catalog() -> SpotCatalog:
    """Catalog selected by CATALOG_SOURCE."""
    if config.CATALOG_SOURCE == "postgres":
        return PostgresSpotCatalog()
    return JsonFileSpotCatalog(config.CATALOG_JSON_PATH)
