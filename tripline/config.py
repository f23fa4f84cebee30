"""
config.py
---------
Central configuration for tripline.
All secrets are loaded from environment variables.

Planner constants here are the defaults for PlannerParameters; tests and
callers substitute their own parameters instead of patching this module.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the working directory (if it exists). Won't override vars
# already set in the shell.
_env_path = Path.cwd() / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


# ── Google Maps (Distance Matrix + Directions) ───────────────────────────────
# Enable: Distance Matrix API + Directions API
# Set env: GOOGLE_MAPS_API_KEY=AIza...
GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
GOOGLE_MAPS_BASE_URL: str = os.getenv("GOOGLE_MAPS_BASE_URL", "https://maps.googleapis.com/maps/api")
GOOGLE_MAPS_TIMEOUT: int = int(os.getenv("GOOGLE_MAPS_TIMEOUT", "15"))     # seconds
GOOGLE_MAPS_LANGUAGE: str = os.getenv("GOOGLE_MAPS_LANGUAGE", "ko")
GOOGLE_MAPS_TRAVEL_MODE: str = os.getenv("GOOGLE_MAPS_TRAVEL_MODE", "driving")  # rental car

# ── LLM (relevance scoring) ──────────────────────────────────────────────────
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
LLM_MODEL_NAME: str = os.getenv("LLM_MODEL_NAME", "gemini-2.5-flash")
LLM_TIMEOUT_SECONDS: int = int(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# Per-service stub flags. Stubs make no external calls:
#   relevance → KeywordRelevanceScorer
#   distance  → HaversineDistanceTool
#   routes    → StraightLineRouteTool
USE_STUB_RELEVANCE: bool = _env_bool("USE_STUB_RELEVANCE", "true")
USE_STUB_DISTANCE:  bool = _env_bool("USE_STUB_DISTANCE",  "true")
USE_STUB_ROUTES:    bool = _env_bool("USE_STUB_ROUTES",    "true")

# ── HTTP retry policy (shared by Google Maps + Gemini adapters) ───────────────
HTTP_RETRIES: int       = int(os.getenv("HTTP_RETRIES", "2"))
HTTP_RETRY_DELAY: float = float(os.getenv("HTTP_RETRY_DELAY", "0.5"))     # seconds, linear backoff

# ── Planner defaults (all time values in minutes) ─────────────────────────────
DEFAULT_CORRIDOR_RADIUS_KM: float = float(os.getenv("DEFAULT_CORRIDOR_RADIUS_KM", "12.0"))
MAX_TRAVEL_MINUTES: float         = float(os.getenv("MAX_TRAVEL_MINUTES", "40"))   # per-hop ceiling
MIN_DIRECTION_SCORE: float        = float(os.getenv("MIN_DIRECTION_SCORE", "20"))  # reverse-direction cut
DEFAULT_STAY_MINUTES: int         = int(os.getenv("DEFAULT_STAY_MINUTES", "60"))
DAY_START_HOUR: int               = int(os.getenv("DAY_START_HOUR", "9"))          # 09:00

# Offline travel-time estimate: haversine × detour factor at driving speed
FALLBACK_DRIVING_SPEED_KMH: float = float(os.getenv("FALLBACK_DRIVING_SPEED_KMH", "40.0"))
ROAD_DETOUR_FACTOR: float         = float(os.getenv("ROAD_DETOUR_FACTOR", "1.3"))

# "abort" | "best_effort": what to do when an external service fails mid-trip
FAILURE_POLICY: str = os.getenv("FAILURE_POLICY", "abort")

# ── Spot catalog ──────────────────────────────────────────────────────────────
# "json" reads CATALOG_JSON_PATH; "postgres" reads the spots table
CATALOG_SOURCE: str    = os.getenv("CATALOG_SOURCE", "json")
CATALOG_JSON_PATH: str = os.getenv("CATALOG_JSON_PATH", "data/jeju_spots.json")

# ── PostgreSQL (CATALOG_SOURCE=postgres) ──────────────────────────────────────
POSTGRES_HOST: str     = os.getenv("POSTGRES_HOST",     "localhost")
POSTGRES_PORT: int     = int(os.getenv("POSTGRES_PORT", "5432"))
POSTGRES_DB: str       = os.getenv("POSTGRES_DB",       "tripline")
POSTGRES_USER: str     = os.getenv("POSTGRES_USER",     "tripline_user")
POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "tripline_pass")
POSTGRES_MIN_CONN: int = int(os.getenv("POSTGRES_MIN_CONN", "1"))
POSTGRES_MAX_CONN: int = int(os.getenv("POSTGRES_MAX_CONN", "5"))
POSTGRES_CONNECT_TIMEOUT: int = int(os.getenv("POSTGRES_CONNECT_TIMEOUT", "5"))

# ── Observability ────────────────────────────────────────────────────────────
LOGS_DIR: str                  = os.getenv("LOGS_DIR", "logs")
STRUCTURED_LOGS_ENABLED: bool  = _env_bool("STRUCTURED_LOGS_ENABLED", "true")
LOG_LEVEL: str                 = os.getenv("LOG_LEVEL", "INFO")

# ── HTTP API ─────────────────────────────────────────────────────────────────
# Comma-separated list; "*" allows any origin
CORS_ALLOW_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
]
