"""
db/repositories/spot_repo.py
------------------------------
Read-only queries against the ``spots`` table owned by the catalog service.

Expected columns:
    place_id TEXT, place_name TEXT, categories TEXT[], latitude DOUBLE,
    longitude DOUBLE, average_duration_minutes INT, operating_hours TEXT,
    is_closed BOOL, region TEXT, address TEXT, tags TEXT[], attributes JSONB

All functions accept a psycopg2 connection object.
"""

from __future__ import annotations


def list_spots_with_coordinates(conn) -> list[dict]:
    """
    Return every published spot that has a location, in catalog order
    (place_id ascending) so tie-breaking downstream is deterministic.
    """
    sql = """
        SELECT place_id, place_name AS name, categories, latitude, longitude,
               average_duration_minutes, operating_hours, is_closed,
               region, address, tags, attributes
        FROM spots
        WHERE latitude IS NOT NULL
          AND longitude IS NOT NULL
          AND status = 'published'
        ORDER BY place_id
    """
    with conn.cursor() as cur:
        cur.execute(sql)
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, row)) for row in cur.fetchall()]
