"""
db/connection.py
-----------------
Lazily-opened psycopg2 pool backing PostgresSpotCatalog (CATALOG_SOURCE=postgres).

Spot catalog reads never write, so every borrowed connection runs in a
read-only session and whatever transaction it opened is rolled back before
it goes back to the pool.

Connection settings come from the POSTGRES_* values in tripline/config.py.
"""

from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Iterator

import psycopg2.extensions
import psycopg2.pool

import tripline.config as config

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_pool: psycopg2.pool.ThreadedConnectionPool | None = None


def _dsn_kwargs() -> dict:
    return {
        "host": config.POSTGRES_HOST,
        "port": config.POSTGRES_PORT,
        "dbname": config.POSTGRES_DB,
        "user": config.POSTGRES_USER,
        "password": config.POSTGRES_PASSWORD,
        "connect_timeout": config.POSTGRES_CONNECT_TIMEOUT,
        "application_name": "tripline",
    }


def get_pool() -> psycopg2.pool.ThreadedConnectionPool:
    """Return the process pool, opening it on first use or after close_pool()."""
    global _pool
    with _lock:
        if _pool is None or _pool.closed:
            logger.info(
                "Opening catalog pool %s@%s:%s/%s (max %d)",
                config.POSTGRES_USER, config.POSTGRES_HOST, config.POSTGRES_PORT,
                config.POSTGRES_DB, config.POSTGRES_MAX_CONN,
            )
            _pool = psycopg2.pool.ThreadedConnectionPool(
                config.POSTGRES_MIN_CONN, config.POSTGRES_MAX_CONN, **_dsn_kwargs()
            )
        return _pool


@contextmanager
def get_conn() -> Iterator[psycopg2.extensions.connection]:
    """Yield a read-only connection; it is rolled back and returned on exit."""
    pool = get_pool()
    conn = pool.getconn()
    try:
        conn.set_session(readonly=True)
        yield conn
    finally:
        if not conn.closed:
            conn.rollback()
        pool.putconn(conn)


def close_pool() -> None:
    global _pool
    with _lock:
        if _pool is not None and not _pool.closed:
            _pool.closeall()
            logger.info("Catalog pool closed")
        _pool = None
