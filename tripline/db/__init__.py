"""
db/
----
Read-only access to the spot catalog's PostgreSQL store
(used when CATALOG_SOURCE=postgres).

    from tripline.db import get_conn
    from tripline.db.repositories import spot_repo
"""

from tripline.db.connection import close_pool, get_conn

__all__ = ["get_conn", "close_pool"]
