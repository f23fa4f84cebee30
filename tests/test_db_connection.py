from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from tripline.db import connection


@pytest.fixture
def fake_pool(monkeypatch):
    pool = MagicMock()
    pool.closed = False
    conn = MagicMock()
    conn.closed = 0
    pool.getconn.return_value = conn
    factory = MagicMock(return_value=pool)
    monkeypatch.setattr(connection, "_pool", None)
    monkeypatch.setattr("psycopg2.pool.ThreadedConnectionPool", factory)
    monkeypatch.setattr("tripline.config.POSTGRES_DB", "jeju_catalog")
    return factory, pool, conn


def test_pool_is_opened_once_with_config_values(fake_pool) -> None:
    factory, pool, _ = fake_pool
    assert connection.get_pool() is pool
    assert connection.get_pool() is pool
    factory.assert_called_once()
    kwargs = factory.call_args.kwargs
    assert kwargs["dbname"] == "jeju_catalog"
    assert kwargs["application_name"] == "tripline"


def test_borrowed_connection_is_read_only_and_returned(fake_pool) -> None:
    _, pool, conn = fake_pool
    with connection.get_conn() as borrowed:
        assert borrowed is conn
    conn.set_session.assert_called_once_with(readonly=True)
    conn.rollback.assert_called_once()
    pool.putconn.assert_called_once_with(conn)


def test_connection_is_returned_when_query_fails(fake_pool) -> None:
    _, pool, conn = fake_pool
    with pytest.raises(KeyError):
        with connection.get_conn():
            raise KeyError("boom")
    conn.rollback.assert_called_once()
    pool.putconn.assert_called_once_with(conn)


def test_close_pool_allows_reopening(fake_pool) -> None:
    factory, pool, _ = fake_pool
    connection.get_pool()
    connection.close_pool()
    pool.closeall.assert_called_once()
    connection.get_pool()
    assert factory.call_count == 2
