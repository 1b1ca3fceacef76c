"""Tests for the PostgreSQL-backed Database (mocked connection)."""

from unittest.mock import MagicMock

import pytest
from psycopg2 import errors as pg_errors

from hotelops.domain.errors import StoreConflictError
from hotelops.infra.postgres_store import PostgresDatabase, PostgresSession


@pytest.fixture
def conn():
    return MagicMock()


@pytest.fixture
def cur(conn):
    return conn.cursor.return_value.__enter__.return_value


def test_session_sets_lock_timeout_and_commits(conn, cur):
    db = PostgresDatabase(connect=lambda: conn, lock_timeout_ms=1500)

    with db.session() as session:
        assert isinstance(session, PostgresSession)

    first_sql, first_params = cur.execute.call_args_list[0][0]
    assert "lock_timeout" in first_sql
    assert first_params == ("1500ms",)
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    conn.close.assert_called_once()


@pytest.mark.parametrize(
    "error",
    [pg_errors.LockNotAvailable, pg_errors.DeadlockDetected, pg_errors.SerializationFailure],
)
def test_transient_errors_become_store_conflicts(conn, cur, error):
    db = PostgresDatabase(connect=lambda: conn)

    with pytest.raises(StoreConflictError):
        with db.session():
            raise error("canceling statement due to lock timeout")

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    conn.close.assert_called_once()


def test_other_errors_propagate(conn, cur):
    db = PostgresDatabase(connect=lambda: conn)

    with pytest.raises(ValueError):
        with db.session():
            raise ValueError("boom")

    conn.rollback.assert_called_once()
    conn.close.assert_called_once()


def test_session_routes_to_repositories(conn, cur):
    cur.fetchone.return_value = None
    db = PostgresDatabase(connect=lambda: conn)

    with db.session() as session:
        assert session.rooms.get("R101", lock=True) is None

    sql = cur.execute.call_args[0][0]
    assert "FROM rooms" in sql
    assert "FOR UPDATE" in sql
