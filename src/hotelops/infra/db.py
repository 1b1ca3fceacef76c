"""PostgreSQL connection and transaction helpers (psycopg2, no ORM).

A booking-engine transaction is short: lock the room row(s), check, write,
commit. The helpers here keep that shape in one place:
- get_conn(): connection for DATABASE_URL
- txn(): commit on success, roll back on any exception
- select_one(): single-row SELECT, optionally row-locked
- set_lock_timeout(): bound how long the transaction waits on row locks
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor


def _dsn_has_password(dsn: str) -> bool:
    if "://" in dsn:
        netloc = dsn.split("://", 1)[1].split("/", 1)[0]
        userinfo = netloc.rsplit("@", 1)[0] if "@" in netloc else ""
        return ":" in userinfo
    return any(part.startswith("password=") for part in dsn.split())


def get_conn() -> PgConnection:
    """Open a connection to DATABASE_URL (URL or libpq key=value form).

    DB_PASSWORD is passed separately when the DSN carries no password, so
    the secret can stay out of the URL.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")

    kwargs: dict[str, str] = {}
    db_password = os.environ.get("DB_PASSWORD")
    if db_password and not _dsn_has_password(dsn):
        kwargs["password"] = db_password
    return psycopg2.connect(dsn, **kwargs)


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Run one transaction and yield its cursor.

    Uses conn when given, otherwise a fresh connection that is closed on
    exit. Any exception (client disconnects included) rolls back and
    propagates.

    Example:
        with txn() as cur:
            cur.execute("UPDATE rooms SET status = %s WHERE id = %s", ("vacant", rid))
    """
    owned = conn is None
    active = get_conn() if owned else conn
    try:
        with active.cursor() as cur:
            yield cur
    except BaseException:
        active.rollback()
        raise
    else:
        active.commit()
    finally:
        if owned:
            active.close()


def select_one(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
    *,
    lock: bool = False,
) -> tuple[Any, ...] | None:
    """Fetch the first row of a SELECT (None when empty).

    With lock=True the row is taken FOR UPDATE and stays locked until the
    transaction ends.
    """
    if lock:
        query = query.rstrip().rstrip(";") + " FOR UPDATE"
    cur.execute(query, params)
    return cur.fetchone()


def set_lock_timeout(cur: PgCursor, timeout_ms: int) -> None:
    """Limit how long statements in this transaction wait for row locks.

    A timeout surfaces as psycopg2.errors.LockNotAvailable.
    """
    cur.execute("SELECT set_config('lock_timeout', %s, true)", (f"{int(timeout_ms)}ms",))
