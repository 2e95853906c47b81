from __future__ import annotations

from contextlib import closing, contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..common.datetime_utils import as_utc, parse_hhmm
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor) inside one transaction.

    Commits when the block exits normally; any exception rolls back and propagates.
    """
    conn = conn_factory.connect()
    try:
        with closing(conn.cursor(dictionary=dictionary)) as cur:
            yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def is_duplicate_key(exc: BaseException) -> bool:
    """True when a unique constraint rejected an INSERT."""
    return isinstance(exc, mysql.connector.IntegrityError) and getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def in_clause(values: Sequence[Any]) -> str:
    """'%s,%s,...' for an IN (...) list; callers must not pass an empty sequence."""
    if not values:
        raise ValueError("IN clause needs at least one value")
    return ",".join("%s" for _ in values)


def from_db_time(value: Any) -> Optional[time]:
    """MySQL TIME column -> time of day (minute precision).

    mysql-connector hands TIME back as a timedelta; a string appears when the
    column comes through a CAST or a view.
    """
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        minutes = (int(value.total_seconds()) // 60) % (24 * 60)
        return time(hour=minutes // 60, minute=minutes % 60)
    if isinstance(value, str):
        return parse_hhmm(value.strip()[:5])
    raise TypeError(f"Unsupported MySQL TIME value: {value!r}")


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware instant -> naive UTC for DATETIME columns."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return as_utc(value)
