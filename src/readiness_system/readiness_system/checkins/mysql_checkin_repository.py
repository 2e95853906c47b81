from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, ErrorCode, LowScoreReason, ReadinessStatus
from ..core.exceptions import StateViolationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, is_duplicate_key, to_db_datetime
from .model import Checkin, NewCheckin
from .repository import CheckinRepository

_COLUMNS = """
    checkin_id, worker_id, team_id, company_id, local_date, mood, stress, sleep, physical_health,
    readiness_score, readiness_status, attendance_status, minutes_late, note, created_at,
    low_score_reason, low_score_details
"""


def _to_checkin(r: dict) -> Checkin:
    return Checkin(
        checkin_id=int(r["checkin_id"]),
        worker_id=int(r["worker_id"]),
        team_id=int(r["team_id"]),
        company_id=int(r["company_id"]),
        local_date=r["local_date"],
        mood=int(r["mood"]),
        stress=int(r["stress"]),
        sleep=int(r["sleep"]),
        physical_health=int(r["physical_health"]),
        readiness_score=int(r["readiness_score"]),
        readiness_status=ReadinessStatus(r["readiness_status"]),
        attendance_status=AttendanceStatus(r["attendance_status"]),
        minutes_late=int(r.get("minutes_late") or 0),
        created_at=from_db_datetime(r["created_at"]),
        note=r.get("note"),
        low_score_reason=LowScoreReason(r["low_score_reason"]) if r.get("low_score_reason") else None,
        low_score_details=r.get("low_score_details"),
    )


class MySQLCheckinRepository(CheckinRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, checkin_id: int) -> Optional[Checkin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM checkins WHERE checkin_id=%s", (int(checkin_id),))
            r = fetchone(cur)
            return _to_checkin(r) if r else None

    def get_first_for_worker(self, worker_id: int) -> Optional[Checkin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM checkins WHERE worker_id=%s ORDER BY local_date ASC LIMIT 1",
                (int(worker_id),),
            )
            r = fetchone(cur)
            return _to_checkin(r) if r else None

    def get_for_worker_and_date(self, worker_id: int, local_date: date) -> Optional[Checkin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM checkins WHERE worker_id=%s AND local_date=%s",
                (int(worker_id), local_date),
            )
            r = fetchone(cur)
            return _to_checkin(r) if r else None

    def list_for_worker(self, *, worker_id: int, start: date, end: date) -> Sequence[Checkin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM checkins
                WHERE worker_id=%s AND local_date BETWEEN %s AND %s
                ORDER BY local_date
                """,
                (int(worker_id), start, end),
            )
            return [_to_checkin(r) for r in fetchall(cur)]

    def list_for_team(self, *, team_id: int, start: date, end: date) -> Sequence[Checkin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM checkins
                WHERE team_id=%s AND local_date BETWEEN %s AND %s
                ORDER BY local_date, worker_id
                """,
                (int(team_id), start, end),
            )
            return [_to_checkin(r) for r in fetchall(cur)]

    def create(self, record: NewCheckin) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO checkins(
                        worker_id, team_id, company_id, local_date, mood, stress, sleep, physical_health,
                        readiness_score, readiness_status, attendance_status, minutes_late, note, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.worker_id),
                        int(record.team_id),
                        int(record.company_id),
                        record.local_date,
                        record.mood,
                        record.stress,
                        record.sleep,
                        record.physical_health,
                        record.readiness_score,
                        record.readiness_status.value,
                        record.attendance_status.value,
                        int(record.minutes_late),
                        record.note,
                        to_db_datetime(record.created_at),
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise StateViolationError("Already checked in today", code=ErrorCode.ALREADY_CHECKED_IN) from exc
            raise

    def set_low_score_reason(
        self,
        *,
        checkin_id: int,
        reason: LowScoreReason,
        details: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE checkins
                SET low_score_reason=%s, low_score_details=%s
                WHERE checkin_id=%s AND low_score_reason IS NULL
                """,
                (reason.value, details, int(checkin_id)),
            )
            return cur.rowcount > 0
