from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_time
from .model import Company, Holiday, Team, parse_work_days
from .repository import HolidayRepository, TeamRepository

_TEAM_COLUMNS = "team_id, company_id, name, work_days, shift_start, shift_end, leader_id, is_active"


def _to_team(r: dict) -> Team:
    return Team(
        team_id=int(r["team_id"]),
        company_id=int(r["company_id"]),
        name=r["name"],
        work_days=parse_work_days(r["work_days"] or ""),
        shift_start=from_db_time(r["shift_start"]),
        shift_end=from_db_time(r["shift_end"]),
        leader_id=int(r["leader_id"]) if r.get("leader_id") is not None else None,
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, team_id: int) -> Optional[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TEAM_COLUMNS} FROM teams WHERE team_id=%s", (int(team_id),))
            r = fetchone(cur)
            return _to_team(r) if r else None

    def list_led_by(self, leader_id: int) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TEAM_COLUMNS}
                FROM teams
                WHERE leader_id=%s AND is_active=1
                ORDER BY team_id
                """,
                (int(leader_id),),
            )
            return [_to_team(r) for r in fetchall(cur)]

    def get_company(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT company_id, name, timezone FROM companies WHERE company_id=%s",
                (int(company_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Company(company_id=int(r["company_id"]), name=r["name"], timezone=r["timezone"])


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, *, company_id: int, start: date, end: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_id, company_id, holiday_date, name
                FROM holidays
                WHERE company_id=%s AND holiday_date BETWEEN %s AND %s
                ORDER BY holiday_date
                """,
                (int(company_id), start, end),
            )
            return [
                Holiday(
                    holiday_id=int(r["holiday_id"]),
                    company_id=int(r["company_id"]),
                    holiday_date=r["holiday_date"],
                    name=r["name"],
                )
                for r in fetchall(cur)
            ]
