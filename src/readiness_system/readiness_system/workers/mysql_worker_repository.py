from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime
from .model import Worker
from .repository import WorkerRepository

_COLUMNS = """
    worker_id, company_id, team_id, full_name, role, created_at, team_joined_at,
    last_checkin_date, current_streak, longest_streak, is_active
"""


def _to_worker(r: dict) -> Worker:
    return Worker(
        worker_id=int(r["worker_id"]),
        company_id=int(r["company_id"]),
        team_id=int(r["team_id"]) if r.get("team_id") is not None else None,
        full_name=r["full_name"],
        role=Role(r["role"]),
        created_at=from_db_datetime(r["created_at"]),
        team_joined_at=from_db_datetime(r.get("team_joined_at")),
        last_checkin_date=r.get("last_checkin_date"),
        current_streak=int(r.get("current_streak") or 0),
        longest_streak=int(r.get("longest_streak") or 0),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM workers WHERE worker_id=%s", (int(worker_id),))
            r = fetchone(cur)
            return _to_worker(r) if r else None

    def list_team_members(self, team_id: int) -> Sequence[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM workers
                WHERE team_id=%s AND role=%s AND is_active=1
                ORDER BY full_name
                """,
                (int(team_id), Role.WORKER.value),
            )
            return [_to_worker(r) for r in fetchall(cur)]

    def update_streak(
        self,
        *,
        worker_id: int,
        current_streak: int,
        longest_streak: int,
        last_checkin_date: date,
    ) -> bool:
        # longest_streak never drops below current_streak.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE workers
                SET current_streak=%s,
                    longest_streak=GREATEST(longest_streak, %s, %s),
                    last_checkin_date=%s
                WHERE worker_id=%s
                """,
                (int(current_streak), int(longest_streak), int(current_streak), last_checkin_date, int(worker_id)),
            )
            return cur.rowcount > 0
