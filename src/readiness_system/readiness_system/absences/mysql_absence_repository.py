from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AbsenceReason, AbsenceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    in_clause,
    is_duplicate_key,
    to_db_datetime,
)
from .model import Absence, AbsenceCounts, JustificationInput
from .repository import AbsenceRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    absence_id, worker_id, team_id, company_id, absence_date, status, reason_category,
    explanation, justified_at, reviewed_by, reviewed_at, review_notes
"""


class _GuardFailed(Exception):
    """Internal: aborts the open transaction so db_cursor rolls back."""


def _scope(
    *,
    company_id: int,
    team_ids: Optional[Sequence[int]] = None,
    worker_id: Optional[int] = None,
) -> tuple[list[str], list[object]]:
    clauses = ["company_id=%s"]
    params: list[object] = [int(company_id)]
    if team_ids is not None:
        ids = [int(t) for t in team_ids]
        clauses.append(f"team_id IN ({in_clause(ids)})")
        params.extend(ids)
    if worker_id is not None:
        clauses.append("worker_id=%s")
        params.append(int(worker_id))
    return clauses, params


def _to_absence(r: dict) -> Absence:
    return Absence(
        absence_id=int(r["absence_id"]),
        worker_id=int(r["worker_id"]),
        team_id=int(r["team_id"]),
        company_id=int(r["company_id"]),
        absence_date=r["absence_date"],
        status=AbsenceStatus(r["status"]),
        reason_category=AbsenceReason(r["reason_category"]) if r.get("reason_category") else None,
        explanation=r.get("explanation"),
        justified_at=from_db_datetime(r.get("justified_at")),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=from_db_datetime(r.get("reviewed_at")),
        review_notes=r.get("review_notes"),
    )


class MySQLAbsenceRepository(AbsenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_if_absent(
        self,
        *,
        worker_id: int,
        team_id: int,
        company_id: int,
        absence_date: date,
    ) -> Optional[Absence]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO absences(worker_id, team_id, company_id, absence_date, status)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(worker_id), int(team_id), int(company_id), absence_date, AbsenceStatus.PENDING_JUSTIFICATION.value),
                )
                absence_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if not is_duplicate_key(exc):
                raise
            logger.debug("Absence for worker %s on %s already exists", worker_id, absence_date)
            return None

        return Absence(
            absence_id=absence_id,
            worker_id=int(worker_id),
            team_id=int(team_id),
            company_id=int(company_id),
            absence_date=absence_date,
        )

    def get_by_id(self, absence_id: int) -> Optional[Absence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM absences WHERE absence_id=%s", (int(absence_id),))
            r = fetchone(cur)
            return _to_absence(r) if r else None

    def get_many(self, absence_ids: Sequence[int]) -> Sequence[Absence]:
        ids = [int(i) for i in absence_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM absences WHERE absence_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def list_for_worker(self, *, worker_id: int, start: date, end: date) -> Sequence[Absence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absences
                WHERE worker_id=%s AND absence_date BETWEEN %s AND %s
                ORDER BY absence_date
                """,
                (int(worker_id), start, end),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def list_awaiting_worker(self, worker_id: int) -> Sequence[Absence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absences
                WHERE worker_id=%s AND status=%s AND justified_at IS NULL
                ORDER BY absence_date ASC
                """,
                (int(worker_id), AbsenceStatus.PENDING_JUSTIFICATION.value),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def count_awaiting_worker(self, worker_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM absences
                WHERE worker_id=%s AND status=%s AND justified_at IS NULL
                """,
                (int(worker_id), AbsenceStatus.PENDING_JUSTIFICATION.value),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def list_awaiting_review(
        self,
        *,
        company_id: int,
        team_ids: Optional[Sequence[int]] = None,
        limit: int = 100,
    ) -> Sequence[Absence]:
        if team_ids is not None and not team_ids:
            return []
        clauses, params = _scope(company_id=company_id, team_ids=team_ids)
        clauses += ["status=%s", "justified_at IS NOT NULL"]
        params.append(AbsenceStatus.PENDING_JUSTIFICATION.value)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absences
                WHERE {where}
                ORDER BY justified_at ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def list_history(self, worker_id: int, *, limit: int) -> Sequence[Absence]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absences
                WHERE worker_id=%s
                ORDER BY absence_date DESC
                LIMIT %s
                """,
                (int(worker_id), int(limit)),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def list_for_scope(
        self,
        *,
        company_id: int,
        team_ids: Optional[Sequence[int]] = None,
        status: Optional[AbsenceStatus] = None,
        limit: int = 100,
    ) -> Sequence[Absence]:
        if team_ids is not None and not team_ids:
            return []
        clauses, params = _scope(company_id=company_id, team_ids=team_ids)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absences
                WHERE {where}
                ORDER BY absence_date DESC, absence_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def count_by_state(
        self,
        *,
        company_id: int,
        worker_id: Optional[int] = None,
        team_ids: Optional[Sequence[int]] = None,
    ) -> AbsenceCounts:
        if team_ids is not None and not team_ids:
            return AbsenceCounts()
        clauses, params = _scope(company_id=company_id, team_ids=team_ids, worker_id=worker_id)
        pending = AbsenceStatus.PENDING_JUSTIFICATION.value
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    SUM(status=%s AND justified_at IS NULL) AS pending_justification,
                    SUM(status=%s AND justified_at IS NOT NULL) AS pending_review,
                    SUM(status=%s) AS excused,
                    SUM(status=%s) AS unexcused
                FROM absences
                WHERE {where}
                """,
                (pending, pending, AbsenceStatus.EXCUSED.value, AbsenceStatus.UNEXCUSED.value, *params),
            )
            r = fetchone(cur) or {}
            # SUM over no rows is NULL.
            return AbsenceCounts(
                pending_justification=int(r.get("pending_justification") or 0),
                pending_review=int(r.get("pending_review") or 0),
                excused=int(r.get("excused") or 0),
                unexcused=int(r.get("unexcused") or 0),
            )

    def apply_justifications(
        self,
        *,
        worker_id: int,
        items: Sequence[JustificationInput],
        justified_at: datetime,
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                for item in items:
                    cur.execute(
                        """
                        UPDATE absences
                        SET reason_category=%s, explanation=%s, justified_at=%s
                        WHERE absence_id=%s AND worker_id=%s AND status=%s AND justified_at IS NULL
                        """,
                        (
                            item.reason_category.value,
                            item.explanation,
                            to_db_datetime(justified_at),
                            int(item.absence_id),
                            int(worker_id),
                            AbsenceStatus.PENDING_JUSTIFICATION.value,
                        ),
                    )
                    if cur.rowcount != 1:
                        raise _GuardFailed(item.absence_id)
        except _GuardFailed as exc:
            logger.info("Justification batch for worker %s rolled back at absence %s", worker_id, exc.args[0])
            return False
        return True

    def apply_review(
        self,
        *,
        absence_id: int,
        status: AbsenceStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE absences
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE absence_id=%s AND status=%s AND justified_at IS NOT NULL
                """,
                (
                    status.value,
                    int(reviewed_by),
                    to_db_datetime(reviewed_at),
                    review_notes,
                    int(absence_id),
                    AbsenceStatus.PENDING_JUSTIFICATION.value,
                ),
            )
            return cur.rowcount > 0
