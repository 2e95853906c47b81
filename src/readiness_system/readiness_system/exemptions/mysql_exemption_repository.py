from __future__ import annotations

from datetime import date
from typing import Sequence

from ..core.enums import ExemptionStatus, ExemptionType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Exemption
from .repository import ExemptionRepository


class MySQLExemptionRepository(ExemptionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_approved_overlapping(self, *, worker_id: int, start: date, end: date) -> Sequence[Exemption]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT exemption_id, worker_id, exemption_type, status, start_date, end_date, reason
                FROM exemptions
                WHERE worker_id=%s
                  AND status=%s
                  AND start_date IS NOT NULL AND end_date IS NOT NULL
                  AND start_date <= %s AND end_date >= %s
                ORDER BY start_date
                """,
                (int(worker_id), ExemptionStatus.APPROVED.value, end, start),
            )
            return [
                Exemption(
                    exemption_id=int(r["exemption_id"]),
                    worker_id=int(r["worker_id"]),
                    exemption_type=ExemptionType(r["exemption_type"]),
                    status=ExemptionStatus(r["status"]),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    reason=r.get("reason"),
                )
                for r in fetchall(cur)
            ]
