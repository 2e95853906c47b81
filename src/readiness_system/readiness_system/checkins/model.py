from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, LowScoreReason, ReadinessStatus


@dataclass(frozen=True)
class Checkin:
    """Domain entity: one readiness check-in per worker per local day.

    Immutable except for the one-time low-score reason patch.
    """

    checkin_id: int
    worker_id: int
    team_id: int
    company_id: int
    local_date: date
    mood: int
    stress: int
    sleep: int
    physical_health: int
    readiness_score: int
    readiness_status: ReadinessStatus
    attendance_status: AttendanceStatus
    minutes_late: int
    created_at: datetime
    note: Optional[str] = None
    low_score_reason: Optional[LowScoreReason] = None
    low_score_details: Optional[str] = None
    # Only set on the submission response; not stored.
    is_returning: bool = False


@dataclass(frozen=True)
class NewCheckin:
    worker_id: int
    team_id: int
    company_id: int
    local_date: date
    mood: int
    stress: int
    sleep: int
    physical_health: int
    readiness_score: int
    readiness_status: ReadinessStatus
    attendance_status: AttendanceStatus
    minutes_late: int
    created_at: datetime
    note: Optional[str] = None
