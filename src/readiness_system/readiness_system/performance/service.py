from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from fractions import Fraction
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..absences.model import Absence
from ..absences.reconciler import AbsenceReconciler, reconciliation_baseline
from ..absences.repository import AbsenceRepository
from ..checkins.model import Checkin
from ..checkins.repository import CheckinRepository
from ..common.datetime_utils import local_date, utc_now
from ..common.validators import round_half_up
from ..core.constants import ATTENDANCE_WEIGHT_ABSENT, ATTENDANCE_WEIGHT_GREEN, ATTENDANCE_WEIGHT_YELLOW
from ..core.enums import AbsenceStatus, AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ConfigurationError, NotFoundError
from ..exemptions.repository import ExemptionRepository
from ..teams.calendar import TeamContext, company_timezone, load_work_calendar, resolve_team_context
from ..teams.repository import HolidayRepository, TeamRepository
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .grading import letter_grade, team_grade_score
from .period import Period

logger = logging.getLogger(__name__)

_CHECKIN_WEIGHTS = {
    AttendanceStatus.GREEN: ATTENDANCE_WEIGHT_GREEN,
    AttendanceStatus.YELLOW: ATTENDANCE_WEIGHT_YELLOW,
}


@dataclass(frozen=True)
class DayRecord:
    """Classification of one past (or current) work day."""

    day: date
    status: AttendanceStatus
    counted: bool
    weight: Optional[int] = None
    source: str = "NONE"
    checkin_id: Optional[int] = None
    absence_id: Optional[int] = None
    absence_status: Optional[AbsenceStatus] = None


@dataclass(frozen=True)
class PerformanceResult:
    worker_id: int
    period: Period
    score: Optional[int]
    grade: Optional[str]
    counted_days: int
    work_days: int
    breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TeamGradeResult:
    team_id: int
    period: Period
    score: Optional[int]
    grade: Optional[str]
    average_readiness: Optional[int]
    compliance: Optional[int]
    member_count: int
    checkin_count: int


_ABSENCE_DETAIL = {
    AbsenceStatus.PENDING_JUSTIFICATION: "absence_pending",
    AbsenceStatus.UNEXCUSED: "absence_unexcused",
    AbsenceStatus.EXCUSED: "absence_excused",
}

# Status totals first, then what each ABSENT/EXCUSED day came from.
_DETAIL_KEYS = ("absence_pending", "absence_unexcused", "absence_excused", "exempted", "unrecorded")


def _empty_breakdown() -> Dict[str, int]:
    breakdown = {status.value.lower(): 0 for status in AttendanceStatus}
    breakdown.update((key, 0) for key in _DETAIL_KEYS)
    return breakdown


def _detail_key(record: DayRecord) -> Optional[str]:
    if record.source == "ABSENCE":
        return _ABSENCE_DETAIL[record.absence_status]
    if record.source == "EXEMPTION":
        return "exempted"
    if record.source == "NONE":
        return "unrecorded"
    return None


class PerformanceService:
    def __init__(
        self,
        workers: WorkerRepository,
        teams: TeamRepository,
        checkins: CheckinRepository,
        exemptions: ExemptionRepository,
        holidays: HolidayRepository,
        absences: AbsenceRepository,
        reconciler: Optional[AbsenceReconciler] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._workers = workers
        self._teams = teams
        self._checkins = checkins
        self._exemptions = exemptions
        self._holidays = holidays
        self._absences = absences
        self._reconciler = reconciler
        self._clock = clock

    def compute_performance(
        self,
        worker_id: int,
        period: Union[Period, str],
        *,
        now: Optional[datetime] = None,
    ) -> PerformanceResult:
        now = now or self._clock()
        worker, context = self._load_worker(worker_id)
        if context is None:
            today = local_date(now, company_timezone(self._teams, worker.company_id))
            resolved = period if isinstance(period, Period) else Period.named(period, today)
            return PerformanceResult(worker.worker_id, resolved, None, None, 0, 0, _empty_breakdown())

        if self._reconciler is not None and context.team.is_active:
            self._reconciler.reconcile(worker.worker_id, now=now)

        today = local_date(now, context.timezone)
        resolved = period if isinstance(period, Period) else Period.named(period, today)
        records = self._classify(worker, context, resolved, today)
        return self._summarize(worker.worker_id, resolved, records)

    def attendance_history(
        self,
        worker_id: int,
        period: Union[Period, str],
        *,
        now: Optional[datetime] = None,
    ) -> List[DayRecord]:
        """Per-day classification, newest first."""
        now = now or self._clock()
        worker, context = self._load_worker(worker_id)
        if context is None:
            return []

        today = local_date(now, context.timezone)
        resolved = period if isinstance(period, Period) else Period.named(period, today)
        return list(reversed(self._classify(worker, context, resolved, today)))

    def compute_team_grade(
        self,
        team_id: int,
        period: Union[Period, str],
        *,
        viewer_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TeamGradeResult:
        team = self._teams.get_by_id(team_id)
        if not team:
            raise NotFoundError(f"Team {team_id} not found")

        if viewer_id is not None:
            self._check_team_visibility(viewer_id, team.team_id, team.company_id)

        company = self._teams.get_company(team.company_id)
        if company is None:
            logger.error("Team %s references missing company %s", team.team_id, team.company_id)
            raise ConfigurationError(f"Company {team.company_id} not found for team {team.team_id}")
        context = TeamContext(team=team, company=company)

        today = local_date(now or self._clock(), context.timezone)
        resolved = period if isinstance(period, Period) else Period.named(period, today)

        members = list(self._workers.list_team_members(team.team_id))
        checkins = self._checkins.list_for_team(team_id=team.team_id, start=resolved.start, end=resolved.end)
        readiness = Fraction(sum(c.readiness_score for c in checkins), len(checkins)) if checkins else None

        # Compliance is pooled over every member's counted days.
        total_weight = 0
        total_counted = 0
        for member in members:
            for record in self._classify(member, context, resolved, today):
                if record.counted:
                    total_weight += record.weight or 0
                    total_counted += 1
        compliance = Fraction(total_weight, total_counted) if total_counted else None

        score = team_grade_score(readiness, compliance)
        return TeamGradeResult(
            team_id=team.team_id,
            period=resolved,
            score=score,
            grade=letter_grade(score),
            average_readiness=round_half_up(readiness) if readiness is not None else None,
            compliance=round_half_up(compliance) if compliance is not None else None,
            member_count=len(members),
            checkin_count=len(checkins),
        )

    # ---- helpers ----

    def _load_worker(self, worker_id: int) -> tuple[Worker, Optional[TeamContext]]:
        worker = self._workers.get_by_id(worker_id)
        if not worker:
            raise NotFoundError(f"Worker {worker_id} not found")
        return worker, resolve_team_context(self._teams, worker)

    def _check_team_visibility(self, viewer_id: int, team_id: int, company_id: int) -> None:
        viewer = self._workers.get_by_id(viewer_id)
        if not viewer:
            raise AuthorizationError("Viewer not found")
        if viewer.role == Role.WORKER:
            if viewer.team_id != team_id:
                raise AuthorizationError("You can only view your own team")
        elif viewer.company_id != company_id:
            raise AuthorizationError("Team belongs to another company")

    def _classify(self, worker: Worker, context: TeamContext, period: Period, today: date) -> List[DayRecord]:
        first = self._checkins.get_first_for_worker(worker.worker_id)
        baseline = reconciliation_baseline(worker, first.local_date if first else None, context.timezone)
        # Check-ins before the baseline (a same-day join, an earlier team) still
        # count; only empty days before it are ignored.
        earliest = min(baseline, first.local_date) if first is not None else baseline

        start = max(period.start, earliest)
        end = period.end
        if start > end:
            return []

        calendar = load_work_calendar(
            team=context.team,
            worker_id=worker.worker_id,
            start=start,
            end=end,
            holidays=self._holidays,
            exemptions=self._exemptions,
        )
        checkins: Dict[date, Checkin] = {
            c.local_date: c for c in self._checkins.list_for_worker(worker_id=worker.worker_id, start=start, end=end)
        }
        absences: Dict[date, Absence] = {
            a.absence_date: a for a in self._absences.list_for_worker(worker_id=worker.worker_id, start=start, end=end)
        }

        records: List[DayRecord] = []
        for day in Period(start, end).days():
            checkin = checkins.get(day)
            if checkin is not None:
                records.append(
                    DayRecord(
                        day=day,
                        status=checkin.attendance_status,
                        counted=True,
                        weight=_CHECKIN_WEIGHTS.get(checkin.attendance_status, ATTENDANCE_WEIGHT_ABSENT),
                        source="CHECKIN",
                        checkin_id=checkin.checkin_id,
                    )
                )
                continue

            if day < baseline or not context.team.is_work_day(day) or calendar.is_holiday(day):
                continue

            if calendar.is_exempted(day):
                records.append(DayRecord(day=day, status=AttendanceStatus.EXCUSED, counted=False, source="EXEMPTION"))
                continue

            absence = absences.get(day)
            if absence is not None:
                if absence.status == AbsenceStatus.EXCUSED:
                    records.append(
                        DayRecord(
                            day=day,
                            status=AttendanceStatus.EXCUSED,
                            counted=False,
                            source="ABSENCE",
                            absence_id=absence.absence_id,
                            absence_status=absence.status,
                        )
                    )
                else:
                    records.append(
                        DayRecord(
                            day=day,
                            status=AttendanceStatus.ABSENT,
                            counted=True,
                            weight=ATTENDANCE_WEIGHT_ABSENT,
                            source="ABSENCE",
                            absence_id=absence.absence_id,
                            absence_status=absence.status,
                        )
                    )
                continue

            if day < today:
                records.append(
                    DayRecord(day=day, status=AttendanceStatus.ABSENT, counted=True, weight=ATTENDANCE_WEIGHT_ABSENT)
                )
            # Today and later with nothing recorded are not judged yet.

        return records

    def _summarize(self, worker_id: int, period: Period, records: Sequence[DayRecord]) -> PerformanceResult:
        breakdown = _empty_breakdown()
        total = 0
        counted = 0
        for record in records:
            breakdown[record.status.value.lower()] += 1
            detail = _detail_key(record)
            if detail is not None:
                breakdown[detail] += 1
            if record.counted:
                total += record.weight or 0
                counted += 1

        score = round_half_up(Fraction(total, counted)) if counted else None
        logger.debug("Performance for worker %s over %s..%s: %s (%d days)", worker_id, period.start, period.end, score, counted)
        return PerformanceResult(
            worker_id=worker_id,
            period=period,
            score=score,
            grade=letter_grade(score),
            counted_days=counted,
            work_days=len(records),
            breakdown=breakdown,
        )
