from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..absences.reconciler import AbsenceReconciler
from ..absences.repository import AbsenceRepository
from ..attendance.factory import AttendanceStrategyFactory
from ..attendance.resolver import resolve_attendance
from ..common.datetime_utils import local_date, minutes_of_day, minutes_since_local_midnight, utc_now
from ..common.validators import require_enum, require_max_length
from ..core.constants import (
    DEFAULT_LATE_GRACE_MINUTES,
    EARLY_CHECKIN_WINDOW_MINUTES,
    MAX_CHECKIN_NOTE_LENGTH,
    MAX_LOW_SCORE_DETAILS_LENGTH,
    RETURNING_FROM_LEAVE_DAYS,
)
from ..core.enums import ErrorCode, LowScoreReason, ReadinessStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, StateViolationError, ValidationError
from ..exemptions.model import LeaveStatus
from ..exemptions.repository import ExemptionRepository
from ..performance.streaks import StreakState, advance_streak
from ..teams.calendar import company_timezone, load_work_calendar, resolve_team_context
from ..teams.repository import HolidayRepository, TeamRepository
from ..workers.repository import WorkerRepository
from .model import Checkin, NewCheckin
from .readiness import ReadinessMetrics, score_checkin
from .repository import CheckinRepository

logger = logging.getLogger(__name__)


class CheckinService:
    def __init__(
        self,
        checkins: CheckinRepository,
        workers: WorkerRepository,
        teams: TeamRepository,
        exemptions: ExemptionRepository,
        holidays: HolidayRepository,
        absences: AbsenceRepository,
        reconciler: AbsenceReconciler,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._checkins = checkins
        self._workers = workers
        self._teams = teams
        self._exemptions = exemptions
        self._holidays = holidays
        self._absences = absences
        self._reconciler = reconciler
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._clock = clock

    def submit_checkin(
        self,
        worker_id: int,
        metrics: ReadinessMetrics,
        note: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Checkin:
        now = now or self._clock()
        note = (note or "").strip() or None
        require_max_length(note, "notes", MAX_CHECKIN_NOTE_LENGTH)

        worker = self._workers.get_by_id(worker_id)
        if not worker or not worker.is_active:
            raise NotFoundError(f"Worker {worker_id} not found")
        if worker.role != Role.WORKER:
            raise AuthorizationError("Only workers submit daily check-ins")

        context = resolve_team_context(self._teams, worker)
        if context is None or not context.team.is_active:
            raise ValidationError("You are not assigned to a team", code=ErrorCode.NO_TEAM)
        team = context.team
        tz = context.timezone

        self._reconciler.reconcile(worker.worker_id, now=now)
        blocking = self._absences.count_awaiting_worker(worker.worker_id)
        if blocking:
            raise StateViolationError(
                f"Please justify {blocking} absence(s) before checking in",
                code=ErrorCode.BLOCKED_BY_ABSENCES,
            )

        today = local_date(now, tz)
        last_date = worker.last_checkin_date
        window_start = last_date + timedelta(days=1) if last_date and last_date < today else today
        calendar = load_work_calendar(
            team=team,
            worker_id=worker.worker_id,
            start=window_start,
            end=today,
            holidays=self._holidays,
            exemptions=self._exemptions,
        )

        if calendar.is_exempted(today):
            raise StateViolationError("You are on approved leave today", code=ErrorCode.ON_LEAVE)
        if not team.is_work_day(today) or calendar.is_holiday(today):
            raise StateViolationError("Today is not a work day for your team", code=ErrorCode.NOT_WORK_DAY)

        current_minute = minutes_since_local_midnight(now, tz)
        if current_minute < minutes_of_day(team.shift_start) - EARLY_CHECKIN_WINDOW_MINUTES:
            raise StateViolationError(
                f"Check-in opens {EARLY_CHECKIN_WINDOW_MINUTES} minutes before your shift starts",
                code=ErrorCode.TOO_EARLY,
            )
        if not team.is_overnight and current_minute > minutes_of_day(team.shift_end):
            raise StateViolationError("Your shift has already ended", code=ErrorCode.TOO_LATE)

        if self._checkins.get_for_worker_and_date(worker.worker_id, today):
            raise StateViolationError("You have already checked in today", code=ErrorCode.ALREADY_CHECKED_IN)

        returning = self._leave_status(worker.worker_id, today).is_returning
        readiness = score_checkin(metrics)
        attendance = resolve_attendance(
            now,
            team.shift_start,
            self._grace_minutes,
            timezone=tz,
            factory=self._factory,
        )

        record = NewCheckin(
            worker_id=worker.worker_id,
            team_id=team.team_id,
            company_id=context.company.company_id,
            local_date=today,
            mood=metrics.mood,
            stress=metrics.stress,
            sleep=metrics.sleep,
            physical_health=metrics.physical_health,
            readiness_score=readiness.score,
            readiness_status=readiness.status,
            attendance_status=attendance.status,
            minutes_late=attendance.minutes_late,
            created_at=now,
            note=note,
        )
        checkin_id = self._checkins.create(record)

        streak = advance_streak(
            StreakState(current=worker.current_streak, longest=max(worker.longest_streak, worker.current_streak)),
            last_date,
            today,
            calendar.is_required_day,
        )
        self._workers.update_streak(
            worker_id=worker.worker_id,
            current_streak=streak.current,
            longest_streak=streak.longest,
            last_checkin_date=today,
        )

        logger.info(
            "Worker %s checked in for %s: readiness %s (%s), attendance %s%s",
            worker.worker_id,
            today,
            readiness.score,
            readiness.status.value,
            attendance.status.value,
            " (returning from leave)" if returning else "",
        )
        return Checkin(checkin_id=checkin_id, is_returning=returning, **asdict(record))

    def set_low_score_reason(
        self,
        worker_id: int,
        checkin_id: int,
        reason: LowScoreReason | str,
        details: Optional[str] = None,
    ) -> Checkin:
        reason = require_enum(reason, LowScoreReason, "reason")

        checkin = self._checkins.get_by_id(checkin_id)
        if not checkin or checkin.worker_id != worker_id:
            raise NotFoundError(f"Check-in {checkin_id} not found")
        if checkin.readiness_status == ReadinessStatus.GREEN:
            raise StateViolationError(
                "A reason can only be given for a low readiness score",
                code=ErrorCode.LOW_SCORE_REASON_NOT_ALLOWED,
            )
        if checkin.low_score_reason is not None:
            raise StateViolationError("A reason was already recorded for this check-in", code=ErrorCode.LOW_SCORE_REASON_SET)

        if reason == LowScoreReason.OTHER:
            details = (details or "").strip() or None
            require_max_length(details, "details", MAX_LOW_SCORE_DETAILS_LENGTH)
        else:
            details = None

        if not self._checkins.set_low_score_reason(checkin_id=checkin.checkin_id, reason=reason, details=details):
            raise StateViolationError("A reason was already recorded for this check-in", code=ErrorCode.LOW_SCORE_REASON_SET)

        logger.info("Worker %s gave low-score reason %s for check-in %s", worker_id, reason.value, checkin_id)
        return self._checkins.get_by_id(checkin.checkin_id) or checkin

    def get_leave_status(self, worker_id: int, *, now: Optional[datetime] = None) -> LeaveStatus:
        now = now or self._clock()
        worker = self._workers.get_by_id(worker_id)
        if not worker or not worker.is_active:
            raise NotFoundError(f"Worker {worker_id} not found")

        context = resolve_team_context(self._teams, worker)
        tz = context.timezone if context else company_timezone(self._teams, worker.company_id)
        return self._leave_status(worker.worker_id, local_date(now, tz))

    def _leave_status(self, worker_id: int, today: date) -> LeaveStatus:
        window_start = today - timedelta(days=RETURNING_FROM_LEAVE_DAYS)
        approved = self._exemptions.list_approved_overlapping(worker_id=worker_id, start=window_start, end=today)

        for exemption in approved:
            if exemption.covers(today):
                return LeaveStatus(is_on_leave=True, current_exemption=exemption)

        ended = [e for e in approved if e.end_date is not None and window_start <= e.end_date < today]
        if not ended:
            return LeaveStatus()

        last = max(ended, key=lambda e: e.end_date)
        since = self._checkins.list_for_worker(worker_id=worker_id, start=last.end_date + timedelta(days=1), end=today)
        if since:
            return LeaveStatus()
        return LeaveStatus(is_returning=True, last_exemption=last)
