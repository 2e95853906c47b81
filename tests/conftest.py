from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace
from datetime import date, datetime, time, timezone
from typing import Optional

import pytest

from src.readiness_system.readiness_system.absences.model import Absence, AbsenceCounts
from src.readiness_system.readiness_system.absences.reconciler import AbsenceReconciler
from src.readiness_system.readiness_system.absences.service import AbsenceService
from src.readiness_system.readiness_system.checkins.model import Checkin, NewCheckin
from src.readiness_system.readiness_system.checkins.service import CheckinService
from src.readiness_system.readiness_system.common.datetime_utils import utc_now
from src.readiness_system.readiness_system.core.enums import (
    AbsenceStatus,
    AttendanceStatus,
    ErrorCode,
    ExemptionStatus,
    ExemptionType,
    ReadinessStatus,
    Role,
)
from src.readiness_system.readiness_system.core.exceptions import StateViolationError
from src.readiness_system.readiness_system.exemptions.model import Exemption
from src.readiness_system.readiness_system.performance.service import PerformanceService
from src.readiness_system.readiness_system.teams.model import Company, Holiday, Team, parse_work_days
from src.readiness_system.readiness_system.workers.model import Worker


class InMemoryWorkers:
    def __init__(self):
        self.by_id: dict[int, Worker] = {}

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        return self.by_id.get(worker_id)

    def list_team_members(self, team_id: int):
        return [
            w for w in self.by_id.values() if w.team_id == team_id and w.role == Role.WORKER and w.is_active
        ]

    def update_streak(self, *, worker_id, current_streak, longest_streak, last_checkin_date) -> bool:
        w = self.by_id.get(worker_id)
        if not w:
            return False
        self.by_id[worker_id] = replace(
            w,
            current_streak=current_streak,
            longest_streak=max(w.longest_streak, longest_streak, current_streak),
            last_checkin_date=last_checkin_date,
        )
        return True


class InMemoryTeams:
    def __init__(self):
        self.teams: dict[int, Team] = {}
        self.companies: dict[int, Company] = {}

    def get_by_id(self, team_id: int) -> Optional[Team]:
        return self.teams.get(team_id)

    def list_led_by(self, leader_id: int) -> list[Team]:
        return [t for t in sorted(self.teams.values(), key=lambda t: t.team_id) if t.leader_id == leader_id and t.is_active]

    def get_company(self, company_id: int) -> Optional[Company]:
        return self.companies.get(company_id)


class InMemoryHolidays:
    def __init__(self):
        self.items: list[Holiday] = []

    def list_for_company(self, *, company_id, start, end):
        return [h for h in self.items if h.company_id == company_id and start <= h.holiday_date <= end]


class InMemoryExemptions:
    def __init__(self):
        self.items: list[Exemption] = []

    def list_approved_overlapping(self, *, worker_id, start, end):
        return [
            e
            for e in self.items
            if e.worker_id == worker_id
            and e.status == ExemptionStatus.APPROVED
            and e.start_date is not None
            and e.end_date is not None
            and e.start_date <= end
            and e.end_date >= start
        ]


class InMemoryCheckins:
    def __init__(self):
        self.by_id: dict[int, Checkin] = {}
        self._next_id = 1

    def get_by_id(self, checkin_id):
        return self.by_id.get(checkin_id)

    def get_first_for_worker(self, worker_id):
        rows = sorted((c for c in self.by_id.values() if c.worker_id == worker_id), key=lambda c: c.local_date)
        return rows[0] if rows else None

    def get_for_worker_and_date(self, worker_id, local_date):
        for c in self.by_id.values():
            if c.worker_id == worker_id and c.local_date == local_date:
                return c
        return None

    def list_for_worker(self, *, worker_id, start, end):
        return sorted(
            (c for c in self.by_id.values() if c.worker_id == worker_id and start <= c.local_date <= end),
            key=lambda c: c.local_date,
        )

    def list_for_team(self, *, team_id, start, end):
        return sorted(
            (c for c in self.by_id.values() if c.team_id == team_id and start <= c.local_date <= end),
            key=lambda c: (c.local_date, c.worker_id),
        )

    def create(self, record: NewCheckin) -> int:
        if self.get_for_worker_and_date(record.worker_id, record.local_date):
            raise StateViolationError("Already checked in today", code=ErrorCode.ALREADY_CHECKED_IN)
        checkin_id = self._next_id
        self._next_id += 1
        self.by_id[checkin_id] = Checkin(checkin_id=checkin_id, **record.__dict__)
        return checkin_id

    def set_low_score_reason(self, *, checkin_id, reason, details=None) -> bool:
        c = self.by_id.get(checkin_id)
        if not c or c.low_score_reason is not None:
            return False
        self.by_id[checkin_id] = replace(c, low_score_reason=reason, low_score_details=details)
        return True


class InMemoryAbsences:
    def __init__(self):
        self.by_id: dict[int, Absence] = {}
        self._next_id = 1

    def create_if_absent(self, *, worker_id, team_id, company_id, absence_date):
        if any(a.worker_id == worker_id and a.absence_date == absence_date for a in self.by_id.values()):
            return None
        absence = Absence(
            absence_id=self._next_id,
            worker_id=worker_id,
            team_id=team_id,
            company_id=company_id,
            absence_date=absence_date,
        )
        self.by_id[absence.absence_id] = absence
        self._next_id += 1
        return absence

    def get_by_id(self, absence_id):
        return self.by_id.get(absence_id)

    def get_many(self, absence_ids):
        return [self.by_id[i] for i in absence_ids if i in self.by_id]

    def list_for_worker(self, *, worker_id, start, end):
        return sorted(
            (a for a in self.by_id.values() if a.worker_id == worker_id and start <= a.absence_date <= end),
            key=lambda a: a.absence_date,
        )

    def list_awaiting_worker(self, worker_id):
        return sorted(
            (a for a in self.by_id.values() if a.worker_id == worker_id and a.is_awaiting_worker),
            key=lambda a: a.absence_date,
        )

    def count_awaiting_worker(self, worker_id):
        return len(self.list_awaiting_worker(worker_id))

    def _in_scope(self, a, company_id, team_ids=None, worker_id=None):
        return (
            a.company_id == company_id
            and (team_ids is None or a.team_id in team_ids)
            and (worker_id is None or a.worker_id == worker_id)
        )

    def list_awaiting_review(self, *, company_id, team_ids=None, limit=100):
        rows = [a for a in self.by_id.values() if self._in_scope(a, company_id, team_ids) and a.is_awaiting_supervisor]
        rows.sort(key=lambda a: a.justified_at)
        return rows[:limit]

    def list_history(self, worker_id, *, limit):
        rows = sorted((a for a in self.by_id.values() if a.worker_id == worker_id), key=lambda a: a.absence_date, reverse=True)
        return rows[:limit]

    def list_for_scope(self, *, company_id, team_ids=None, status=None, limit=100):
        rows = [
            a for a in self.by_id.values() if self._in_scope(a, company_id, team_ids) and (status is None or a.status == status)
        ]
        rows.sort(key=lambda a: (a.absence_date, a.absence_id), reverse=True)
        return rows[:limit]

    def count_by_state(self, *, company_id, worker_id=None, team_ids=None):
        rows = [a for a in self.by_id.values() if self._in_scope(a, company_id, team_ids, worker_id)]
        return AbsenceCounts(
            pending_justification=sum(1 for a in rows if a.is_awaiting_worker),
            pending_review=sum(1 for a in rows if a.is_awaiting_supervisor),
            excused=sum(1 for a in rows if a.status == AbsenceStatus.EXCUSED),
            unexcused=sum(1 for a in rows if a.status == AbsenceStatus.UNEXCUSED),
        )

    def apply_justifications(self, *, worker_id, items, justified_at) -> bool:
        for item in items:
            a = self.by_id.get(item.absence_id)
            if not a or a.worker_id != worker_id or not a.is_awaiting_worker:
                return False
        for item in items:
            self.by_id[item.absence_id] = replace(
                self.by_id[item.absence_id],
                reason_category=item.reason_category,
                explanation=item.explanation,
                justified_at=justified_at,
            )
        return True

    def apply_review(self, *, absence_id, status, reviewed_by, reviewed_at, review_notes=None) -> bool:
        a = self.by_id.get(absence_id)
        if not a or not a.is_awaiting_supervisor:
            return False
        self.by_id[absence_id] = replace(
            a, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, review_notes=review_notes
        )
        return True


class World:
    """A small company: in-memory stores plus builders for services under test."""

    def __init__(self):
        self.workers = InMemoryWorkers()
        self.teams = InMemoryTeams()
        self.holidays = InMemoryHolidays()
        self.exemptions = InMemoryExemptions()
        self.checkins = InMemoryCheckins()
        self.absences = InMemoryAbsences()
        self.clock = utc_now

    # ---- data ----

    def add_company(self, company_id: int = 1, tz: str = "UTC") -> Company:
        company = Company(company_id=company_id, name=f"Company {company_id}", timezone=tz)
        self.teams.companies[company_id] = company
        return company

    def add_team(
        self,
        team_id: int = 10,
        *,
        company_id: int = 1,
        work_days: str = "MON,TUE,WED,THU,FRI",
        shift_start: time = time(8, 0),
        shift_end: time = time(17, 0),
        leader_id: Optional[int] = None,
        is_active: bool = True,
    ) -> Team:
        team = Team(
            team_id=team_id,
            company_id=company_id,
            name=f"Team {team_id}",
            work_days=parse_work_days(work_days),
            shift_start=shift_start,
            shift_end=shift_end,
            leader_id=leader_id,
            is_active=is_active,
        )
        self.teams.teams[team_id] = team
        return team

    def add_worker(
        self,
        worker_id: int = 100,
        *,
        team_id: Optional[int] = 10,
        company_id: int = 1,
        role: Role = Role.WORKER,
        created_at: datetime = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc),
        team_joined_at: Optional[datetime] = None,
        **kwargs,
    ) -> Worker:
        worker = Worker(
            worker_id=worker_id,
            company_id=company_id,
            team_id=team_id,
            full_name=f"Worker {worker_id}",
            role=role,
            created_at=created_at,
            team_joined_at=team_joined_at,
            **kwargs,
        )
        self.workers.by_id[worker_id] = worker
        return worker

    def add_holiday(self, day: date, *, company_id: int = 1) -> Holiday:
        holiday = Holiday(holiday_id=len(self.holidays.items) + 1, company_id=company_id, holiday_date=day, name="Holiday")
        self.holidays.items.append(holiday)
        return holiday

    def add_exemption(
        self,
        worker_id: int,
        start: Optional[date],
        end: Optional[date],
        *,
        status: ExemptionStatus = ExemptionStatus.APPROVED,
        exemption_type: ExemptionType = ExemptionType.SICK_LEAVE,
    ) -> Exemption:
        exemption = Exemption(
            exemption_id=len(self.exemptions.items) + 1,
            worker_id=worker_id,
            exemption_type=exemption_type,
            status=status,
            start_date=start,
            end_date=end,
        )
        self.exemptions.items.append(exemption)
        return exemption

    def add_checkin(
        self,
        worker_id: int,
        day: date,
        *,
        team_id: int = 10,
        company_id: int = 1,
        attendance_status: AttendanceStatus = AttendanceStatus.GREEN,
        readiness_score: int = 80,
        readiness_status: ReadinessStatus = ReadinessStatus.GREEN,
    ) -> Checkin:
        checkin_id = self.checkins.create(
            NewCheckin(
                worker_id=worker_id,
                team_id=team_id,
                company_id=company_id,
                local_date=day,
                mood=8,
                stress=3,
                sleep=8,
                physical_health=8,
                readiness_score=readiness_score,
                readiness_status=readiness_status,
                attendance_status=attendance_status,
                minutes_late=0 if attendance_status == AttendanceStatus.GREEN else 10,
                created_at=datetime.combine(day, time(8, 0), tzinfo=timezone.utc),
            )
        )
        return self.checkins.get_by_id(checkin_id)

    def add_absence(self, worker_id: int, day: date, *, team_id: int = 10, company_id: int = 1, **fields) -> Absence:
        absence = self.absences.create_if_absent(
            worker_id=worker_id, team_id=team_id, company_id=company_id, absence_date=day
        )
        if fields:
            absence = replace(absence, **fields)
            self.absences.by_id[absence.absence_id] = absence
        return absence

    # ---- services ----

    def reconciler(self, *, lookback_days: int = 90) -> AbsenceReconciler:
        return AbsenceReconciler(
            self.workers,
            self.teams,
            self.checkins,
            self.exemptions,
            self.holidays,
            self.absences,
            lookback_days=lookback_days,
            clock=self.clock,
        )

    def absence_service(self) -> AbsenceService:
        return AbsenceService(self.absences, self.workers, self.teams, self.reconciler(), clock=self.clock)

    def checkin_service(self, *, grace_minutes: int = 15) -> CheckinService:
        return CheckinService(
            self.checkins,
            self.workers,
            self.teams,
            self.exemptions,
            self.holidays,
            self.absences,
            self.reconciler(),
            grace_minutes=grace_minutes,
            clock=self.clock,
        )

    def performance_service(self, *, reconcile: bool = False) -> PerformanceService:
        return PerformanceService(
            self.workers,
            self.teams,
            self.checkins,
            self.exemptions,
            self.holidays,
            self.absences,
            self.reconciler() if reconcile else None,
            clock=self.clock,
        )


@pytest.fixture
def world() -> World:
    w = World()
    w.add_company()
    w.add_team()
    return w


@pytest.fixture
def make_client(monkeypatch):
    """Flask test client over a World's services; `user_id` signs the session in."""
    from src.readiness_system.readiness_system.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")

    def _make(world: World, user_id: Optional[int] = None):
        container = SimpleNamespace(
            checkin_service=world.checkin_service(),
            absence_service=world.absence_service(),
            performance_service=world.performance_service(reconcile=True),
        )
        client = create_app(container).test_client()
        if user_id is not None:
            with client.session_transaction() as sess:
                sess["user_id"] = user_id
        return client

    return _make
