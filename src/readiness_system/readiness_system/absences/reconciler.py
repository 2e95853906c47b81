"""Absence detection.

Scans a worker's past work days for gaps that nothing explains (no check-in,
no holiday, no approved leave, no existing absence) and records each gap as a
PENDING_JUSTIFICATION absence. Reconciliation is lazy: it runs whenever a
worker-facing read needs fresh data, never on a schedule.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from ..checkins.repository import CheckinRepository
from ..common.datetime_utils import iter_days, local_date, start_of_next_local_day, utc_now
from ..core.constants import DEFAULT_ABSENCE_LOOKBACK_DAYS
from ..core.exceptions import NotFoundError
from ..exemptions.repository import ExemptionRepository
from ..teams.calendar import load_work_calendar, resolve_team_context
from ..teams.repository import HolidayRepository, TeamRepository
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .model import Absence
from .repository import AbsenceRepository

logger = logging.getLogger(__name__)


def reconciliation_baseline(worker: Worker, first_checkin_date: Optional[date], tz_name: str) -> date:
    """First local date the worker can owe a check-in.

    Priority: first check-in date, then the day after joining the team, then
    the day after the account was created.
    """
    if first_checkin_date is not None:
        baseline = first_checkin_date
    elif worker.team_joined_at is not None:
        baseline = start_of_next_local_day(worker.team_joined_at, tz_name)
    else:
        baseline = start_of_next_local_day(worker.created_at, tz_name)

    # Days before joining the current team were judged against the old
    # team's calendar; only the current assignment is scanned.
    if worker.team_joined_at is not None:
        baseline = max(baseline, start_of_next_local_day(worker.team_joined_at, tz_name))
    return baseline


class AbsenceReconciler:
    def __init__(
        self,
        workers: WorkerRepository,
        teams: TeamRepository,
        checkins: CheckinRepository,
        exemptions: ExemptionRepository,
        holidays: HolidayRepository,
        absences: AbsenceRepository,
        *,
        lookback_days: int = DEFAULT_ABSENCE_LOOKBACK_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._workers = workers
        self._teams = teams
        self._checkins = checkins
        self._exemptions = exemptions
        self._holidays = holidays
        self._absences = absences
        self._lookback_days = int(lookback_days)
        self._clock = clock

    def reconcile(self, worker_id: int, *, now: Optional[datetime] = None) -> List[Absence]:
        """Create the missing absences for `worker_id`; return only the new ones.

        Today is never evaluated. Re-running immediately returns [].
        """
        worker = self._workers.get_by_id(worker_id)
        if not worker:
            raise NotFoundError(f"Worker {worker_id} not found")

        context = resolve_team_context(self._teams, worker)
        if context is None or not context.team.is_active:
            return []

        tz = context.timezone
        today = local_date(now or self._clock(), tz)
        yesterday = today - timedelta(days=1)

        first = self._checkins.get_first_for_worker(worker.worker_id)
        start = reconciliation_baseline(worker, first.local_date if first else None, tz)
        start = max(start, today - timedelta(days=self._lookback_days))
        if start > yesterday:
            return []

        calendar = load_work_calendar(
            team=context.team,
            worker_id=worker.worker_id,
            start=start,
            end=yesterday,
            holidays=self._holidays,
            exemptions=self._exemptions,
        )
        checked_in = {
            c.local_date for c in self._checkins.list_for_worker(worker_id=worker.worker_id, start=start, end=yesterday)
        }
        recorded = {
            a.absence_date for a in self._absences.list_for_worker(worker_id=worker.worker_id, start=start, end=yesterday)
        }

        created: List[Absence] = []
        for day in iter_days(start, yesterday):
            if not calendar.is_required_day(day) or day in checked_in or day in recorded:
                continue

            absence = self._absences.create_if_absent(
                worker_id=worker.worker_id,
                team_id=context.team.team_id,
                company_id=context.company.company_id,
                absence_date=day,
            )
            if absence is None:
                logger.debug("Absence for worker %s on %s created concurrently", worker.worker_id, day)
                continue
            created.append(absence)

        if created:
            logger.info(
                "Recorded %d absence(s) for worker %s between %s and %s",
                len(created),
                worker.worker_id,
                start,
                yesterday,
            )
        return created
