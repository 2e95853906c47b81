from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Optional, Sequence

from ..common.datetime_utils import get_zone
from ..core.exceptions import ConfigurationError
from ..exemptions.model import Exemption
from ..exemptions.repository import ExemptionRepository
from ..workers.model import Worker
from .model import Company, Team
from .repository import HolidayRepository, TeamRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamContext:
    team: Team
    company: Company

    @property
    def timezone(self) -> str:
        return self.company.timezone


@dataclass(frozen=True)
class WorkCalendar:
    """One worker's required days over a date range.

    A required day is a team work day that is neither a company holiday nor
    covered by an APPROVED exemption.
    """

    team: Team
    holidays: FrozenSet[date]
    exemptions: Sequence[Exemption]

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays

    def is_exempted(self, day: date) -> bool:
        return any(e.covers(day) for e in self.exemptions)

    def is_required_day(self, day: date) -> bool:
        return self.team.is_work_day(day) and not self.is_holiday(day) and not self.is_exempted(day)


def resolve_team_context(teams: TeamRepository, worker: Worker) -> Optional[TeamContext]:
    """Team and company of a worker, or None when the worker has no team.

    A dangling team/company reference or an unusable timezone is a
    ConfigurationError, never a silent skip.
    """
    if worker.team_id is None:
        return None

    team = teams.get_by_id(worker.team_id)
    if team is None:
        logger.error("Worker %s references missing team %s", worker.worker_id, worker.team_id)
        raise ConfigurationError(f"Team {worker.team_id} not found for worker {worker.worker_id}")

    company = teams.get_company(team.company_id)
    if company is None:
        logger.error("Team %s references missing company %s", team.team_id, team.company_id)
        raise ConfigurationError(f"Company {team.company_id} not found for team {team.team_id}")

    try:
        get_zone(company.timezone)
    except ConfigurationError:
        logger.error("Company %s has an unusable timezone %r", company.company_id, company.timezone)
        raise

    return TeamContext(team=team, company=company)


def company_timezone(teams: TeamRepository, company_id: int) -> str:
    """IANA zone of a company, for workers that have no team to resolve it through."""
    company = teams.get_company(company_id)
    if company is None:
        logger.error("Company %s not found", company_id)
        raise ConfigurationError(f"Company {company_id} not found")
    get_zone(company.timezone)
    return company.timezone


def load_work_calendar(
    *,
    team: Team,
    worker_id: int,
    start: date,
    end: date,
    holidays: HolidayRepository,
    exemptions: ExemptionRepository,
) -> WorkCalendar:
    holiday_dates = frozenset(
        h.holiday_date for h in holidays.list_for_company(company_id=team.company_id, start=start, end=end)
    )
    approved = tuple(exemptions.list_approved_overlapping(worker_id=worker_id, start=start, end=end))
    return WorkCalendar(team=team, holidays=holiday_dates, exemptions=approved)
