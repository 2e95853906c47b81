from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Company, Holiday, Team


class TeamRepository(Protocol):
    """Read-only view of the team/company store (owned by an external module)."""

    def get_by_id(self, team_id: int) -> Optional[Team]:
        raise NotImplementedError

    def list_led_by(self, leader_id: int) -> Sequence[Team]:
        """Active teams whose leader is `leader_id`, lowest id first."""

        raise NotImplementedError

    def get_company(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError


class HolidayRepository(Protocol):
    def list_for_company(self, *, company_id: int, start: date, end: date) -> Sequence[Holiday]:
        """Holidays with start <= holiday_date <= end."""

        raise NotImplementedError
