from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import FrozenSet, Iterable, Optional

from ..common.datetime_utils import DAY_CODES, weekday_code
from ..core.exceptions import ValidationError


def parse_work_days(value: str | Iterable[str]) -> FrozenSet[str]:
    """'MON,TUE,WED' (or an iterable of codes) -> frozenset of weekday codes."""
    items = value.split(",") if isinstance(value, str) else list(value)
    codes = frozenset(str(item).strip().upper() for item in items if str(item).strip())
    unknown = codes - set(DAY_CODES)
    if unknown:
        raise ValidationError(f"Unknown work day codes: {', '.join(sorted(unknown))}")
    return codes


@dataclass(frozen=True)
class Company:
    company_id: int
    name: str
    timezone: str


@dataclass(frozen=True)
class Team:
    """Domain entity: a team's work calendar and shift window (local times)."""

    team_id: int
    company_id: int
    name: str
    work_days: FrozenSet[str]
    shift_start: time
    shift_end: time
    leader_id: Optional[int] = None
    is_active: bool = True

    def is_work_day(self, day: date) -> bool:
        return weekday_code(day) in self.work_days

    @property
    def is_overnight(self) -> bool:
        return self.shift_end <= self.shift_start


@dataclass(frozen=True)
class Holiday:
    holiday_id: int
    company_id: int
    holiday_date: date
    name: str
