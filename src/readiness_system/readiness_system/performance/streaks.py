from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import iter_days


@dataclass(frozen=True)
class StreakState:
    current: int = 0
    longest: int = 0

    def __post_init__(self):
        if self.current < 0 or self.longest < self.current:
            raise ValueError(f"Invalid streak state: current={self.current}, longest={self.longest}")


def advance_streak(
    state: StreakState,
    last_checkin_date: Optional[date],
    new_date: date,
    is_required_day: Callable[[date], bool],
) -> StreakState:
    """Streak after a check-in on `new_date`.

    The streak continues only when no required day was skipped between the
    previous check-in and this one; non-work days, holidays and approved
    leave in between do not break it.
    """
    if last_checkin_date is None or new_date <= last_checkin_date:
        current = 1
    else:
        skipped = any(is_required_day(d) for d in iter_days(last_checkin_date + timedelta(days=1), new_date - timedelta(days=1)))
        current = 1 if skipped else state.current + 1

    return StreakState(current=current, longest=max(state.longest, current))
