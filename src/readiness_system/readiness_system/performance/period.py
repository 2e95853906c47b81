from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from ..common.datetime_utils import iter_days
from ..core.constants import PERIOD_DAYS
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Period:
    """Inclusive range of company-local dates."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValidationError("Period start must be on or before its end")

    @classmethod
    def custom(cls, start: date, end: date) -> "Period":
        return cls(start=start, end=end)

    @classmethod
    def last_n_days(cls, days: int, today: date) -> "Period":
        """The `days` local dates ending with `today`."""
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValidationError("days must be a positive integer")
        return cls(start=today - timedelta(days=days - 1), end=today)

    @classmethod
    def named(cls, name: str, today: date) -> "Period":
        key = (name or "").strip().lower()
        if key not in PERIOD_DAYS:
            raise ValidationError(f"period must be one of: {', '.join(PERIOD_DAYS)}")
        return cls.last_n_days(PERIOD_DAYS[key], today)

    def days(self) -> Iterator[date]:
        return iter_days(self.start, self.end)
