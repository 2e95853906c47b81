from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class CheckinTiming:
    """Where a check-in falls against its shift, in company-local minutes since midnight."""

    checkin_minute: int
    shift_start_minute: int
    grace_minutes: int

    @property
    def grace_boundary(self) -> int:
        return self.shift_start_minute + self.grace_minutes

    @property
    def minutes_past_grace(self) -> int:
        return self.checkin_minute - self.grace_boundary


@dataclass(frozen=True)
class AttendanceDecision:
    status: AttendanceStatus
    minutes_late: int = 0


class AttendanceStrategy(ABC):
    """One punctuality rule: whether it applies to a timing, and what it decides."""

    @abstractmethod
    def matches(self, timing: CheckinTiming) -> bool:
        raise NotImplementedError

    @abstractmethod
    def decide(self, timing: CheckinTiming) -> AttendanceDecision:
        raise NotImplementedError
