from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceDecision, AttendanceStrategy, CheckinTiming


class OnTimeStrategy(AttendanceStrategy):
    """At or before the end of the grace period; arriving early is still on time."""

    def matches(self, timing: CheckinTiming) -> bool:
        return timing.minutes_past_grace <= 0

    def decide(self, timing: CheckinTiming) -> AttendanceDecision:
        return AttendanceDecision(status=AttendanceStatus.GREEN)
