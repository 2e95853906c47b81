from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import AttendanceDecision, AttendanceStrategy, CheckinTiming


class LateStrategy(AttendanceStrategy):
    # Lateness is counted from the grace boundary, not from shift start.

    def matches(self, timing: CheckinTiming) -> bool:
        return timing.minutes_past_grace > 0

    def decide(self, timing: CheckinTiming) -> AttendanceDecision:
        return AttendanceDecision(status=AttendanceStatus.YELLOW, minutes_late=timing.minutes_past_grace)
