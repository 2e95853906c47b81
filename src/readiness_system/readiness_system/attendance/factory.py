from __future__ import annotations

from typing import Optional, Sequence

from .strategies.base import AttendanceStrategy, CheckinTiming
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


class AttendanceStrategyFactory:
    """Returns the first registered strategy whose rule matches a check-in's timing."""

    def __init__(self, strategies: Optional[Sequence[AttendanceStrategy]] = None):
        self._strategies = tuple(strategies) if strategies else (OnTimeStrategy(), LateStrategy())

    def for_timing(self, timing: CheckinTiming) -> AttendanceStrategy:
        for strategy in self._strategies:
            if strategy.matches(timing):
                return strategy
        raise LookupError(f"No attendance rule covers {timing}")
