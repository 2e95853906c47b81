from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import TimeOfDay, minutes_of_day, minutes_since_local_midnight, parse_hhmm
from ..core.constants import DEFAULT_LATE_GRACE_MINUTES
from ..core.exceptions import ValidationError
from .factory import AttendanceStrategyFactory
from .strategies.base import AttendanceDecision, CheckinTiming

_default_factory = AttendanceStrategyFactory()


def resolve_attendance(
    checkin_at: datetime,
    shift_start: TimeOfDay,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    *,
    timezone: str,
    factory: Optional[AttendanceStrategyFactory] = None,
) -> AttendanceDecision:
    """Classify a check-in's punctuality against the shift start.

    GREEN/0 when the local check-in minute is <= shift_start + grace, otherwise
    YELLOW with minutes_late = minute - (shift_start + grace).
    ABSENT/EXCUSED are never decided here; they belong to the Absence entity.
    """
    if isinstance(grace_minutes, bool) or not isinstance(grace_minutes, int) or grace_minutes < 0:
        raise ValidationError("Grace period must be a non-negative number of minutes")

    timing = CheckinTiming(
        checkin_minute=minutes_since_local_midnight(checkin_at, timezone),
        shift_start_minute=minutes_of_day(parse_hhmm(shift_start)),
        grace_minutes=grace_minutes,
    )
    return (factory or _default_factory).for_timing(timing).decide(timing)
