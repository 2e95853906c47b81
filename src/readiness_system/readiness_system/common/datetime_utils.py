"""Company-local calendar primitives.

Every comparison between "today", a check-in's day, an exemption range and a
shift boundary goes through these helpers. A company's midnight does not line
up with UTC midnight, so naive UTC date math is never used.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Iterator, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ConfigurationError, ValidationError

UTC = timezone.utc

# Index matches date.weekday(): Monday == 0.
DAY_CODES = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")

TimeOfDay = Union[str, time]


@lru_cache(maxsize=64)
def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA timezone identifier.

    Raises ConfigurationError for anything unknown. Callers that want a fallback
    must choose it explicitly.
    """
    if not tz_name or not isinstance(tz_name, str):
        raise ConfigurationError(f"Missing timezone identifier: {tz_name!r}")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone identifier: {tz_name!r}") from exc


def utc_now() -> datetime:
    """Current instant (UTC).

    Note: Wrapped so services can take an injected clock and tests can pin time.
    """
    return datetime.now(UTC)


def as_utc(instant: datetime) -> datetime:
    """Normalize an instant to aware UTC.

    Naive values are treated as UTC (the storage convention for DATETIME columns).
    """
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def to_local(instant: datetime, tz_name: str) -> datetime:
    return as_utc(instant).astimezone(get_zone(tz_name))


def local_date(instant: datetime, tz_name: str) -> date:
    """Company-local calendar date of an instant."""
    return to_local(instant, tz_name).date()


def local_date_str(instant: datetime, tz_name: str) -> str:
    return local_date(instant, tz_name).isoformat()


def weekday_code(day: date) -> str:
    return DAY_CODES[day.weekday()]


def local_weekday_code(instant: datetime, tz_name: str) -> str:
    return weekday_code(local_date(instant, tz_name))


def day_bounds(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """UTC instants bounding a local day as a half-open interval [start, end)."""
    zone = get_zone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(UTC), end.astimezone(UTC)


def parse_hhmm(value: TimeOfDay) -> time:
    """Parse a local time-of-day given as 'HH:MM' (or pass a time through)."""
    if isinstance(value, time):
        return value
    try:
        return datetime.strptime((value or "").strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"Invalid time of day (HH:MM): {value!r}")


def local_time_to_instant(time_of_day: TimeOfDay, day: date, tz_name: str) -> datetime:
    """UTC instant at which `time_of_day` occurs on local `day`.

    Times inside a DST gap resolve with the pre-transition offset (fold=0).
    """
    local = datetime.combine(day, parse_hhmm(time_of_day), tzinfo=get_zone(tz_name))
    return local.astimezone(UTC)


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_since_local_midnight(instant: datetime, tz_name: str) -> int:
    """Whole minutes since local midnight (seconds are truncated)."""
    local = to_local(instant, tz_name)
    return local.hour * 60 + local.minute


def start_of_next_local_day(instant: datetime, tz_name: str) -> date:
    return local_date(instant, tz_name) + timedelta(days=1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each day in [start, end], inclusive. Empty when start > end."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")
