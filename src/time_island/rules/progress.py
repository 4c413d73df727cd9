"""
Progress evaluation: where in its cycle a rule is at a given instant.

Every formula reads local wall-clock calendar fields of the instant and
returns a value clamped to [0.0, 1.0]:

    SECONDS  (second + fraction) mod total / total       sawtooth within a minute
    MINUTES  (minute*60 + second) mod total / total       sawtooth within an hour
    HOURS    (since_midnight - offset) / total            0 before start, saturates at 1
    DAYS     day_of_year / total
    YEAR     day_of_year / days_in_year                   366 in leap years
    MONTH    day_of_month / days_in_month
    WEEK     iso_weekday / 7                              Monday=1 .. Sunday=7

Naive datetimes are taken as local wall time. Aware datetimes are converted
to *tz* when given, otherwise to the host's local zone.

STDLIB ONLY.
"""

from __future__ import annotations

import calendar
import math
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING

from time_island.rules.units import CycleUnit

if TYPE_CHECKING:
    from time_island.rules.parser import RuleDescriptor


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def to_local(at: datetime, tz: tzinfo | None = None) -> datetime:
    """Return *at* expressed in the zone whose calendar fields we read."""
    if at.tzinfo is None:
        return at
    return at.astimezone(tz) if tz is not None else at.astimezone()


def seconds_since_midnight(at: datetime) -> float:
    return at.hour * 3600 + at.minute * 60 + at.second + at.microsecond / 1_000_000


def day_of_year(at: datetime) -> int:
    return at.timetuple().tm_yday


def days_in_year(at: datetime) -> int:
    return 366 if calendar.isleap(at.year) else 365


def days_in_month(at: datetime) -> int:
    return calendar.monthrange(at.year, at.month)[1]


def progress(
    descriptor: RuleDescriptor,
    at: datetime | None = None,
    *,
    tz: tzinfo | None = None,
) -> float:
    """Progress of *descriptor* at *at* (default: now), in [0.0, 1.0]."""
    if at is None:
        at = datetime.now(tz) if tz is not None else datetime.now()
    local = to_local(at, tz)
    unit = descriptor.unit
    total = descriptor.total_duration

    match unit:
        case CycleUnit.SECONDS:
            current = local.second + local.microsecond / 1_000_000
            return _clamp(math.fmod(current, total) / total)
        case CycleUnit.MINUTES:
            current = local.minute * 60 + local.second
            return _clamp(math.fmod(current, total) / total)
        case CycleUnit.HOURS:
            adjusted = seconds_since_midnight(local) - descriptor.offset
            if adjusted < 0:
                return 0.0
            return _clamp(adjusted / total)
        case CycleUnit.DAYS:
            return _clamp(day_of_year(local) / total)
        case CycleUnit.YEAR:
            return _clamp(day_of_year(local) / days_in_year(local))
        case CycleUnit.MONTH:
            return _clamp(local.day / days_in_month(local))
        case CycleUnit.WEEK:
            return _clamp(local.isoweekday() / 7.0)
    raise ValueError(f"Unsupported cycle unit: {unit!r}")


__all__ = [
    "progress",
    "to_local",
    "seconds_since_midnight",
    "day_of_year",
    "days_in_year",
    "days_in_month",
]
