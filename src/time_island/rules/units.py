"""
Cycle units and notification granularities.

A ``CycleUnit`` says which progress formula a rule uses; a ``Granularity``
says which calendar component has to change before that value can change.
Every unit maps to exactly one granularity, and that map is what lets the
scheduler pick a wake-up cadence from a set of rules.

    ┌──────────────────────────┬──────────────┬────────────┐
    │ CycleUnit                │ Granularity  │ Interval   │
    ├──────────────────────────┼──────────────┼────────────┤
    │ SECONDS                  │ SECOND       │ 1 s        │
    │ MINUTES                  │ MINUTE       │ 60 s       │
    │ HOURS                    │ HOUR         │ 3600 s     │
    │ DAYS, WEEK, MONTH, YEAR  │ DAY          │ 86400 s    │
    └──────────────────────────┴──────────────┴────────────┘

STDLIB ONLY.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum, IntEnum


class CycleUnit(str, Enum):
    """Unit of a rule's cycle."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def is_day_based(self) -> bool:
        """True when the value only changes once per calendar day."""
        return self in _DAY_BASED

    @property
    def granularity(self) -> Granularity:
        return _UNIT_GRANULARITY[self]


class Granularity(IntEnum):
    """Calendar change-detection level, ordered from finest to coarsest."""

    SECOND = 0
    MINUTE = 1
    HOUR = 2
    DAY = 3

    @property
    def interval_seconds(self) -> float:
        """Fixed spacing between consecutive boundaries."""
        return _INTERVALS[self]

    @property
    def label(self) -> str:
        return self.name.lower()

    def next_boundary(self, now: datetime) -> datetime:
        """Return the first calendar boundary of this granularity after *now*.

        Second boundaries are whole-second marks; minute and hour boundaries
        are the start of the next calendar minute/hour; day boundaries are
        local midnight of the next day. *now* keeps its tzinfo.
        """
        if self is Granularity.SECOND:
            start = now.replace(microsecond=0)
            return start + timedelta(seconds=1)
        if self is Granularity.MINUTE:
            start = now.replace(second=0, microsecond=0)
            return start + timedelta(minutes=1)
        if self is Granularity.HOUR:
            start = now.replace(minute=0, second=0, microsecond=0)
            return start + timedelta(hours=1)
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return start + timedelta(days=1)

    @classmethod
    def finest(cls, granularities) -> Granularity | None:
        """Finest granularity in *granularities*, or None when empty."""
        return min(granularities, default=None)


_DAY_BASED = frozenset({CycleUnit.DAYS, CycleUnit.WEEK, CycleUnit.MONTH, CycleUnit.YEAR})

_UNIT_GRANULARITY = {
    CycleUnit.SECONDS: Granularity.SECOND,
    CycleUnit.MINUTES: Granularity.MINUTE,
    CycleUnit.HOURS: Granularity.HOUR,
    CycleUnit.DAYS: Granularity.DAY,
    CycleUnit.WEEK: Granularity.DAY,
    CycleUnit.MONTH: Granularity.DAY,
    CycleUnit.YEAR: Granularity.DAY,
}

_INTERVALS = {
    Granularity.SECOND: 1.0,
    Granularity.MINUTE: 60.0,
    Granularity.HOUR: 3600.0,
    Granularity.DAY: 86400.0,
}


__all__ = ["CycleUnit", "Granularity"]
