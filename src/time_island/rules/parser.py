"""
Rule parsing: human-readable cycle rules to immutable descriptors.

Manifesto:
    Users describe cycles the way they think about them: "60s", "60m",
    "16h 8h" (a 16 hour day starting at 08:00), "365d", "year". The parser
    turns those into a ``RuleDescriptor`` once, at registration time, so
    evaluation on every tick is pure arithmetic and can never fail.

Grammar (trimmed, case-insensitive)::

    rule     := "year" | "month" | "week" | token [ token ] { token }
    token    := number suffix
    suffix   := "s" | "m" | "h" | "d"

    ┌────────┬────────────────┬────────────────────────────────────┐
    │ suffix │ unit           │ normalized value                   │
    ├────────┼────────────────┼────────────────────────────────────┤
    │ s      │ SECONDS        │ value                              │
    │ m      │ MINUTES        │ value * 60                         │
    │ h      │ HOURS          │ value * 3600                       │
    │ d      │ DAYS           │ value (a day count, not seconds)   │
    └────────┴────────────────┴────────────────────────────────────┘

    The first token sets the duration and unit. The second token is an
    offset from midnight, only kept for HOURS rules; its own unit is
    discarded and a second token that fails to parse is ignored.

Examples:
    >>> parse_rule("16h 8h")
    RuleDescriptor(total_duration=57600.0, offset=28800.0, unit=<CycleUnit.HOURS: 'hours'>)
    >>> parse_rule("60x") is None
    True

Tags:
    rules, parsing, value-object, time-island

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any

from time_island.core.errors import RuleParseError
from time_island.rules.progress import progress as _progress
from time_island.rules.units import CycleUnit, Granularity

_SUFFIXES: dict[str, tuple[float, CycleUnit]] = {
    "s": (1.0, CycleUnit.SECONDS),
    "m": (60.0, CycleUnit.MINUTES),
    "h": (3600.0, CycleUnit.HOURS),
    "d": (1.0, CycleUnit.DAYS),
}


@dataclass(frozen=True, slots=True)
class RuleDescriptor:
    """
    Parsed, immutable representation of a rule string.

    Attributes:
        total_duration: Cycle length in seconds for SECONDS/MINUTES/HOURS,
            a day count for DAYS, 7 for WEEK and unused (0) for MONTH/YEAR.
        offset: Seconds from local midnight at which an HOURS cycle starts.
        unit: Which progress formula applies.
    """

    total_duration: float
    offset: float
    unit: CycleUnit

    @property
    def granularity(self) -> Granularity:
        return self.unit.granularity

    @property
    def is_day_based(self) -> bool:
        return self.unit.is_day_based

    def progress(self, at: datetime | None = None, tz: tzinfo | None = None) -> float:
        return _progress(self, at, tz=tz)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_duration": self.total_duration,
            "offset": self.offset,
            "unit": self.unit.value,
            "granularity": self.granularity.label,
        }


_NAMED = {
    "year": RuleDescriptor(total_duration=0.0, offset=0.0, unit=CycleUnit.YEAR),
    "month": RuleDescriptor(total_duration=0.0, offset=0.0, unit=CycleUnit.MONTH),
    "week": RuleDescriptor(total_duration=7.0, offset=0.0, unit=CycleUnit.WEEK),
}


def _parse_token(token: str) -> tuple[float, CycleUnit] | None:
    """Parse a single ``<number><suffix>`` token into (normalized value, unit)."""
    token = token.strip().lower()
    if len(token) < 2:
        return None
    suffix = _SUFFIXES.get(token[-1])
    if suffix is None:
        return None
    factor, unit = suffix
    try:
        value = float(token[:-1]) * factor
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value, unit


def parse_rule(rule: Any) -> RuleDescriptor | None:
    """Parse *rule* into a ``RuleDescriptor``; return None when malformed.

    Never raises. Durations must be positive; named rules are ``year``,
    ``month`` and ``week``.
    """
    if not isinstance(rule, str):
        return None
    text = rule.strip().lower()
    if text in _NAMED:
        return _NAMED[text]

    parts = text.split()
    if not parts:
        return None

    head = _parse_token(parts[0])
    if head is None:
        return None
    duration, unit = head
    if duration <= 0:
        return None

    offset = 0.0
    if unit is CycleUnit.HOURS and len(parts) >= 2:
        tail = _parse_token(parts[1])
        if tail is not None:
            offset = tail[0]

    return RuleDescriptor(total_duration=duration, offset=offset, unit=unit)


def parse_rule_strict(rule: Any) -> RuleDescriptor:
    """Parse *rule* or raise ``RuleParseError``."""
    descriptor = parse_rule(rule)
    if descriptor is None:
        raise RuleParseError(rule)
    return descriptor


def granularity_of(descriptor: RuleDescriptor) -> Granularity:
    """Coarsest calendar granularity at which *descriptor*'s value can change."""
    return descriptor.unit.granularity


__all__ = [
    "RuleDescriptor",
    "parse_rule",
    "parse_rule_strict",
    "granularity_of",
]
