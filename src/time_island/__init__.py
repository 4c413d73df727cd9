"""
time-island - cyclical time progress engine.

Parses cycle rules ("60s", "16h 8h", "year"), evaluates their 0.0-1.0
progress for any instant, and schedules calendar-aligned wake-ups so each
observer is only notified when its value can change.

- time_island.rules: rule parsing and progress evaluation
- time_island.scheduling: tick scheduler and timers
- time_island.tracker: bar tracker emitting progress updates
- time_island.config: settings, bars and the config store
"""

__version__ = "0.1.0"

from time_island.rules import (  # noqa: E402
    CycleUnit,
    Granularity,
    RuleDescriptor,
    granularity_of,
    parse_rule,
    parse_rule_strict,
    progress,
)
from time_island.scheduling import TickScheduler  # noqa: E402

__all__ = [
    "CycleUnit",
    "Granularity",
    "RuleDescriptor",
    "TickScheduler",
    "granularity_of",
    "parse_rule",
    "parse_rule_strict",
    "progress",
]
