"""Time rules: parsing rule strings and evaluating cycle progress.

Quick start::

    from time_island.rules import parse_rule, progress, granularity_of

    rule = parse_rule("16h 8h")      # 16 hour cycle starting at 08:00
    progress(rule)                   # 0.0 .. 1.0 for "now"
    granularity_of(rule)             # Granularity.HOUR
"""

from .parser import RuleDescriptor, granularity_of, parse_rule, parse_rule_strict
from .progress import progress
from .units import CycleUnit, Granularity

__all__ = [
    "CycleUnit",
    "Granularity",
    "RuleDescriptor",
    "granularity_of",
    "parse_rule",
    "parse_rule_strict",
    "progress",
]
