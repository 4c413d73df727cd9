"""Configuration: validated settings, bar definitions, the config store and factories.

Architecture::

    settings.py       TimeIslandSettings (pydantic-settings, TIME_ISLAND_ env prefix)
    bars.py           BarConfig, default_bars(), ConfigStore
    factory.py        create_clock / create_timer / create_scheduler
"""

from .bars import DEFAULT_RULE, BarConfig, ConfigStore, bars_from_mapping, default_bars
from .factory import create_clock, create_scheduler, create_timer
from .settings import TimeFormat, TimeIslandSettings, TimerBackend

__all__ = [
    "DEFAULT_RULE",
    "BarConfig",
    "ConfigStore",
    "TimeFormat",
    "TimeIslandSettings",
    "TimerBackend",
    "bars_from_mapping",
    "create_clock",
    "create_scheduler",
    "create_timer",
    "default_bars",
]
