"""Clock and timer protocols for the tick scheduler.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TIMER PROTOCOL                                                               │
│                                                                               │
│  The scheduler decides WHEN it needs to wake (next calendar boundary of the  │
│  finest active granularity, then a fixed interval). A timer only delivers    │
│  those wake-ups.                                                              │
│                                                                               │
│   ┌──────────────────┐   arm(first_fire, interval, cb)   ┌───────────────┐   │
│   │  TickScheduler   │ ────────────────────────────────► │  Timer        │   │
│   │                  │ ◄──────────────────────────────── │  (asyncio,    │   │
│   │  _handle_fire()  │            cb()  ...  cb()        │   thread,     │   │
│   └──────────────────┘                                   │   apscheduler)│   │
│                                                          └───────────────┘   │
│                                                                               │
│  Contract:                                                                    │
│  - never fire earlier than first_fire, then repeat every interval_seconds    │
│  - arm() replaces any previous arming; cancel() stops all further fires      │
│  - callback exceptions are logged, the timer keeps running                   │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Protocol, runtime_checkable

FireCallback = Callable[[], None]

# Real timers add this much to every delay so that a calendar read made at the
# boundary already sees the new second/minute/hour/day.
EARLY_FIRE_GUARD_SECONDS = 0.005


@runtime_checkable
class Clock(Protocol):
    """Source of the current wall-clock instant."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Host wall clock, naive local time unless *tz* is given."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz) if self.tz is not None else datetime.now()


@runtime_checkable
class Timer(Protocol):
    """Protocol for pluggable wake-up facilities.

    Implementations:
        - AsyncioTimer: fires on a running asyncio event loop (default)
        - ThreadTimer: zero-dependency daemon thread
        - APSchedulerTimer: APScheduler 3.x (requires [apscheduler] extra)
    """

    name: str

    def arm(
        self,
        first_fire: datetime,
        interval_seconds: float,
        callback: FireCallback,
    ) -> None:
        """Fire *callback* at *first_fire*, then every *interval_seconds*."""
        ...

    def cancel(self) -> None:
        """Stop all further fires. Safe to call when not armed."""
        ...

    @property
    def is_armed(self) -> bool:
        ...

    def health(self) -> dict[str, Any]:
        ...


def delay_until(clock: Clock, first_fire: datetime) -> float:
    """Seconds from the clock's now until *first_fire*, never negative."""
    delay = (first_fire - clock.now()).total_seconds()
    return max(delay, 0.0) + EARLY_FIRE_GUARD_SECONDS


@dataclass
class TimerHealth:
    """Structured timer health."""

    armed: bool
    timer: str
    fire_count: int = 0
    last_fire: datetime | None = None
    interval_seconds: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "armed": self.armed,
            "timer": self.timer,
            "fire_count": self.fire_count,
            "last_fire": self.last_fire.isoformat() if self.last_fire else None,
            "interval_seconds": self.interval_seconds,
            **self.extra,
        }


__all__ = [
    "Clock",
    "EARLY_FIRE_GUARD_SECONDS",
    "FireCallback",
    "SystemClock",
    "Timer",
    "TimerHealth",
    "delay_until",
]
