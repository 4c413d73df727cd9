"""Tick scheduling for time-island.

Manifesto:
    Progress bars only need redrawing when their value can change. The
    scheduling package keeps one calendar-aligned timer at the finest
    cadence any observer needs and reports which calendar components moved
    on each wake, so every observer re-evaluates exactly when it must.

Quick start::

    from time_island.rules import parse_rule
    from time_island.scheduling import TickScheduler, AsyncioTimer

    scheduler = TickScheduler(timer=AsyncioTimer())
    scheduler.on_tick(handle)                      # handle(now, changed)
    scheduler.set_registrations({"year": parse_rule("year")})

Timers:
    • AsyncioTimer (default)   fires on the running event loop
    • ThreadTimer              zero-dependency daemon thread
    • APSchedulerTimer         requires the [apscheduler] extra

Tags:
    time-island, scheduling, timers, calendar-boundaries

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from .asyncio_timer import AsyncioTimer
from .protocol import Clock, SystemClock, Timer, TimerHealth
from .service import CalendarSnapshot, SchedulerState, SchedulerStats, TickHandler, TickScheduler
from .thread_timer import ThreadTimer


def __getattr__(name: str):  # noqa: N807
    """Lazy import the APScheduler timer so the extra stays optional."""
    if name == "APSchedulerTimer":
        from .apscheduler_timer import APSchedulerTimer

        return APSchedulerTimer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "APSchedulerTimer",
    "AsyncioTimer",
    "CalendarSnapshot",
    "Clock",
    "SchedulerState",
    "SchedulerStats",
    "SystemClock",
    "ThreadTimer",
    "TickHandler",
    "TickScheduler",
    "Timer",
    "TimerHealth",
]
