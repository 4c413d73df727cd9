"""Factory functions turning settings into engine components."""

from __future__ import annotations

from typing import TYPE_CHECKING

from time_island.scheduling.protocol import Clock, SystemClock, Timer
from time_island.scheduling.service import TickScheduler

from .settings import TimerBackend

if TYPE_CHECKING:
    from .settings import TimeIslandSettings


def create_clock(settings: TimeIslandSettings) -> Clock:
    return SystemClock(settings.tzinfo)


def create_timer(settings: TimeIslandSettings, clock: Clock | None = None) -> Timer:
    """Create a timer instance.

    Maps *settings.timer_backend* to the matching concrete class from
    :mod:`time_island.scheduling`.
    """
    clock = clock or create_clock(settings)
    match settings.timer_backend:
        case TimerBackend.ASYNCIO:
            from time_island.scheduling import AsyncioTimer

            return AsyncioTimer(clock=clock)
        case TimerBackend.THREAD:
            from time_island.scheduling import ThreadTimer

            return ThreadTimer(clock=clock)
        case TimerBackend.APSCHEDULER:
            from time_island.scheduling.apscheduler_timer import APSchedulerTimer

            return APSchedulerTimer(clock=clock)
    raise ValueError(f"Unsupported timer backend: {settings.timer_backend!r}")


def create_scheduler(settings: TimeIslandSettings) -> TickScheduler:
    """Scheduler with the configured clock and timer wired together."""
    clock = create_clock(settings)
    return TickScheduler(timer=create_timer(settings, clock), clock=clock)
