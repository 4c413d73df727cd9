"""Tick scheduler: one timer, aligned to the finest granularity anyone needs.

Manifesto:
    A year bar must not wake the host every second, and a seconds bar must
    wake it every second. Rather than one timer per observer, the scheduler
    keeps a single timer at the cadence of the finest registered
    granularity, aligned to calendar boundaries, and tells the caller on
    each wake which calendar components actually changed. Observers filter
    themselves by membership in that set.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TICK SCHEDULER STATE MACHINE                                                 │
│                                                                               │
│          set_registrations({..})                                              │
│   ┌──────┐  non-empty  ┌────────┐  any update: cancel, rebaseline, re-arm     │
│   │ IDLE │ ──────────► │ ACTIVE │ ◄──────────────────────────────┐            │
│   └──────┘ ◄────────── └────────┘ ───────────────────────────────┘            │
│       empty table / close()                                                   │
│                                                                               │
│  Arming:                                                                      │
│    cadence    = finest(active granularities)                                  │
│    baseline   = CalendarSnapshot(now)                                         │
│    timer.arm(cadence.next_boundary(now), cadence.interval_seconds, fire)      │
│                                                                               │
│  On fire:                                                                     │
│    snapshot = CalendarSnapshot(now)                                           │
│    changed  = {g for each component that differs from baseline}              │
│    baseline = snapshot                                                        │
│    changed ? on_tick(now, changed) : no-op                                    │
└──────────────────────────────────────────────────────────────────────────────┘

Clock discontinuities (sleep, manual adjustment, zone change) are not
special-cased: a late wake simply reports every component that moved, and
consumers treat "changed" as "re-derive", never as "advanced by one".

Tags:
    scheduling, state-machine, calendar-boundaries, coalescing, time-island

Doc-Types:
    api-reference, architecture-diagram
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from time_island.core.errors import RegistrationError
from time_island.core.logging import get_logger
from time_island.rules.parser import RuleDescriptor
from time_island.rules.progress import day_of_year
from time_island.rules.units import Granularity

from .asyncio_timer import AsyncioTimer
from .protocol import Clock, SystemClock, Timer

logger = get_logger(__name__)

TickHandler = Callable[[datetime, frozenset[Granularity]], None]


class SchedulerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True, slots=True)
class CalendarSnapshot:
    """Calendar components used to detect boundary crossings."""

    second: int
    minute: int
    hour: int
    day_of_year: int

    @classmethod
    def at(cls, instant: datetime) -> CalendarSnapshot:
        return cls(
            second=instant.second,
            minute=instant.minute,
            hour=instant.hour,
            day_of_year=day_of_year(instant),
        )

    def changed_since(self, previous: CalendarSnapshot | None) -> frozenset[Granularity]:
        """Granularities whose component differs from *previous* (all when unset)."""
        if previous is None:
            return frozenset(Granularity)
        changed = set()
        if self.second != previous.second:
            changed.add(Granularity.SECOND)
        if self.minute != previous.minute:
            changed.add(Granularity.MINUTE)
        if self.hour != previous.hour:
            changed.add(Granularity.HOUR)
        if self.day_of_year != previous.day_of_year:
            changed.add(Granularity.DAY)
        return frozenset(changed)


@dataclass
class SchedulerStats:
    """Counters for scheduler activity."""

    fire_count: int = 0
    empty_fires: int = 0
    stale_fires: int = 0
    ticks_delivered: int = 0
    arm_count: int = 0
    last_fire: datetime | None = None


class TickScheduler:
    """Registration table plus a single calendar-aligned timer.

    Example:
        >>> scheduler = TickScheduler(timer=AsyncioTimer())
        >>> scheduler.on_tick(lambda now, changed: print(now, sorted(changed)))
        >>> scheduler.set_registrations({
        ...     "seconds": parse_rule("60s"),
        ...     "year": Granularity.DAY,
        ... })
        >>> scheduler.cadence
        <Granularity.SECOND: 0>
        >>> scheduler.close()
    """

    def __init__(
        self,
        timer: Timer | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.timer = timer or AsyncioTimer(clock=self.clock)

        self._registrations: dict[Granularity, set[str]] = {g: set() for g in Granularity}
        self._callback: TickHandler | None = None
        self._baseline: CalendarSnapshot | None = None
        self._cadence: Granularity | None = None
        self._generation = 0
        self._lock = threading.RLock()
        self._stats = SchedulerStats()

    # === Registration API ===

    def on_tick(self, callback: TickHandler | None) -> None:
        """Set the handler receiving ``(now, changed_granularities)``."""
        with self._lock:
            self._callback = callback

    def set_registrations(
        self,
        registrations: Mapping[str, RuleDescriptor | Granularity],
    ) -> None:
        """Replace the registration table and re-arm the timer.

        Values may be parsed descriptors or granularities. The whole mapping
        is validated before any state changes.
        """
        table: dict[Granularity, set[str]] = {g: set() for g in Granularity}
        for name, value in registrations.items():
            if not isinstance(name, str) or not name:
                raise RegistrationError(name, value, f"Registration names must be non-empty strings, got {name!r}")
            if isinstance(value, RuleDescriptor):
                granularity = value.granularity
            elif isinstance(value, Granularity):
                granularity = value
            else:
                raise RegistrationError(name, value)
            table[granularity].add(name)

        with self._lock:
            self._registrations = table
            self._rearm()

    def registered_names(self, granularity: Granularity) -> frozenset[str]:
        with self._lock:
            return frozenset(self._registrations[granularity])

    @property
    def registrations(self) -> dict[str, Granularity]:
        with self._lock:
            return {
                name: granularity
                for granularity, names in self._registrations.items()
                for name in names
            }

    @property
    def active_granularities(self) -> frozenset[Granularity]:
        with self._lock:
            return frozenset(g for g, names in self._registrations.items() if names)

    @property
    def cadence(self) -> Granularity | None:
        return self._cadence

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.ACTIVE if self._cadence is not None else SchedulerState.IDLE

    @property
    def stats(self) -> SchedulerStats:
        return self._stats

    # === Lifecycle ===

    def close(self) -> None:
        """Cancel the timer, clear the table and drop the handler."""
        with self._lock:
            self._registrations = {g: set() for g in Granularity}
            self._callback = None
            self._rearm()
        logger.debug("scheduler_closed")

    def __enter__(self) -> TickScheduler:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def health(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "cadence": self._cadence.label if self._cadence is not None else None,
            "registrations": len(self.registrations),
            "timer": self.timer.health(),
            "stats": {
                "fire_count": self._stats.fire_count,
                "empty_fires": self._stats.empty_fires,
                "stale_fires": self._stats.stale_fires,
                "ticks_delivered": self._stats.ticks_delivered,
                "arm_count": self._stats.arm_count,
                "last_fire": self._stats.last_fire.isoformat() if self._stats.last_fire else None,
            },
        }

    # === Internals ===

    def _rearm(self) -> None:
        """Cancel, recompute cadence, rebaseline and arm. Caller holds the lock."""
        self._generation += 1
        self.timer.cancel()

        previous = self._cadence
        cadence = Granularity.finest(self.active_granularities)
        self._cadence = cadence

        if cadence is None:
            self._baseline = None
            if previous is not None:
                logger.info("scheduler_idle")
            return

        now = self.clock.now()
        self._baseline = CalendarSnapshot.at(now)
        generation = self._generation
        first_fire = cadence.next_boundary(now)

        try:
            self.timer.arm(
                first_fire,
                cadence.interval_seconds,
                lambda: self._handle_fire(generation),
            )
        except Exception:
            self._cadence = None
            self._baseline = None
            raise
        self._stats.arm_count += 1
        logger.info(
            "scheduler_armed",
            cadence=cadence.label,
            previous=previous.label if previous is not None else None,
            first_fire=first_fire.isoformat(),
            names=sum(len(n) for n in self._registrations.values()),
        )

    def _handle_fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                self._stats.stale_fires += 1
                return

            now = self.clock.now()
            snapshot = CalendarSnapshot.at(now)
            changed = snapshot.changed_since(self._baseline)
            self._baseline = snapshot
            self._stats.fire_count += 1
            self._stats.last_fire = now

            if not changed:
                self._stats.empty_fires += 1
                logger.debug("scheduler_fire_without_change", at=now.isoformat())
                return

            callback = self._callback
            if callback is None:
                return
            self._stats.ticks_delivered += 1
            callback(now, changed)


__all__ = [
    "CalendarSnapshot",
    "SchedulerState",
    "SchedulerStats",
    "TickHandler",
    "TickScheduler",
]
