"""
Shared pytest fixtures for time-island tests.

This module provides:
- FakeClock: a settable wall clock
- ManualTimer: a Timer that only fires when the test advances it, moving the
  fake clock to each fire instant, so scheduler cadence and re-arming can be
  observed deterministically
- structlog reset between tests
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure time_island package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from time_island.config import ConfigStore, TimeIslandSettings  # noqa: E402
from time_island.scheduling import TickScheduler  # noqa: E402


class FakeClock:
    """Wall clock under test control."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def set(self, instant: datetime) -> None:
        self.current = instant

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class ManualTimer:
    """Timer driven by ``run_until``; records every arm and cancel."""

    name = "manual"

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.arms: list[tuple[datetime, float]] = []
        self.cancels = 0
        self.fire_times: list[datetime] = []
        self._next: datetime | None = None
        self._interval: float | None = None
        self._callback = None

    def arm(self, first_fire: datetime, interval_seconds: float, callback) -> None:
        self.cancel()
        self.arms.append((first_fire, interval_seconds))
        self._next = first_fire
        self._interval = interval_seconds
        self._callback = callback

    def cancel(self) -> None:
        if self._callback is not None:
            self.cancels += 1
        self._next = None
        self._interval = None
        self._callback = None

    @property
    def is_armed(self) -> bool:
        return self._callback is not None

    @property
    def next_fire(self) -> datetime | None:
        return self._next

    @property
    def interval(self) -> float | None:
        return self._interval

    def health(self) -> dict[str, Any]:
        return {"armed": self.is_armed, "timer": self.name, "fire_count": len(self.fire_times)}

    def fire_now(self) -> None:
        """Deliver one fire at the clock's current time, without moving it."""
        callback = self._callback
        self.fire_times.append(self.clock.now())
        callback()

    def run_until(self, until: datetime) -> None:
        while self._callback is not None and self._next is not None and self._next <= until:
            fire_at = self._next
            self.clock.set(fire_at)
            self._next = fire_at + timedelta(seconds=self._interval)
            self.fire_times.append(fire_at)
            self._callback()
        if self.clock.now() < until:
            self.clock.set(until)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 10, 15, 30, 12, 250000))


@pytest.fixture
def timer(clock) -> ManualTimer:
    return ManualTimer(clock)


@pytest.fixture
def scheduler(timer, clock):
    sched = TickScheduler(timer=timer, clock=clock)
    yield sched
    sched.close()


@pytest.fixture
def ticks(scheduler) -> list[tuple[datetime, frozenset]]:
    """Record every tick delivered by the ``scheduler`` fixture."""
    received: list[tuple[datetime, frozenset]] = []
    scheduler.on_tick(lambda now, changed: received.append((now, changed)))
    return received


@pytest.fixture
def settings() -> TimeIslandSettings:
    return TimeIslandSettings(_env_file=None)


@pytest.fixture
def store(settings) -> ConfigStore:
    return ConfigStore(settings=settings)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
