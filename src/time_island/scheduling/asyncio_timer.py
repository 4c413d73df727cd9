"""Event-loop timer: the default wake-up facility.

Fires are delivered on the asyncio loop that armed the timer, which is the
same control context the scheduler's registration calls run on. Repeats are
scheduled against the loop's monotonic clock (``deadline += interval``), so
the cadence does not drift with callback latency.

    arm(first_fire, interval, cb)
        │
        ▼
    loop.call_at(now + delay, _fire)
        │
        ▼
    _fire():  deadline += interval
              loop.call_at(deadline, _fire)   ◄── scheduled before cb runs,
              cb()                                 so cb may re-arm or cancel
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

from time_island.core.errors import TimerError
from time_island.core.logging import get_logger

from .protocol import Clock, FireCallback, SystemClock, TimerHealth, delay_until

logger = get_logger(__name__)


class AsyncioTimer:
    """Timer backed by ``loop.call_at``.

    Example:
        >>> async def main():
        ...     timer = AsyncioTimer()
        ...     timer.arm(Granularity.SECOND.next_boundary(datetime.now()), 1.0, cb)
        ...     await asyncio.sleep(5)
        ...     timer.cancel()
    """

    name = "asyncio"

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._loop = loop
        self._clock = clock or SystemClock()
        self._handle: asyncio.TimerHandle | None = None
        self._deadline: float = 0.0
        self._interval: float | None = None
        self._callback: FireCallback | None = None
        self._fire_count = 0
        self._last_fire: datetime | None = None

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise TimerError(
                "AsyncioTimer.arm() needs a running event loop or an explicit loop",
                cause=e,
            ) from e
        return self._loop

    def arm(
        self,
        first_fire: datetime,
        interval_seconds: float,
        callback: FireCallback,
    ) -> None:
        loop = self._resolve_loop()
        self.cancel()

        self._interval = interval_seconds
        self._callback = callback
        self._deadline = loop.time() + delay_until(self._clock, first_fire)
        self._handle = loop.call_at(self._deadline, self._fire)
        logger.debug(
            "timer_armed",
            timer=self.name,
            first_fire=first_fire.isoformat(),
            interval_seconds=interval_seconds,
        )

    def _fire(self) -> None:
        callback = self._callback
        if callback is None or self._interval is None or self._loop is None:
            return

        self._deadline += self._interval
        self._handle = self._loop.call_at(self._deadline, self._fire)
        self._fire_count += 1
        self._last_fire = self._clock.now()

        try:
            callback()
        except Exception:
            logger.exception("timer_callback_failed", timer=self.name)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("timer_cancelled", timer=self.name)
        self._handle = None
        self._callback = None
        self._interval = None

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    @property
    def fire_count(self) -> int:
        return self._fire_count

    def get_health(self) -> TimerHealth:
        return TimerHealth(
            armed=self.is_armed,
            timer=self.name,
            fire_count=self._fire_count,
            last_fire=self._last_fire,
            interval_seconds=self._interval,
        )

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()
