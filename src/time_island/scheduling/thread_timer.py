"""Zero-dependency threading-based timer.

┌──────────────────────────────────────────────────────────────────────────────┐
│  THREAD TIMER                                                                 │
│                                                                               │
│   arm(first_fire, interval, cb)                                               │
│      │  cancel previous arming (generation += 1, stop_event.set())            │
│      ▼                                                                        │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │              Daemon Thread (loop)                       │                │
│   │                                                         │                │
│   │   deadline = monotonic() + delay                        │                │
│   │   while not stop_event.wait(deadline - monotonic()):    │                │
│   │       if generation changed: return                     │                │
│   │       cb()                                              │                │
│   │       deadline += interval                              │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                                                               │
│   cancel(): stop_event.set()     shutdown(): cancel(); thread.join(5.0)      │
│                                                                               │
│  Callbacks run on the timer thread. TickScheduler serializes them against    │
│  registration calls with its own lock and drops fires from stale armings.   │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Any

from time_island.core.logging import get_logger

from .protocol import Clock, FireCallback, SystemClock, TimerHealth, delay_until

logger = get_logger(__name__)


class ThreadTimer:
    """Daemon-thread timer for hosts without an asyncio loop.

    Example:
        >>> timer = ThreadTimer()
        >>> timer.arm(first_fire, 1.0, lambda: print("tick"))
        >>> # ... later ...
        >>> timer.cancel()
    """

    name = "thread"

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._generation = 0
        self._interval: float | None = None
        self._fire_count = 0
        self._last_fire: datetime | None = None

    def arm(
        self,
        first_fire: datetime,
        interval_seconds: float,
        callback: FireCallback,
    ) -> None:
        self.cancel()

        with self._lock:
            self._generation += 1
            generation = self._generation
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._interval = interval_seconds

        delay = delay_until(self._clock, first_fire)

        def _loop() -> None:
            deadline = time.monotonic() + delay
            while not stop_event.wait(max(deadline - time.monotonic(), 0.0)):
                with self._lock:
                    if generation != self._generation:
                        return
                    self._fire_count += 1
                    self._last_fire = self._clock.now()

                try:
                    callback()
                except Exception:
                    logger.exception("timer_callback_failed", timer=self.name)

                deadline += interval_seconds

        thread = threading.Thread(target=_loop, daemon=True, name="time-island-timer")
        self._thread = thread
        thread.start()
        logger.debug(
            "timer_armed",
            timer=self.name,
            first_fire=first_fire.isoformat(),
            interval_seconds=interval_seconds,
        )

    def cancel(self) -> threading.Thread | None:
        """Stop further fires without waiting for an in-flight callback."""
        with self._lock:
            self._generation += 1
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._interval = None
        return thread

    def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel and wait up to *timeout* seconds for the timer thread to exit."""
        thread = self.cancel()
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("timer_thread_did_not_stop", timer=self.name)

    @property
    def is_armed(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

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
