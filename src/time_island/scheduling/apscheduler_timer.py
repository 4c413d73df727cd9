"""APScheduler-based timer.

Wraps APScheduler 3.x ``BackgroundScheduler`` for hosts that already run
one and want the island's wake-ups in the same job store. The first fire is
the interval trigger's ``start_date``, so wake-ups stay aligned to calendar
boundaries.

Requires the ``[apscheduler]`` extra::

    pip install time-island[apscheduler]

.. note::

    Callbacks run on APScheduler's worker threads. ``max_instances=1`` and
    ``coalesce=True`` keep a late job from running twice, and the tick
    scheduler drops fires from a stale arming.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from time_island.core.logging import get_logger

from .protocol import (
    EARLY_FIRE_GUARD_SECONDS,
    Clock,
    FireCallback,
    SystemClock,
    TimerHealth,
)

logger = get_logger(__name__)

_JOB_ID = "time_island_tick"


def _require_apscheduler():
    """Validate that apscheduler is installed."""
    try:
        from apscheduler.schedulers.background import BackgroundScheduler  # noqa: F401

        return BackgroundScheduler
    except ImportError:
        raise ImportError(
            "APScheduler is required for APSchedulerTimer. "
            "Install it with: pip install time-island[apscheduler]"
        ) from None


class APSchedulerTimer:
    """APScheduler-based timer.

    Example::

        >>> timer = APSchedulerTimer()
        >>> timer.arm(first_fire, 60.0, callback)
        >>> # … later …
        >>> timer.shutdown()
    """

    name: str = "apscheduler"

    def __init__(self, scheduler: Any = None, clock: Clock | None = None) -> None:
        if scheduler is None:
            BackgroundScheduler = _require_apscheduler()  # noqa: N806
            scheduler = BackgroundScheduler()
        self._scheduler = scheduler
        self._clock = clock or SystemClock()
        self._armed = False
        self._interval: float | None = None
        self._fire_count: int = 0
        self._last_fire: datetime | None = None

    def arm(
        self,
        first_fire: datetime,
        interval_seconds: float,
        callback: FireCallback,
    ) -> None:
        """Register an interval job starting at *first_fire*."""

        def _fire_wrapper() -> None:
            self._fire_count += 1
            self._last_fire = self._clock.now()
            try:
                callback()
            except Exception:
                logger.exception("timer_callback_failed", timer=self.name)

        start = first_fire + timedelta(seconds=EARLY_FIRE_GUARD_SECONDS)
        self._scheduler.add_job(
            _fire_wrapper,
            "interval",
            seconds=interval_seconds,
            start_date=start,
            id=_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=max(int(interval_seconds), 1),
        )
        if not self._scheduler.running:
            self._scheduler.start()
        self._armed = True
        self._interval = interval_seconds
        logger.debug(
            "timer_armed",
            timer=self.name,
            first_fire=first_fire.isoformat(),
            interval_seconds=interval_seconds,
        )

    def cancel(self) -> None:
        if self._armed and self._scheduler.get_job(_JOB_ID) is not None:
            self._scheduler.remove_job(_JOB_ID)
        self._armed = False
        self._interval = None

    def shutdown(self) -> None:
        """Cancel and stop the underlying scheduler."""
        self.cancel()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            logger.info("apscheduler_timer_stopped")

    @property
    def is_armed(self) -> bool:
        return self._armed

    def get_health(self) -> TimerHealth:
        running = getattr(self._scheduler, "running", False)
        return TimerHealth(
            armed=self._armed,
            timer=self.name,
            fire_count=self._fire_count,
            last_fire=self._last_fire,
            interval_seconds=self._interval,
            extra={"scheduler_running": running},
        )

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()
