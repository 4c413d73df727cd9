"""Tests for ThreadTimer."""

import threading
import time
from datetime import datetime, timedelta

from time_island.rules import Granularity
from time_island.scheduling import ThreadTimer, TickScheduler


def soon(seconds: float = 0.02) -> datetime:
    return datetime.now() + timedelta(seconds=seconds)


class TestThreadTimer:
    def test_initial_state(self):
        timer = ThreadTimer()
        assert not timer.is_armed
        assert timer.fire_count == 0

    def test_fires_repeatedly(self):
        timer = ThreadTimer()
        fired = threading.Event()
        calls = []

        def on_fire():
            calls.append(1)
            if len(calls) >= 3:
                fired.set()

        timer.arm(soon(), 0.02, on_fire)
        try:
            assert fired.wait(timeout=2.0)
        finally:
            timer.shutdown()
        assert timer.fire_count >= 3

    def test_shutdown_stops_thread(self):
        timer = ThreadTimer()
        timer.arm(soon(), 0.05, lambda: None)
        assert timer.is_armed
        timer.shutdown()
        assert not timer.is_armed

    def test_cancel_before_first_fire(self):
        timer = ThreadTimer()
        calls = []
        timer.arm(soon(0.1), 0.01, lambda: calls.append(1))
        timer.cancel()
        time.sleep(0.2)
        assert calls == []

    def test_cancel_when_not_armed(self):
        assert ThreadTimer().cancel() is None

    def test_rearm_replaces_previous(self):
        timer = ThreadTimer()
        first, second = [], []
        timer.arm(soon(0.05), 0.01, lambda: first.append(1))
        timer.arm(soon(0.05), 0.01, lambda: second.append(1))
        time.sleep(0.15)
        timer.shutdown()
        assert first == []
        assert second

    def test_callback_error_keeps_timer_running(self):
        timer = ThreadTimer()
        done = threading.Event()
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            done.set()

        timer.arm(soon(), 0.02, flaky)
        try:
            assert done.wait(timeout=2.0)
        finally:
            timer.shutdown()

    def test_cancel_from_callback_does_not_deadlock(self):
        timer = ThreadTimer()
        done = threading.Event()

        def cancel_self():
            timer.shutdown()
            done.set()

        timer.arm(soon(), 0.02, cancel_self)
        assert done.wait(timeout=2.0)
        assert not timer.is_armed

    def test_health(self):
        timer = ThreadTimer()
        timer.arm(soon(5.0), 60.0, lambda: None)
        try:
            health = timer.health()
        finally:
            timer.shutdown()
        assert health["armed"] is True
        assert health["timer"] == "thread"
        assert health["interval_seconds"] == 60.0


class TestSchedulerOnThread:
    def test_rearm_from_tick_handler(self):
        scheduler = TickScheduler(timer=ThreadTimer())
        received = threading.Event()

        def handler(now, changed):
            scheduler.set_registrations({"year": Granularity.DAY})
            received.set()

        scheduler.on_tick(handler)
        scheduler.set_registrations({"seconds": Granularity.SECOND})
        try:
            assert received.wait(timeout=3.0)
            assert scheduler.cadence is Granularity.DAY
        finally:
            scheduler.close()
            scheduler.timer.shutdown()
