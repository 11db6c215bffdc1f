"""
Tests for TickManager module.

Tests interval handling and auto-tick threading.
"""

import threading
import time
from unittest.mock import Mock

import pytest

from techdebtsim.sim_manager.core import TickManager


class TestTickInterval:
    """Test tick interval configuration."""

    def test_default_interval(self):
        tm = TickManager()
        assert tm.get_tick_interval() == 0.5

    def test_set_tick_interval(self):
        tm = TickManager()
        tm.set_tick_interval(0.25)
        assert tm.get_tick_interval() == 0.25

    @pytest.mark.parametrize("interval", [0, -1])
    def test_set_tick_interval_rejects_non_positive(self, interval):
        tm = TickManager()
        with pytest.raises(ValueError):
            tm.set_tick_interval(interval)

    def test_advance_lock_is_reentrant(self):
        lock = TickManager().get_advance_lock()
        with lock:
            assert lock.acquire(blocking=False)
            lock.release()


class TestAutoTick:
    """Test automatic tick thread lifecycle."""

    def test_start_auto_tick_creates_thread(self):
        tm = TickManager(tick_interval_seconds=0.05)
        assert tm.start_auto_tick(Mock()) is True
        try:
            assert tm.is_active()
            assert tm._auto_tick_thread.name == "techdebtsim-auto-tick"
        finally:
            tm.stop_auto_tick()

    def test_second_start_is_rejected(self):
        tm = TickManager(tick_interval_seconds=0.05)
        tm.start_auto_tick(Mock())
        try:
            first_thread = tm._auto_tick_thread
            assert tm.start_auto_tick(Mock()) is False
            assert tm._auto_tick_thread is first_thread
        finally:
            tm.stop_auto_tick()

    def test_stop_auto_tick_stops_thread(self):
        tm = TickManager(tick_interval_seconds=0.05)
        tm.start_auto_tick(Mock())
        thread = tm._auto_tick_thread

        tm.stop_auto_tick()

        assert not thread.is_alive()
        assert tm._auto_tick_thread is None
        assert tm._auto_tick_stop is None
        assert not tm.is_active()

    def test_stop_without_start_is_safe(self):
        tm = TickManager()
        tm.stop_auto_tick()
        assert not tm.is_active()

    def test_auto_tick_loop_advances(self):
        ticked = threading.Event()
        callback = Mock(side_effect=ticked.set)
        tm = TickManager(tick_interval_seconds=0.02)

        tm.start_auto_tick(callback)
        try:
            assert ticked.wait(2.0)
        finally:
            tm.stop_auto_tick()
        assert callback.call_count >= 1

    def test_gate_suppresses_ticks(self):
        callback = Mock()
        tm = TickManager(tick_interval_seconds=0.02)

        tm.start_auto_tick(callback, should_tick=lambda: False)
        time.sleep(0.15)
        tm.stop_auto_tick()

        callback.assert_not_called()

    def test_auto_tick_handles_advance_failure(self):
        callback = Mock(side_effect=RuntimeError("boom"))
        tm = TickManager(tick_interval_seconds=0.02)

        tm.start_auto_tick(callback)
        thread = tm._auto_tick_thread
        thread.join(timeout=2.0)

        assert not thread.is_alive()
        assert callback.call_count == 1
        tm.stop_auto_tick()

    def test_auto_tick_reports_failure_to_on_error(self):
        failed = threading.Event()
        errors = []

        def record(exc):
            errors.append(exc)
            failed.set()

        tm = TickManager(tick_interval_seconds=0.02)
        tm.start_auto_tick(Mock(side_effect=RuntimeError("boom")), on_error=record)

        assert failed.wait(2.0)
        assert [str(exc) for exc in errors] == ["boom"]
        tm.stop_auto_tick()
        assert not tm.is_active()

    def test_stop_from_driver_thread_does_not_deadlock(self):
        tm = TickManager(tick_interval_seconds=0.02)
        stopped = threading.Event()

        def stop_self():
            tm.stop_auto_tick()
            stopped.set()

        tm.start_auto_tick(stop_self)
        assert stopped.wait(2.0)
        assert not tm.is_active()
