"""
Tick Management Module.

Background driver that invokes one simulation step per interval. Only one
driver thread is alive at a time, so ticks never overlap.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class TickManager:
    """
    Owns the auto-tick thread and the lock that serializes tick execution.

    Example:
        >>> tm = TickManager(tick_interval_seconds=0.5)
        >>> tm.start_auto_tick(lambda: None)
        >>> tm.is_active()
        True
        >>> tm.stop_auto_tick()
    """

    def __init__(self, tick_interval_seconds: float = 0.5) -> None:
        """
        Initialize tick manager.

        Args:
            tick_interval_seconds: Seconds between auto-ticks
        """
        self._tick_interval_seconds = tick_interval_seconds
        self._auto_tick_thread: threading.Thread | None = None
        self._auto_tick_stop: threading.Event | None = None
        self._advance_lock = threading.RLock()
        self._driver_lock = threading.Lock()

    def is_active(self) -> bool:
        thread = self._auto_tick_thread
        return thread is not None and thread.is_alive()

    def start_auto_tick(
        self,
        advance_callback: Callable[[], None],
        should_tick: Callable[[], bool] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> bool:
        """
        Start the auto-tick thread.

        Args:
            advance_callback: Callback to advance the simulation by one tick
            should_tick: Optional gate checked before every tick (e.g. not paused)
            on_error: Called on the driver thread with the exception when a tick
                fails; the loop stops afterwards

        Returns:
            False if a driver thread was already running
        """
        with self._driver_lock:
            if self.is_active():
                return False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run_auto_tick_loop,
                args=(stop_event, advance_callback, should_tick, on_error),
                name="techdebtsim-auto-tick",
                daemon=True,
            )
            self._auto_tick_stop = stop_event
            self._auto_tick_thread = thread
            thread.start()
        return True

    def stop_auto_tick(self, timeout: float = 2.0) -> None:
        with self._driver_lock:
            stop_event = self._auto_tick_stop
            thread = self._auto_tick_thread
            self._auto_tick_thread = None
            self._auto_tick_stop = None
        if stop_event is not None:
            stop_event.set()
        # A listener running on the driver thread may ask to stop; it cannot join itself.
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Automatic tick thread did not exit cleanly within timeout")

    def _run_auto_tick_loop(
        self,
        stop_event: threading.Event,
        advance_callback: Callable[[], None],
        should_tick: Callable[[], bool] | None,
        on_error: Callable[[Exception], None] | None,
    ) -> None:
        while not stop_event.wait(self._tick_interval_seconds):
            if should_tick is not None and not should_tick():
                continue
            try:
                advance_callback()
            except Exception as exc:
                logger.exception("Automatic tick failed; stopping auto ticks.")
                if on_error is not None:
                    on_error(exc)
                break

    def get_advance_lock(self) -> threading.RLock:
        return self._advance_lock

    def set_tick_interval(self, interval_seconds: float) -> None:
        """
        Set the auto-tick interval.

        Raises:
            ValueError: If interval is not positive
        """
        if interval_seconds <= 0:
            raise ValueError("Tick interval must be positive")
        self._tick_interval_seconds = interval_seconds

    def get_tick_interval(self) -> float:
        return self._tick_interval_seconds
