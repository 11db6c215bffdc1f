"""
EventSystem module for the tech-debt simulation.

Synchronous listener registry. Listeners for an event are called in
registration order on the thread that emits it.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class SimulationEvent(str, Enum):
    STARTED = "simulation_started"
    PAUSED = "simulation_paused"
    RESUMED = "simulation_resumed"
    STOPPED = "simulation_stopped"
    RESET = "simulation_reset"
    STEP_COMPLETED = "step_completed"


class EventSystem:
    """
    Observer registry used by the simulation to publish lifecycle and step events.

    Example:
        >>> events = EventSystem()
        >>> events.add_listener(SimulationEvent.STEP_COMPLETED, lambda data: print(data["step"]))
        >>> events.emit(SimulationEvent.STEP_COMPLETED, {"step": 1})
        1
    """

    def __init__(self) -> None:
        self._listeners: list[tuple[str, Listener]] = []
        self._lock = threading.Lock()

    @staticmethod
    def _key(event: SimulationEvent | str) -> str:
        return event.value if isinstance(event, SimulationEvent) else str(event)

    def add_listener(self, event: SimulationEvent | str, callback: Listener) -> None:
        with self._lock:
            self._listeners.append((self._key(event), callback))

    def remove_listener(self, event: SimulationEvent | str, callback: Listener) -> bool:
        key = self._key(event)
        with self._lock:
            before = len(self._listeners)
            self._listeners = [(name, cb) for name, cb in self._listeners if not (name == key and cb == callback)]
            return len(self._listeners) != before

    def listener_count(self, event: SimulationEvent | str | None = None) -> int:
        with self._lock:
            if event is None:
                return len(self._listeners)
            key = self._key(event)
            return sum(1 for name, _ in self._listeners if name == key)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def emit(self, event: SimulationEvent | str, data: Any = None) -> int:
        """
        Deliver ``data`` to every listener registered for ``event``.

        Returns:
            Number of listeners that ran without raising
        """
        key = self._key(event)
        with self._lock:
            targets = [cb for name, cb in self._listeners if name == key]

        delivered = 0
        for callback in targets:
            try:
                callback(data)
                delivered += 1
            except Exception:
                logger.exception("Listener for %s failed", key)
        return delivered
