from __future__ import annotations

import threading
from collections import deque
from typing import Any


class MetricsRecorder:
    """Thread-safe, bounded metrics history.

    Oldest snapshots are evicted first once ``maxlen`` is reached.
    """

    def __init__(self, *, maxlen: int = 250) -> None:
        self._entries: deque[dict[str, Any]] = deque(maxlen=max(1, int(maxlen)))
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def maxlen(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: dict[str, Any]) -> None:
        with self._lock:
            self._entries.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def list(self, limit: int | None = None) -> list[dict[str, Any]]:
        with self._lock:
            data = list(self._entries)
        if not limit or limit <= 0:
            return data
        return data[-limit:]

    def summarize(self, window: int = 10) -> dict[str, float] | None:
        """Rolling averages over the last ``window`` snapshots plus cumulative revenue."""
        history = self.list()
        if not history:
            return None
        recent = history[-window:]
        count = len(recent)
        user_growth = 0.0
        if count > 1:
            user_growth = (recent[-1]["product"]["user_count"] - recent[0]["product"]["user_count"]) / count
        return {
            "average_reputation": sum(s["product"]["reputation"] for s in recent) / count,
            "user_growth_rate": user_growth,
            "average_code_quality": sum(s["codebase"]["code_quality"] for s in recent) / count,
            "average_satisfaction": sum(s["team"]["average_satisfaction"] for s in recent) / count,
            "total_revenue": sum(s["product"]["revenue"] for s in history),
        }
