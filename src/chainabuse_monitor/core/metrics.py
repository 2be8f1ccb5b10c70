"""
Purpose: In-process counters for poll cycles, alerts and log volume, with JSON-lines snapshots.
Constraints: No external dependencies; file-based output only.
"""

from __future__ import annotations

import json
import threading
import time
from collections import defaultdict, deque
from pathlib import Path
from typing import Deque, Dict, Optional

CYCLE = "poll_cycle"
ALERT = "alert"


def _utc(ts: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(ts))


class MetricsCollector:
    """Thread-safe event counters plus a few monitor gauges.

    Every event name keeps a total, a failure count and a rolling window of
    timestamps used for the per-minute rate in snapshots.
    """

    def __init__(self, window_seconds: int = 300):
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._started = time.time()
        self._totals: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, int] = defaultdict(int)
        self._recent: Dict[str, Deque[float]] = defaultdict(deque)
        self._gauges: Dict[str, float] = {}
        self._last_cycle: Optional[float] = None
        self._last_cycle_seconds: Optional[float] = None

    def record(self, name: str, success: bool = True) -> None:
        now = time.time()
        with self._lock:
            self._totals[name] += 1
            if not success:
                self._failures[name] += 1
            window = self._recent[name]
            window.append(now)
            self._trim(window, now)

    def record_error(self, name: str = "error") -> None:
        self.record(name, success=False)

    def record_cycle(self, success: bool = True, duration: Optional[float] = None) -> None:
        self.record(CYCLE, success=success)
        with self._lock:
            self._last_cycle = time.time()
            if duration is not None:
                self._last_cycle_seconds = round(duration, 3)

    def record_alert(self, success: bool = True) -> None:
        self.record(ALERT, success=success)

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = value

    def total(self, name: str) -> int:
        with self._lock:
            return self._totals.get(name, 0)

    def failures(self, name: str) -> int:
        with self._lock:
            return self._failures.get(name, 0)

    def snapshot(self) -> Dict[str, object]:
        now = time.time()
        with self._lock:
            for window in self._recent.values():
                self._trim(window, now)
            minutes = self.window_seconds / 60.0 if self.window_seconds > 0 else 0
            return {
                "timestamp_utc": _utc(now),
                "uptime_seconds": int(now - self._started),
                "monitor": {
                    "cycles_ok": self._totals.get(CYCLE, 0) - self._failures.get(CYCLE, 0),
                    "cycles_failed": self._failures.get(CYCLE, 0),
                    "alerts_sent": self._totals.get(ALERT, 0) - self._failures.get(ALERT, 0),
                    "alerts_failed": self._failures.get(ALERT, 0),
                    "last_cycle_utc": _utc(self._last_cycle) if self._last_cycle else None,
                    "last_cycle_seconds": self._last_cycle_seconds,
                },
                "gauges": dict(self._gauges),
                "totals": dict(self._totals),
                "errors": dict(self._failures),
                "rates_per_min": {
                    name: round(len(window) / minutes, 3) if minutes else 0.0
                    for name, window in self._recent.items()
                },
            }

    def write_snapshot(self, path: Path) -> None:
        line = json.dumps(self.snapshot())
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def _trim(self, window: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while window and window[0] < cutoff:
            window.popleft()


_GLOBAL_METRICS: Optional[MetricsCollector] = None
_GLOBAL_LOCK = threading.Lock()


def get_metrics() -> MetricsCollector:
    global _GLOBAL_METRICS
    with _GLOBAL_LOCK:
        if _GLOBAL_METRICS is None:
            _GLOBAL_METRICS = MetricsCollector()
        return _GLOBAL_METRICS
