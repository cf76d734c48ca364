# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Metrics — In-memory counters for retry and offline-queue observability.

Counter names are namespaced by area, e.g. ``retry:retried`` or
``offline:applied``. Exposed over HTTP by the observability router.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Any, Dict, List


class Metrics:
    """Simple in-memory metrics collector."""

    MAX_OBSERVATIONS = 1000

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._gauges: Dict[str, float] = {}
        self._histograms: Dict[str, List[float]] = defaultdict(list)
        self._start_time = time.time()

    # ── Counters ────────────────────────────────────────────────

    def inc(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    # ── Gauges ──────────────────────────────────────────────────

    def set_gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def get_gauge(self, name: str) -> float:
        return self._gauges.get(name, 0.0)

    # ── Histograms ──────────────────────────────────────────────

    def observe(self, name: str, value: float) -> None:
        """Record an observation, e.g. a backoff delay in ms."""
        values = self._histograms[name]
        values.append(value)
        if len(values) > self.MAX_OBSERVATIONS:
            del values[: len(values) - self.MAX_OBSERVATIONS]

    def by_label(self, prefix: str) -> Dict[str, int]:
        """
        Counters named ``{prefix}:{label}``, keyed by label.

        e.g. ``by_label("offline:failed")`` -> ``{"shopping_items": 3}``
        """
        head = f"{prefix}:"
        return {
            name[len(head):]: count
            for name, count in self._counters.items()
            if name.startswith(head)
        }

    def reset(self) -> None:
        """Drop every recorded value (used between tests)."""
        self._counters.clear()
        self._gauges.clear()
        self._histograms.clear()

    # ── Export ──────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
        }
        for name, values in self._histograms.items():
            if values:
                result[f"histogram_{name}"] = {
                    "count": len(values),
                    "avg": round(sum(values) / len(values), 2),
                    "max": round(max(values), 2),
                    "min": round(min(values), 2),
                }
        return result


# Global singleton
platform_metrics = Metrics()
