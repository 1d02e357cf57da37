"""A minimal histogram metric rendered in the Prometheus text format."""

from __future__ import annotations

import math
import threading
from bisect import bisect_left
from typing import Iterable


def _format_number(value: float) -> str:
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer():
        return str(int(value))
    return repr(value)


class Histogram:
    """Thread-safe histogram with fixed upper bounds."""

    def __init__(self, name: str, help_text: str, buckets: Iterable[float]) -> None:
        bounds = [float(b) for b in buckets]
        if bounds and math.isinf(bounds[-1]) and bounds[-1] > 0:
            bounds.pop()
        if any(later <= earlier for earlier, later in zip(bounds, bounds[1:])):
            raise ValueError("histogram buckets must be in strictly increasing order")
        self.name = name
        self.help_text = help_text
        self._bounds = bounds
        self._counts = [0] * len(bounds)
        self._count = 0
        self._sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float) -> None:
        """Record one observation."""
        value = float(value)
        index = bisect_left(self._bounds, value)
        with self._lock:
            if index < len(self._counts):
                self._counts[index] += 1
            self._count += 1
            self._sum += value

    def render(self) -> str:
        """Return the metric in the Prometheus exposition format."""
        with self._lock:
            counts = list(self._counts)
            total = self._count
            summed = self._sum
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} histogram"]
        cumulative = 0
        for bound, count in zip(self._bounds, counts):
            cumulative += count
            lines.append(f'{self.name}_bucket{{le="{_format_number(bound)}"}} {cumulative}')
        lines.append(f'{self.name}_bucket{{le="+Inf"}} {total}')
        lines.append(f"{self.name}_sum {_format_number(summed)}")
        lines.append(f"{self.name}_count {total}")
        return "\n".join(lines) + "\n"


PR_LIFECYCLE_DURATION_HOURS = Histogram(
    "pr_lifecycle_duration_hours",
    "Time from PR creation to merge in hours",
    (1, 6, 12, 24, 48, 72, 168),
)