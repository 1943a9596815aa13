"""Pass latencies and outcome counters, reported through the structured logger."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional, Tuple

from .structured import StructuredLogger


@dataclass(frozen=True)
class LatencyStats:
    count: int
    min: float
    max: float
    avg: float
    p50: float
    p95: float

    @classmethod
    def of(cls, values: "Deque[float]") -> "LatencyStats":
        ordered = sorted(values)
        n = len(ordered)
        return cls(
            count=n,
            min=ordered[0],
            max=ordered[-1],
            avg=sum(ordered) / n,
            p50=ordered[n // 2],
            p95=ordered[min(n - 1, int(n * 0.95))],
        )


class PerformanceMetrics:
    """Rolling latency windows and counters for one component.

    Latencies are in milliseconds. A latency at or above a configured
    threshold is logged as a warning (or critical) entry.
    """

    def __init__(
        self,
        logger: Optional[StructuredLogger] = None,
        window_size: int = 500,
        component: Optional[str] = None,
    ) -> None:
        self.logger = logger
        self.component = component or "unknown"
        self.window_size = window_size
        self.latencies: Dict[str, Deque[float]] = {}
        self.counters: Dict[str, float] = {}
        self.thresholds: Dict[str, Tuple[Optional[float], Optional[float]]] = {}
        self._timers: Dict[str, float] = {}

    def record_latency(self, name: str, duration_ms: float, **metadata: Any) -> None:
        window = self.latencies.setdefault(name, deque(maxlen=self.window_size))
        window.append(duration_ms)
        if self.logger is None:
            return
        self.logger.debug(
            f"Metric recorded: {name}", metric_name=name, metric_value=duration_ms, **metadata
        )
        warning, critical = self.thresholds.get(name, (None, None))
        if critical is not None and duration_ms >= critical:
            self.logger.critical(
                f"Latency over critical threshold: {name}",
                metric_value=duration_ms,
                threshold_value=critical,
            )
        elif warning is not None and duration_ms >= warning:
            self.logger.warning(
                f"Latency over warning threshold: {name}",
                metric_value=duration_ms,
                threshold_value=warning,
            )

    def increment_counter(self, name: str, value: float = 1.0) -> None:
        self.counters[name] = self.counters.get(name, 0.0) + value
        if self.logger:
            self.logger.debug(
                f"Counter incremented: {name}", metric_name=name, counter_value=self.counters[name]
            )

    def start_timer(self, name: str) -> None:
        self._timers[name] = time.monotonic()

    def end_timer(self, name: str, **metadata: Any) -> float:
        """Stop a timer started with start_timer and record it; returns milliseconds.

        Raises:
            KeyError: If the timer was never started
        """
        if name not in self._timers:
            raise KeyError(f"Timer '{name}' was not started")
        duration_ms = (time.monotonic() - self._timers.pop(name)) * 1000
        self.record_latency(name, duration_ms, **metadata)
        return duration_ms

    def set_threshold(
        self, name: str, warning: Optional[float] = None, critical: Optional[float] = None
    ) -> None:
        self.thresholds[name] = (warning, critical)

    def get_stats(self, name: str) -> Optional[LatencyStats]:
        window = self.latencies.get(name)
        if not window:
            return None
        return LatencyStats.of(window)

    def summary(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "counters": dict(self.counters),
            "latencies": {
                name: vars(LatencyStats.of(window))
                for name, window in self.latencies.items()
                if window
            },
        }
