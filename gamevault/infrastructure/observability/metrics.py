"""Simple in-process metrics collection for Gamevault.

This module provides lightweight counters and histograms for tracking the
health of the sync engine without external dependencies. Metrics are stored
in memory and exported via the ``/metrics`` endpoint in Prometheus text
format.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping

LabelKey = tuple[tuple[str, str | None], ...]


def _labels_to_key(labels: Mapping[str, str | None] | None) -> LabelKey:
    if labels is None:
        return ()
    return tuple(sorted(labels.items()))


# ---------------------------------------------------------------------------
# Metric storage
# ---------------------------------------------------------------------------


@dataclass
class Counter:
    """A monotonically increasing counter."""

    name: str
    help_text: str = ""
    _values: dict[LabelKey, float] = field(default_factory=lambda: defaultdict(float))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def inc(
        self, value: float = 1.0, labels: Mapping[str, str | None] | None = None
    ) -> None:
        """Increment the counter by the given value."""
        key = _labels_to_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, labels: Mapping[str, str | None] | None = None) -> float:
        """Get the current counter value."""
        key = _labels_to_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def snapshot(self) -> dict[LabelKey, float]:
        with self._lock:
            return dict(self._values)


@dataclass
class Histogram:
    """A histogram keeping a sum/count per label set."""

    name: str
    help_text: str = ""
    _observations: dict[LabelKey, list[float]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def observe(
        self, value: float, labels: Mapping[str, str | None] | None = None
    ) -> None:
        """Record an observation."""
        key = _labels_to_key(labels)
        with self._lock:
            self._observations[key].append(value)

    def get_stats(
        self, labels: Mapping[str, str | None] | None = None
    ) -> dict[str, float]:
        """Get summary statistics for the histogram."""
        key = _labels_to_key(labels)
        with self._lock:
            values = list(self._observations.get(key, []))
        if not values:
            return {"count": 0, "sum": 0.0, "avg": 0.0}
        return {
            "count": len(values),
            "sum": sum(values),
            "avg": sum(values) / len(values),
        }

    def label_keys(self) -> list[LabelKey]:
        with self._lock:
            return list(self._observations)


class MetricRegistry:
    """Global registry for all metrics."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str = "") -> Counter:
        """Get or create a counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name=name, help_text=help_text)
            return self._counters[name]

    def histogram(self, name: str, help_text: str = "") -> Histogram:
        """Get or create a histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name=name, help_text=help_text)
            return self._histograms[name]

    def all_counters(self) -> dict[str, Counter]:
        with self._lock:
            return dict(self._counters)

    def all_histograms(self) -> dict[str, Histogram]:
        with self._lock:
            return dict(self._histograms)

    def clear(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


# Default global registry
_registry = MetricRegistry()


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------


def increment_counter(
    name: str,
    value: float = 1.0,
    labels: Mapping[str, str | None] | None = None,
    help_text: str = "",
) -> None:
    """Increment a counter by name, creating it if it doesn't exist."""
    _registry.counter(name, help_text).inc(value, labels)


def observe_histogram(
    name: str,
    value: float,
    labels: Mapping[str, str | None] | None = None,
    help_text: str = "",
) -> None:
    """Record an observation in a histogram, creating it if needed."""
    _registry.histogram(name, help_text).observe(value, labels)


def get_counter_value(
    name: str, labels: Mapping[str, str | None] | None = None
) -> float:
    return _registry.counter(name).get(labels)


def reset_metrics() -> None:
    """Drop every registered metric. Intended for tests."""
    _registry.clear()


class Timer:
    """Context manager for timing operations and recording to a histogram."""

    def __init__(
        self,
        histogram_name: str,
        labels: Mapping[str, str | None] | None = None,
        help_text: str = "",
    ) -> None:
        self.histogram_name = histogram_name
        self.labels = labels
        self.help_text = help_text
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed = time.perf_counter() - self._start
        observe_histogram(self.histogram_name, self.elapsed, self.labels, self.help_text)


# ---------------------------------------------------------------------------
# Predefined metrics for Gamevault
# ---------------------------------------------------------------------------

FETCH_REQUESTS = "fetch_requests_total"
FETCH_THROTTLED = "fetch_throttled_total"

SYNC_RUNS = "sync_runs_total"
SYNC_RUN_DURATION = "sync_run_duration_seconds"
SYNC_ITEMS_PROCESSED = "sync_items_processed_total"


def record_fetch(status: str) -> None:
    """Record one outbound request attempt by outcome (HTTP status or 'error')."""
    increment_counter(
        FETCH_REQUESTS,
        labels={"status": status},
        help_text="Total outbound catalog requests",
    )


def record_throttle() -> None:
    increment_counter(
        FETCH_THROTTLED, help_text="Total 'too many requests' responses received"
    )


def record_sync_run(kind: str, status: str, duration: float, items_processed: int) -> None:
    """Record a finished sync run."""
    increment_counter(
        SYNC_RUNS,
        labels={"kind": kind, "status": status},
        help_text="Total sync runs",
    )
    observe_histogram(
        SYNC_RUN_DURATION,
        duration,
        labels={"kind": kind},
        help_text="Sync run duration in seconds",
    )
    increment_counter(
        SYNC_ITEMS_PROCESSED,
        value=float(items_processed),
        labels={"kind": kind},
        help_text="Total items considered by sync runs",
    )


# ---------------------------------------------------------------------------
# Export utilities
# ---------------------------------------------------------------------------


def _label_str(key: LabelKey, *, quoted: bool) -> str:
    if quoted:
        return ",".join(f'{k}="{v}"' for k, v in key)
    return ",".join(f"{k}={v}" for k, v in key)


def get_metrics_summary() -> dict[str, object]:
    """Return a summary of all metrics for logging or API response."""
    counters: dict[str, dict[str, float]] = {}
    histograms: dict[str, dict[str, dict[str, float]]] = {}

    for name, counter in _registry.all_counters().items():
        counters[name] = {
            (_label_str(key, quoted=False) or "default"): value
            for key, value in counter.snapshot().items()
        }

    for name, histogram in _registry.all_histograms().items():
        histograms[name] = {
            (_label_str(key, quoted=False) or "default"): histogram.get_stats(
                dict(key) if key else None
            )
            for key in histogram.label_keys()
        }

    return {"counters": counters, "histograms": histograms}


def format_prometheus() -> str:
    """Format metrics in Prometheus text exposition format."""
    lines: list[str] = []

    for name, counter in _registry.all_counters().items():
        if counter.help_text:
            lines.append(f"# HELP {name} {counter.help_text}")
        lines.append(f"# TYPE {name} counter")
        for key, value in counter.snapshot().items():
            if key:
                lines.append(f"{name}{{{_label_str(key, quoted=True)}}} {value}")
            else:
                lines.append(f"{name} {value}")

    for name, histogram in _registry.all_histograms().items():
        if histogram.help_text:
            lines.append(f"# HELP {name} {histogram.help_text}")
        lines.append(f"# TYPE {name} histogram")
        for key in histogram.label_keys():
            stats = histogram.get_stats(dict(key) if key else None)
            suffix = f"{{{_label_str(key, quoted=True)}}}" if key else ""
            lines.append(f"{name}_count{suffix} {stats['count']}")
            lines.append(f"{name}_sum{suffix} {stats['sum']}")

    return "\n".join(lines)
