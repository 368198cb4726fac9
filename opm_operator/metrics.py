"""In-process metrics for reconcile outcomes, applies, prunes and inventory size."""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Generic, TypeVar, Union

DEFAULT_BUCKETS: tuple[float, ...] = (
    0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
)

Duration = Union[timedelta, float, int]

_Child = TypeVar("_Child")


def _seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class Counter:
    """A monotonically increasing value."""

    def __init__(self) -> None:
        self._value = 0.0
        self._lock = threading.Lock()

    def inc(self) -> None:
        self.add(1.0)

    def add(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value


class Gauge:
    """A value that can go up and down."""

    def __init__(self) -> None:
        self._value = 0.0
        self._lock = threading.Lock()

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def inc(self) -> None:
        self.add(1.0)

    def add(self, amount: float) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value


@dataclass
class Histogram:
    """Cumulative bucketed observations."""

    buckets: tuple[float, ...] = DEFAULT_BUCKETS
    bucket_counts: list[int] = field(default_factory=list)
    count: int = 0
    sum: float = 0.0

    def __post_init__(self) -> None:
        self.bucket_counts = [0] * len(self.buckets)
        self._lock = threading.Lock()

    def observe(self, value: float) -> None:
        with self._lock:
            self.count += 1
            self.sum += value
            for i in range(bisect.bisect_left(self.buckets, value), len(self.buckets)):
                self.bucket_counts[i] += 1


class _MetricVec(Generic[_Child]):
    def __init__(
        self,
        name: str,
        help: str,
        label_names: list[str],
        child_factory: Callable[[], _Child],
    ) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._child_factory = child_factory
        self._children: dict[tuple[str, ...], _Child] = {}
        self._lock = threading.Lock()

    def _key(self, args: tuple[str, ...]) -> tuple[str, ...]:
        if len(args) != len(self.label_names):
            raise ValueError(
                f"{self.name}: expected {len(self.label_names)} label values, got {len(args)}"
            )
        return tuple(str(a) for a in args)

    def labels(self, *args: str) -> _Child:
        """Return the child metric for these label values, creating it if needed."""
        key = self._key(args)
        with self._lock:
            child = self._children.get(key)
            if child is None:
                child = self._children[key] = self._child_factory()
            return child

    def reset(self) -> None:
        """Drop every child metric."""
        with self._lock:
            self._children.clear()

    def _existing(self, args: tuple[str, ...]) -> _Child | None:
        return self._children.get(self._key(args))


class CounterVec(_MetricVec[Counter]):
    """Counters partitioned by label values."""

    def __init__(self, name: str, help: str, label_names: list[str]) -> None:
        super().__init__(name, help, label_names, Counter)

    def labels(self, *args: str) -> Counter:
        return super().labels(*args)

    def value(self, *args: str) -> float:
        """Current value for these label values; 0 if never touched."""
        child = self._existing(args)
        return child.value if child else 0.0

    def reset(self) -> None:
        super().reset()


class GaugeVec(_MetricVec[Gauge]):
    """Gauges partitioned by label values."""

    def __init__(self, name: str, help: str, label_names: list[str]) -> None:
        super().__init__(name, help, label_names, Gauge)

    def labels(self, *args: str) -> Gauge:
        return super().labels(*args)

    def value(self, *args: str) -> float:
        """Current value for these label values; 0 if never set."""
        child = self._existing(args)
        return child.value if child else 0.0

    def reset(self) -> None:
        super().reset()


class HistogramVec(_MetricVec[Histogram]):
    """Histograms partitioned by label values."""

    def __init__(
        self,
        name: str,
        help: str,
        label_names: list[str],
        buckets: tuple[float, ...] = DEFAULT_BUCKETS,
    ) -> None:
        self.buckets = tuple(sorted(buckets))
        super().__init__(name, help, label_names, lambda: Histogram(buckets=self.buckets))

    def labels(self, *args: str) -> Histogram:
        return super().labels(*args)

    def count(self, *args: str) -> int:
        """Number of observations for these label values."""
        child = self._existing(args)
        return child.count if child else 0

    def reset(self) -> None:
        super().reset()


RECONCILE_TOTAL = CounterVec(
    "opm_controller_reconcile_total",
    "Total number of reconcile attempts by outcome.",
    ["name", "namespace", "outcome"],
)

RECONCILE_DURATION = HistogramVec(
    "opm_controller_reconcile_duration_seconds",
    "Duration of reconcile attempts in seconds.",
    ["name", "namespace"],
)

APPLY_RESOURCES_TOTAL = CounterVec(
    "opm_controller_apply_resources_total",
    "Total number of resources applied by action.",
    ["name", "namespace", "action"],
)

PRUNE_RESOURCES_TOTAL = CounterVec(
    "opm_controller_prune_resources_total",
    "Total number of resources pruned.",
    ["name", "namespace"],
)

INVENTORY_SIZE = GaugeVec(
    "opm_controller_inventory_size",
    "Current number of entries in the inventory.",
    ["name", "namespace"],
)

REGISTRY: dict[str, _MetricVec] = {
    metric.name: metric
    for metric in (
        RECONCILE_TOTAL,
        RECONCILE_DURATION,
        APPLY_RESOURCES_TOTAL,
        PRUNE_RESOURCES_TOTAL,
        INVENTORY_SIZE,
    )
}


def record_reconcile(name: str, namespace: str, outcome: str, duration: Duration) -> None:
    """Record the outcome and duration of a reconcile attempt."""
    RECONCILE_TOTAL.labels(name, namespace, outcome).inc()
    RECONCILE_DURATION.labels(name, namespace).observe(_seconds(duration))


def record_apply(name: str, namespace: str, created: int, updated: int, unchanged: int) -> None:
    """Record applied resource counts by action."""
    APPLY_RESOURCES_TOTAL.labels(name, namespace, "created").add(float(created))
    APPLY_RESOURCES_TOTAL.labels(name, namespace, "updated").add(float(updated))
    APPLY_RESOURCES_TOTAL.labels(name, namespace, "unchanged").add(float(unchanged))


def record_prune(name: str, namespace: str, deleted: int) -> None:
    """Record the number of resources pruned."""
    PRUNE_RESOURCES_TOTAL.labels(name, namespace).add(float(deleted))


def record_duration(name: str, namespace: str, duration: Duration) -> None:
    """Record only the reconcile duration, without an outcome."""
    RECONCILE_DURATION.labels(name, namespace).observe(_seconds(duration))


def set_inventory_size(name: str, namespace: str, size: int) -> None:
    """Set the current inventory size gauge."""
    INVENTORY_SIZE.labels(name, namespace).set(float(size))