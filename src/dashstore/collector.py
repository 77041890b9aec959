"""System metric collector that feeds a Store.

Samples CPU, memory, swap and load average via psutil. Each metric is its
own series named "<host>.<metric>" and labelled host=<host>, metric=<metric>
so dashboards can select them with query_by_label().
"""

from __future__ import annotations

import socket
import time
from collections.abc import Callable

import psutil
import structlog

from dashstore.store import Store

log = structlog.get_logger()


def _cpu_percent() -> float:
    # interval=None compares against the previous call (0.0 on the first)
    return psutil.cpu_percent(interval=None)


def _mem_percent() -> float:
    return psutil.virtual_memory().percent


def _swap_percent() -> float:
    return psutil.swap_memory().percent


def _load1() -> float:
    return psutil.getloadavg()[0]


METRICS: dict[str, Callable[[], float]] = {
    "cpu": _cpu_percent,
    "mem": _mem_percent,
    "swap": _swap_percent,
    "load1": _load1,
}


class SystemCollector:
    """Reads host metrics and appends one sample per metric per collect()."""

    def __init__(
        self,
        store: Store,
        host: str | None = None,
        metrics: dict[str, Callable[[], float]] | None = None,
    ) -> None:
        self.store = store
        self.host = host or socket.gethostname().split(".")[0]
        self.metrics = METRICS if metrics is None else metrics
        # Metric name to error message for the most recent collect()
        self.last_errors: dict[str, str] = {}
        for metric in self.metrics:
            self.store.set_labels(self.series_name(metric), {"host": self.host, "metric": metric})

    def series_name(self, metric: str) -> str:
        """Return the series name used for a metric."""
        return f"{self.host}.{metric}"

    def collect(self, now: float | None = None) -> int:
        """Sample every metric once. Returns how many samples were stored.

        A metric that fails to read is skipped for this round; the others are
        still recorded and the failure is kept in last_errors.
        """
        now = time.time() if now is None else now
        self.last_errors = {}
        stored = 0
        for metric, read in self.metrics.items():
            try:
                value = float(read())
            except (OSError, psutil.Error) as e:
                log.warning("sample_failed", metric=metric, error=str(e))
                self.last_errors[metric] = str(e)
                continue
            self.store.add_point(self.series_name(metric), now, value)
            stored += 1
        return stored
