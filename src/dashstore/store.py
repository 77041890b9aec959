"""In-memory time-series store.

Each series keeps its timestamps and values in two parallel lists sharing one
time axis (structure of arrays). Rendering code usually walks one metric at a
time, and parallel lists let each series carry its own retention and labels.

All state is guarded by a single readers-writer lock. Every read returns a
freshly copied SeriesSnapshot built inside the critical section, so callers
never see (or hold references into) internal storage.
"""

from __future__ import annotations

import time
from bisect import bisect_left, bisect_right
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from dashstore.config import StoreConfig
from dashstore.freeze import FreezeToken, FrozenState, new_freeze_token
from dashstore.prune import PruneStats, expired_count
from dashstore.query import QueryBuilder
from dashstore.rwlock import RWLock
from dashstore.snapshot import SeriesSnapshot

log = structlog.get_logger()


@dataclass
class Series:
    """Live storage for one named series. Owned by Store; never handed out."""

    name: str
    times: list[float] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    retention: float = 0.0  # Per-series override in seconds; 0 = store default
    labels: dict[str, str] = field(default_factory=dict)

    def snapshot(self) -> SeriesSnapshot:
        """Return a copy of this series."""
        return SeriesSnapshot.capture(self.name, self.times, self.values, self.labels)


class Store:
    """Thread-safe container for all time-series data.

    Samples are kept in arrival order. Producers are expected to feed
    non-decreasing timestamps per series: get_range() and prune() locate
    their bounds by binary search and give undefined (but safe) results for
    out-of-order data. Each backwards step within a write or a freeze merge
    is logged once as a debug out_of_order_sample event.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        self.config = (config or StoreConfig()).resolved()
        self._lock = RWLock()
        self._series: dict[str, Series] = {}
        self._frozen: dict[str, FrozenState] = {}
        self._last_prune_stats = PruneStats()

    # ─────────────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────────────

    def add_point(self, name: str, t: float, v: float) -> None:
        """Append one sample, creating the series if needed.

        If the series is frozen the sample is buffered until it is released.
        """
        with self._lock.write_locked():
            self._append(name, (t,), (v,))

    def add_points(self, name: str, times: Sequence[float], values: Sequence[float]) -> None:
        """Append samples in bulk.

        Mismatched lengths make this a no-op: nothing is stored and the
        series is not created.
        """
        if len(times) != len(values):
            log.debug(
                "add_points_length_mismatch", series=name, times=len(times), values=len(values)
            )
            return
        with self._lock.write_locked():
            self._append(name, times, values)

    def set_retention(self, name: str, retention: float) -> None:
        """Override retention (seconds) for one series. Zero reverts to the default."""
        with self._lock.write_locked():
            self._get_or_create(name).retention = retention

    def set_labels(self, name: str, labels: Mapping[str, str]) -> None:
        """Replace the labels of a series with a copy of labels."""
        with self._lock.write_locked():
            self._get_or_create(name).labels = dict(labels)

    def delete_series(self, name: str) -> None:
        """Remove a series and any freeze state for it.

        Outstanding freeze tokens for the series become no-ops.
        """
        with self._lock.write_locked():
            existed = self._series.pop(name, None) is not None
            frozen = self._frozen.pop(name, None) is not None
        if existed:
            log.debug("series_deleted", series=name, was_frozen=frozen)

    # ─────────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────────

    def get_series(self, name: str) -> SeriesSnapshot | None:
        """Return a snapshot of the series, or None if it does not exist.

        A frozen series returns its frozen snapshot rather than live data.
        """
        with self._lock.read_locked():
            fs = self._frozen.get(name)
            if fs is not None and fs.active:
                return fs.snapshot.copy()
            ser = self._series.get(name)
            if ser is None:
                return None
            return ser.snapshot()

    def get_series_or_empty(self, name: str) -> SeriesSnapshot:
        """Like get_series(), but an unknown series yields an empty snapshot."""
        snap = self.get_series(name)
        if snap is None:
            return SeriesSnapshot.empty(name)
        return snap

    def get_range(self, name: str, start: float, end: float) -> SeriesSnapshot | None:
        """Return samples with start <= t <= end, or None if the series is unknown."""
        with self._lock.read_locked():
            source = self._source(name)
            if source is None:
                return None
            sname, times, values, labels = source

            lo = bisect_left(times, start)  # first time not before start
            hi = bisect_right(times, end)  # first time after end
            if lo >= hi:
                return SeriesSnapshot.empty(sname, labels)
            return SeriesSnapshot.capture(sname, times[lo:hi], values[lo:hi], labels)

    def get_latest(self, name: str) -> tuple[float, float] | None:
        """Return the most recent (time, value), or None if absent or empty."""
        with self._lock.read_locked():
            source = self._source(name)
            if source is None:
                return None
            _, times, values, _ = source
            if not values:
                return None
            return times[-1], values[-1]

    def get_latest_n(self, name: str, n: int) -> SeriesSnapshot | None:
        """Return the last n samples (all of them if n exceeds the length)."""
        with self._lock.read_locked():
            source = self._source(name)
            if source is None:
                return None
            sname, times, values, labels = source
            if n <= 0:
                return SeriesSnapshot.empty(sname, labels)
            start = max(len(values) - n, 0)
            return SeriesSnapshot.capture(sname, times[start:], values[start:], labels)

    def list_series(self) -> list[str]:
        """Return the names of all series in sorted order."""
        with self._lock.read_locked():
            return sorted(self._series)

    def series_with_label(self, key: str, value: str) -> list[str]:
        """Return sorted names of series whose label key equals value."""
        with self._lock.read_locked():
            return sorted(
                name for name, ser in self._series.items() if ser.labels.get(key) == value
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Freeze
    # ─────────────────────────────────────────────────────────────────────────

    def freeze(self, *names: str) -> FreezeToken:
        """Pin the named series (all series if none given) to their current state.

        While frozen, reads return the snapshot taken at the first freeze and
        writes are buffered. Freezes stack: each token must be passed to
        unfreeze() before buffered samples are merged. Unknown names are
        skipped.
        """
        with self._lock.write_locked():
            token = new_freeze_token()
            targets = list(dict.fromkeys(names)) if names else list(self._series)

            for name in targets:
                ser = self._series.get(name)
                if ser is None:
                    continue
                fs = self._frozen.get(name)
                if fs is None:
                    fs = FrozenState(snapshot=ser.snapshot())
                    self._frozen[name] = fs
                fs.hold(token)

        log.debug("series_frozen", token=token, series=len(targets))
        return token

    def unfreeze(self, token: FreezeToken) -> None:
        """Release every freeze held by token.

        When the last holder of a series releases, samples buffered while it
        was frozen are appended in arrival order. Unknown tokens are ignored.
        """
        merged = 0
        with self._lock.write_locked():
            for name, fs in list(self._frozen.items()):
                if not fs.release(token):
                    continue
                del self._frozen[name]
                if fs.pending_values:
                    self._extend(self._get_or_create(name), fs.pending_times, fs.pending_values)
                    merged += len(fs.pending_values)

        log.debug("series_unfrozen", token=token, merged=merged)

    def is_frozen(self, name: str) -> bool:
        """Return True if the series has at least one active freeze."""
        with self._lock.read_locked():
            fs = self._frozen.get(name)
            return fs is not None and fs.active

    # ─────────────────────────────────────────────────────────────────────────
    # Retention
    # ─────────────────────────────────────────────────────────────────────────

    def prune(self) -> PruneStats:
        """Drop samples older than each series' effective retention.

        Frozen series are skipped; their buffered samples are pruned on a
        later cycle after they merge.
        """
        with self._lock.write_locked():
            started = time.perf_counter()
            now = time.time()
            points_removed = 0
            series_pruned = 0

            for name, ser in self._series.items():
                fs = self._frozen.get(name)
                if fs is not None and fs.active:
                    continue

                idx = expired_count(ser.times, now - self._retention_for(ser))
                if idx > 0:
                    del ser.times[:idx]
                    del ser.values[:idx]
                    points_removed += idx
                    series_pruned += 1

            stats = PruneStats(
                points_removed=points_removed,
                series_pruned=series_pruned,
                duration=time.perf_counter() - started,
            )
            self._last_prune_stats = stats

        log.debug(
            "prune_complete",
            points_removed=stats.points_removed,
            series_pruned=stats.series_pruned,
            duration_ms=round(stats.duration * 1000, 3),
        )
        return stats

    def prune_stats(self) -> PruneStats:
        """Return statistics from the most recent prune() call."""
        with self._lock.read_locked():
            return self._last_prune_stats

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def query(self, name: str) -> QueryBuilder:
        """Start a query for a single named series."""
        return QueryBuilder(self, name=name)

    def query_by_label(self, key: str, value: str) -> QueryBuilder:
        """Start a query over every series labelled key=value."""
        return QueryBuilder(self, label=(key, value))

    # ─────────────────────────────────────────────────────────────────────────
    # Internals (callers hold the lock)
    # ─────────────────────────────────────────────────────────────────────────

    def _append(self, name: str, times: Sequence[float], values: Sequence[float]) -> None:
        fs = self._frozen.get(name)
        if fs is not None and fs.active:
            fs.buffer(times, values)
            return

        self._extend(self._get_or_create(name), times, values)

    def _extend(self, ser: Series, times: Sequence[float], values: Sequence[float]) -> None:
        """Append samples to a live series, reporting the first backwards step."""
        prev = ser.times[-1] if ser.times else None
        for i, t in enumerate(times):
            if prev is not None and t < prev:
                log.debug("out_of_order_sample", series=ser.name, index=i, last=prev, t=t)
                break
            prev = t
        ser.times.extend(times)
        ser.values.extend(values)
        self._enforce_max_points(ser)

    def _get_or_create(self, name: str) -> Series:
        ser = self._series.get(name)
        if ser is None:
            ser = Series(name=name)
            self._series[name] = ser
        return ser

    def _source(
        self, name: str
    ) -> tuple[str, list[float], list[float], dict[str, str]] | None:
        """Return the data readers should see: frozen snapshot or live series."""
        fs = self._frozen.get(name)
        if fs is not None and fs.active:
            snap = fs.snapshot
            return snap.name, snap.times, snap.values, snap.labels
        ser = self._series.get(name)
        if ser is None:
            return None
        return ser.name, ser.times, ser.values, ser.labels

    def _enforce_max_points(self, ser: Series) -> None:
        """Evict the oldest samples beyond max_points."""
        excess = len(ser.values) - self.config.max_points
        if excess > 0:
            del ser.times[:excess]
            del ser.values[:excess]

    def _retention_for(self, ser: Series) -> float:
        if ser.retention > 0:
            return ser.retention
        return self.config.default_retention
