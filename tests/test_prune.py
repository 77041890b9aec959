"""Tests for retention pruning."""

import time
from unittest.mock import patch

from dashstore.config import StoreConfig
from dashstore.prune import PruneStats, expired_count
from dashstore.store import Store

NOW = 1767225600.0


def fill_last_seconds(store: Store, name: str, seconds: int, now: float = NOW) -> None:
    """Append one sample per second from now - seconds through now."""
    for i in range(seconds, -1, -1):
        store.add_point(name, now - i, float(seconds - i))


class TestExpiredCount:
    """Tests for the binary-search cutoff."""

    def test_counts_samples_at_or_before_cutoff(self) -> None:
        """Samples equal to the cutoff are expired."""
        assert expired_count([1.0, 2.0, 3.0, 4.0], 2.0) == 2

    def test_nothing_expired(self) -> None:
        """A cutoff before every sample expires nothing."""
        assert expired_count([5.0, 6.0], 1.0) == 0

    def test_everything_expired(self) -> None:
        """A cutoff after every sample expires all of them."""
        assert expired_count([1.0, 2.0], 10.0) == 2

    def test_empty(self) -> None:
        """Empty input expires nothing."""
        assert expired_count([], 10.0) == 0


class TestPrune:
    """Tests for Store.prune()."""

    def test_prune_removes_old_data(self) -> None:
        """Samples older than the default retention are dropped."""
        store = Store(StoreConfig(default_retention=5.0))
        fill_last_seconds(store, "prune", 10)

        with patch("dashstore.store.time.time", return_value=NOW):
            store.prune()

        snap = store.get_series("prune")
        assert snap is not None
        assert snap.times == [NOW - i for i in range(4, -1, -1)]
        assert snap.values == [6.0, 7.0, 8.0, 9.0, 10.0]

    def test_prune_with_real_clock(self) -> None:
        """Against the wall clock, roughly the last retention window survives."""
        store = Store(StoreConfig(default_retention=5.0))
        fill_last_seconds(store, "prune", 10, now=time.time())

        store.prune()

        assert 0 < len(store.get_series("prune")) <= 6

    def test_heterogeneous_retention(self) -> None:
        """Per-series retention overrides the default."""
        store = Store(StoreConfig(default_retention=5.0))
        fill_last_seconds(store, "short", 10)
        store.set_retention("long", 20.0)
        fill_last_seconds(store, "long", 10)

        with patch("dashstore.store.time.time", return_value=NOW):
            store.prune()

        assert len(store.get_series("short")) == 5
        assert all(t > NOW - 5.0 for t in store.get_series("short").times)
        assert len(store.get_series("long")) == 11

    def test_zero_retention_reverts_to_default(self) -> None:
        """set_retention(name, 0) removes the override."""
        store = Store(StoreConfig(default_retention=5.0))
        store.set_retention("s", 20.0)
        store.set_retention("s", 0)
        fill_last_seconds(store, "s", 10)

        with patch("dashstore.store.time.time", return_value=NOW):
            store.prune()

        assert len(store.get_series("s")) == 5

    def test_prune_stats(self) -> None:
        """Stats count removed points and affected series."""
        store = Store(StoreConfig(default_retention=0.001))
        now = time.time()
        for i in range(5):
            store.add_point("stats", now - (5 - i), float(i))
        store.add_point("stats", now + 60, 99.0)
        store.add_point("fresh", now + 60, 1.0)

        returned = store.prune()

        stats = store.prune_stats()
        assert stats == returned
        assert stats.points_removed == 5
        assert stats.series_pruned == 1
        assert stats.duration >= 0

    def test_stats_zero_before_first_prune(self, store: Store) -> None:
        """Before any prune, every field is zero."""
        assert store.prune_stats() == PruneStats(0, 0, 0.0)

    def test_second_prune_removes_nothing(self) -> None:
        """Pruning twice with no new data is idempotent."""
        store = Store(StoreConfig(default_retention=5.0))
        fill_last_seconds(store, "idem", 10)

        with patch("dashstore.store.time.time", return_value=NOW):
            first = store.prune()
            second = store.prune()

        assert first.points_removed == 6
        assert second.points_removed == 0
        assert second.series_pruned == 0

    def test_prune_can_empty_series(self) -> None:
        """A fully expired series remains present but empty."""
        store = Store(StoreConfig(default_retention=1.0))
        store.add_point("old", NOW - 100, 1.0)

        with patch("dashstore.store.time.time", return_value=NOW):
            store.prune()

        snap = store.get_series("old")
        assert snap is not None
        assert len(snap) == 0
        assert store.list_series() == ["old"]

    def test_prune_skips_frozen_series(self) -> None:
        """Frozen series are left for a later cycle."""
        store = Store(StoreConfig(default_retention=5.0))
        fill_last_seconds(store, "frozen", 10)
        token = store.freeze("frozen")

        with patch("dashstore.store.time.time", return_value=NOW):
            stats = store.prune()
            assert stats.points_removed == 0
            assert len(store.get_series("frozen")) == 11

            store.unfreeze(token)
            assert store.prune().points_removed == 6

    def test_large_dataset(self) -> None:
        """Pruning 10k samples removes the expired prefix."""
        store = Store(StoreConfig(default_retention=5.0, max_points=100_000))
        n = 10_000
        step = 20.0 / n
        times = [NOW - 20.0 + i * step for i in range(n)]
        store.add_points("perf", times, [float(i) for i in range(n)])

        with patch("dashstore.store.time.time", return_value=NOW):
            stats = store.prune()

        remaining = len(store.get_series("perf"))
        assert stats.points_removed + remaining == n
        assert 0 < remaining < n
        assert all(t > NOW - 5.0 for t in store.get_series("perf").times)
