"""Age-based retention helpers."""

from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class PruneStats:
    """Result of the most recent prune cycle."""

    points_removed: int = 0
    series_pruned: int = 0  # Series that lost at least one sample
    duration: float = 0.0  # Wall-clock seconds


def expired_count(times: Sequence[float], cutoff: float) -> int:
    """Return how many leading samples are at or before cutoff.

    Relies on times being non-decreasing (append order); see Store.add_point.
    """
    return bisect_right(times, cutoff)
