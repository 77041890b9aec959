"""Immutable-by-copy views of a series.

A snapshot owns fresh copies of the times, values and labels it was built
from, so callers may read (or mutate) it without holding the store lock.
Aggregates return 0.0 for an empty snapshot: dashboards treat "no data" as
"no signal" and use len() when they need to tell the two apart.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field


@dataclass
class SeriesSnapshot:
    """Point-in-time copy of a series."""

    name: str
    times: list[float] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def capture(
        cls,
        name: str,
        times: Sequence[float],
        values: Sequence[float],
        labels: Mapping[str, str] | None,
    ) -> SeriesSnapshot:
        """Build a snapshot from borrowed sequences, copying all of them."""
        return cls(
            name=name,
            times=list(times),
            values=list(values),
            labels=dict(labels) if labels else {},
        )

    @classmethod
    def empty(cls, name: str = "", labels: Mapping[str, str] | None = None) -> SeriesSnapshot:
        """Return a snapshot with no samples."""
        return cls(name=name, labels=dict(labels) if labels else {})

    def copy(self) -> SeriesSnapshot:
        """Return a deep copy of this snapshot."""
        return SeriesSnapshot.capture(self.name, self.times, self.values, self.labels)

    def __len__(self) -> int:
        """Return number of samples."""
        return len(self.values)

    def min(self) -> float:
        """Return the minimum value, or 0.0 when empty."""
        if not self.values:
            return 0.0
        return min(self.values)

    def max(self) -> float:
        """Return the maximum value, or 0.0 when empty."""
        if not self.values:
            return 0.0
        return max(self.values)

    def last(self) -> float:
        """Return the most recent value, or 0.0 when empty."""
        if not self.values:
            return 0.0
        return self.values[-1]

    def avg(self) -> float:
        """Return the arithmetic mean, or 0.0 when empty."""
        if not self.values:
            return 0.0
        return sum(self.values) / len(self.values)
