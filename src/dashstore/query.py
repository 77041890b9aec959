"""Fluent query builder over Store reads.

    store.query("cpu").since(60).execute()
    store.query_by_label("host", "honey").last(30).execute()

since(), between() and last() each replace the selection mode; the last one
called wins. With no mode, execute() returns full snapshots.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import TYPE_CHECKING

from dashstore.snapshot import SeriesSnapshot

if TYPE_CHECKING:
    from dashstore.store import Store


class QueryMode(Enum):
    """Which store read execute() performs per series."""

    ALL = "all"
    SINCE = "since"
    BETWEEN = "between"
    LAST = "last"


class QueryBuilder:
    """Selects series by name or label, then a window within each."""

    def __init__(
        self,
        store: Store,
        name: str | None = None,
        label: tuple[str, str] | None = None,
    ) -> None:
        self._store = store
        self._name = name
        self._label = label
        self.mode = QueryMode.ALL
        self._since = 0.0
        self._start = 0.0
        self._end = 0.0
        self._last_n = 0

    def since(self, seconds: float) -> QueryBuilder:
        """Restrict to samples from the last `seconds` before execution time."""
        self._since = seconds
        self.mode = QueryMode.SINCE
        return self

    def between(self, start: float, end: float) -> QueryBuilder:
        """Restrict to samples with start <= t <= end."""
        self._start = start
        self._end = end
        self.mode = QueryMode.BETWEEN
        return self

    def last(self, n: int) -> QueryBuilder:
        """Restrict to the most recent n samples."""
        self._last_n = n
        self.mode = QueryMode.LAST
        return self

    def execute(self) -> list[SeriesSnapshot]:
        """Run the query. Series that are missing at execution time are dropped."""
        results = []
        for name in self._resolve_names():
            snap = self._read(name)
            if snap is not None:
                results.append(snap)
        return results

    def _resolve_names(self) -> list[str]:
        if self._name is not None:
            return [self._name]
        if self._label is None:
            return []
        key, value = self._label
        return self._store.series_with_label(key, value)

    def _read(self, name: str) -> SeriesSnapshot | None:
        if self.mode is QueryMode.SINCE:
            # Evaluated per execution, so re-running the builder slides the window
            now = time.time()
            return self._store.get_range(name, now - self._since, now)
        if self.mode is QueryMode.BETWEEN:
            return self._store.get_range(name, self._start, self._end)
        if self.mode is QueryMode.LAST:
            return self._store.get_latest_n(name, self._last_n)
        return self._store.get_series(name)
