"""Reference-counted freeze state.

Freezing a series pins what readers see to a snapshot taken at the first
freeze, while producers keep writing into a pending buffer. The buffer is
merged into the live series once every holder has released its token.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NewType

from dashstore.snapshot import SeriesSnapshot

FreezeToken = NewType("FreezeToken", int)

# Process-wide and never reset, so a token from a deleted series or a
# discarded store can never release a newer freeze.
_token_counter = itertools.count(1)
_token_lock = threading.Lock()


def new_freeze_token() -> FreezeToken:
    """Return a unique, monotonically increasing token."""
    with _token_lock:
        return FreezeToken(next(_token_counter))


@dataclass
class FrozenState:
    """Frozen view of one series plus the samples that arrived since."""

    snapshot: SeriesSnapshot
    pending_times: list[float] = field(default_factory=list)
    pending_values: list[float] = field(default_factory=list)
    count: int = 0  # Active holders
    tokens: set[FreezeToken] = field(default_factory=set)

    @property
    def active(self) -> bool:
        """Return True while at least one holder has not released."""
        return self.count > 0

    def hold(self, token: FreezeToken) -> None:
        """Register another holder."""
        if token in self.tokens:
            return
        self.tokens.add(token)
        self.count += 1

    def release(self, token: FreezeToken) -> bool:
        """Drop a holder. Return True when this was the last one."""
        if token not in self.tokens:
            return False
        self.tokens.discard(token)
        self.count -= 1
        return self.count <= 0

    def buffer(self, times: Sequence[float], values: Sequence[float]) -> None:
        """Queue samples for the merge on final release."""
        self.pending_times.extend(times)
        self.pending_values.extend(values)
