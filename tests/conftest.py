"""Shared test fixtures for dashstore."""

import pytest

from dashstore.config import StoreConfig
from dashstore.store import Store

BASE_TIME = 1767225600.0  # 2026-01-01T00:00:00Z


@pytest.fixture
def store() -> Store:
    """Create a store with default configuration."""
    return Store(StoreConfig())


def add_n(store: Store, name: str, n: int, interval: float = 1.0, start: float = BASE_TIME) -> None:
    """Append n samples at start + i*interval with value i."""
    for i in range(n):
        store.add_point(name, start + i * interval, float(i))
