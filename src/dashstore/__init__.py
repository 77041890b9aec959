"""In-memory time-series store for terminal dashboards."""

from dashstore.config import StoreConfig
from dashstore.freeze import FreezeToken
from dashstore.prune import PruneStats
from dashstore.query import QueryBuilder, QueryMode
from dashstore.snapshot import SeriesSnapshot
from dashstore.store import Store

__all__ = [
    "FreezeToken",
    "PruneStats",
    "QueryBuilder",
    "QueryMode",
    "SeriesSnapshot",
    "Store",
    "StoreConfig",
]
