"""Header property classification, aggregation and synchronization."""

from .aggregate import aggregate_headers, aggregate_properties
from .classify import classify_property
from .normalize import normalize_value
from .sync import FrontmatterSynchronizer, Rollup, SyncGuard, resolve_sync_target

__all__ = [
    "FrontmatterSynchronizer",
    "Rollup",
    "SyncGuard",
    "aggregate_headers",
    "aggregate_properties",
    "classify_property",
    "normalize_value",
    "resolve_sync_target",
]
