"""Services package"""

from .aggregate_provider import CalculatedAggregateProvider
from .snapshot_store import SnapshotStore
from .override_store import OverrideStore
from .legacy_blob import LegacyBlobAdapter
from .metrics_resolver import MetricsResolutionEngine, get_metrics_engine
from .synthetic_orders import SyntheticOrderOverlay

__all__ = [
    "CalculatedAggregateProvider",
    "SnapshotStore",
    "OverrideStore",
    "LegacyBlobAdapter",
    "MetricsResolutionEngine",
    "get_metrics_engine",
    "SyntheticOrderOverlay",
]
