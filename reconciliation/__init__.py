"""
Reconciliation package: everything between raw backend data and the merged view.

Public API:
- identifiers: IdKind, normalize, normalize_order_id, normalize_rider_id
- overrides: OverrideStore, PendingOverride, Provenance
- snapshot: Snapshot, SnapshotCache, SnapshotFetcher, FetchResult, OrderFilter
- merge: merge, MergedView
"""

from .identifiers import IdKind, normalize, normalize_optional, normalize_order_id, normalize_rider_id, same_id
from .merge import MergedView, merge
from .overrides import OverrideStore, PendingOverride, Provenance
from .snapshot import FetchResult, OrderFilter, Snapshot, SnapshotCache, SnapshotFetcher

__all__ = [
    "FetchResult",
    "IdKind",
    "MergedView",
    "OrderFilter",
    "OverrideStore",
    "PendingOverride",
    "Provenance",
    "Snapshot",
    "SnapshotCache",
    "SnapshotFetcher",
    "merge",
    "normalize",
    "normalize_optional",
    "normalize_order_id",
    "normalize_rider_id",
    "same_id",
]
