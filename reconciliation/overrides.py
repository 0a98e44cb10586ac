"""
Purpose: Holds the local, not-yet-authoritative patches dispatchers have made to orders.
What it does:
- Owns zero-or-one PendingOverride per canonical order id.
- Provides operations:
   - set(order_id, patch, provenance)
   - get(*spellings)
   - clear(*spellings)
   - reconcile_against(server_order)

Conflict rule applied by reconcile_against:
 - server reports a non-null rider different from the override -> server wins, override discarded
 - server reports no rider -> override kept and applied (a lagging fetch must not "unassign")
 - server reports the same rider -> server caught up, override retired

Rule: Store owns override lifecycle only. It never talks to the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from orders.models import Order, OrderPatch

from .identifiers import IdKind, normalize_optional, normalize_order_id, same_id

logger = logging.getLogger(__name__)


class Provenance(str, Enum):
    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class PendingOverride:
    """
    A transient patch to one order. `revision` increases with every write to the store,
    so call order (not wall clock) decides which write is the latest.
    """
    order_id: str
    patch: OrderPatch
    provenance: Provenance
    revision: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class OverrideStore:
    """
    In-memory override map for one console session.
    Constructed once per session and handed to whoever needs it.
    """
    _overrides: Dict[str, PendingOverride] = field(default_factory=dict)
    _last_revision: int = 0

    # --- Public API ---

    def set(self, order_id: str, patch: OrderPatch, provenance: Provenance) -> PendingOverride:
        """
        Store (or replace) the override for an order. Last writer wins.
        """
        canonical_id = normalize_order_id(order_id)
        if patch.rider_id is not None:
            patch = OrderPatch(
                rider_id=normalize_optional(patch.rider_id, IdKind.RIDER),
                status=patch.status,
                eta_minutes=patch.eta_minutes,
            )

        self._last_revision += 1
        override = PendingOverride(
            order_id=canonical_id,
            patch=patch,
            provenance=provenance,
            revision=self._last_revision,
        )
        replaced = self._overrides.get(canonical_id)
        self._overrides[canonical_id] = override

        if replaced is not None:
            logger.debug(f"Override for {canonical_id} replaced ({replaced.provenance.value} -> {provenance.value})")
        return override

    def get(self, *order_ids: str) -> Optional[PendingOverride]:
        """
        Look up an override under any of the given spellings; the first hit wins.
        """
        for order_id in order_ids:
            if not order_id:
                continue
            override = self._overrides.get(normalize_order_id(order_id))
            if override is not None:
                return override
        return None

    def clear(self, *order_ids: str) -> None:
        for order_id in order_ids:
            if not order_id:
                continue
            self._overrides.pop(normalize_order_id(order_id), None)

    def restore(self, override: PendingOverride) -> None:
        """
        Re-install a previously captured override as it was (used when rolling back).
        """
        self._overrides[override.order_id] = override

    def is_current(self, override: PendingOverride) -> bool:
        """
        True if nothing has been written for this order since `override`.
        """
        latest = self._overrides.get(override.order_id)
        return latest is not None and latest.revision == override.revision

    def current_revision(self) -> int:
        """
        Revision of the most recent write (0 before any write).
        """
        return self._last_revision

    def overrides(self) -> List[PendingOverride]:
        return list(self._overrides.values())

    def __len__(self) -> int:
        return len(self._overrides)

    def __contains__(self, order_id: str) -> bool:
        return self.get(order_id) is not None

    # --- Reconciliation ---

    def reconcile_against(self, server_order: Order, as_of_revision: Optional[int] = None) -> Order:
        """
        Resolve the override (if any) for this order against what the server just reported.
        Returns the order the console should display.

        `as_of_revision` is the store revision at the moment the snapshot was requested.
        An override written after that cannot be reflected by the snapshot yet, so it is
        applied without arbitration. None means the snapshot is at least as new as every override.
        """
        override = self.get(server_order.id)
        if override is None:
            return server_order

        if as_of_revision is not None and override.revision > as_of_revision:
            return server_order.apply(override.patch)

        local_rider = override.patch.rider_id
        server_rider = normalize_optional(server_order.rider_id, IdKind.RIDER)

        if server_rider is not None and local_rider is not None and server_rider != local_rider:
            # Either someone else reassigned the order or our write lost; the server is more recent.
            logger.info(
                f"Server rider {server_rider} supersedes local {override.provenance.value} "
                f"rider {local_rider} for order {override.order_id}"
            )
            self._overrides.pop(override.order_id, None)
            return server_order

        if server_rider is not None and same_id(server_rider, local_rider, IdKind.RIDER):
            # covers a failed call the server applied anyway
            logger.debug(f"Snapshot caught up with {override.provenance.value} override for {override.order_id}")
            self._overrides.pop(override.order_id, None)
            return server_order

        return server_order.apply(override.patch)
