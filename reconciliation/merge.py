"""
Purpose: Combine the latest snapshot with pending overrides into the view consumers render.
What it does:
- reconciles every snapshot order against the override store
- canonicalizes every order and rider id in the output
- never invents orders that exist only as overrides
- keeps snapshot ordering (consumers may resort, e.g. sorted_by_eta)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from orders.models import Order, OrderStatus
from rider_api.parsing import DashboardSummary
from riders.models import Rider

from .identifiers import IdKind, normalize_optional, normalize_order_id, normalize_rider_id
from .overrides import OverrideStore
from .snapshot import Snapshot

NO_ETA = 999


@dataclass(frozen=True)
class MergedView:
    orders: List[Order] = field(default_factory=list)
    riders: List[Rider] = field(default_factory=list)
    summary: DashboardSummary = field(default_factory=DashboardSummary)

    def get(self, order_id: str) -> Optional[Order]:
        canonical_id = normalize_order_id(order_id)
        for order in self.orders:
            if order.id == canonical_id:
                return order
        return None

    def rider(self, rider_id: str) -> Optional[Rider]:
        canonical_id = normalize_rider_id(rider_id)
        for rider in self.riders:
            if rider.id == canonical_id:
                return rider
        return None

    def orders_by_id(self) -> Dict[str, Order]:
        return {order.id: order for order in self.orders}

    def sorted_by_eta(self) -> List[Order]:
        # stable, so equal etas keep snapshot order
        return sorted(self.orders, key=lambda order: order.eta_minutes if order.eta_minutes is not None else NO_ETA)

    def unassigned(self) -> List[Order]:
        return [order for order in self.orders if order.status == OrderStatus.PENDING]


def _canonical_order(order: Order) -> Order:
    return replace(
        order,
        id=normalize_order_id(order.id),
        rider_id=normalize_optional(order.rider_id, IdKind.RIDER),
    )


def _canonical_rider(rider: Rider) -> Rider:
    return replace(
        rider,
        id=normalize_rider_id(rider.id),
        current_order_id=normalize_optional(rider.current_order_id, IdKind.ORDER),
    )


def merge(snapshot: Snapshot, store: OverrideStore) -> MergedView:
    """
    Synchronous and I/O free, so an override is visible the moment it is written.
    """
    orders = []
    seen = set()
    for order in snapshot.orders:
        canonical = _canonical_order(order)
        # two endpoints spelling the same order differently must not produce two rows
        if canonical.id in seen:
            continue
        seen.add(canonical.id)
        orders.append(store.reconcile_against(canonical, as_of_revision=snapshot.as_of_revision))

    riders = [_canonical_rider(rider) for rider in snapshot.riders]
    return MergedView(orders=orders, riders=riders, summary=snapshot.summary)
