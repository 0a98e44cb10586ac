"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, status, rider_id, eta, sla deadline, locations, customer, items, timeline)
- TimelineEvent (status, time, optional note)
- OrderPatch (the subset of Order fields a local override may change)

Defines enums/constants:
- OrderStatus = PENDING | ASSIGNED | PICKED_UP | IN_TRANSIT | DELIVERED | DELAYED | RTO | RETURNED | UNKNOWN

Rule: No HTTP calls, no reconciliation logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional


class OrderStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"
    RTO = "rto"
    RETURNED = "returned"
    # a status this console does not know yet; the order is still shown
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TimelineEvent:
    """
    One entry of an order's status history. `time` is kept as the ISO string the backend sent.
    """

    status: OrderStatus
    time: str
    note: Optional[str] = None


@dataclass(frozen=True)
class OrderPatch:
    """
    The fields a dispatcher action is allowed to change locally before the server agrees.
    None means "leave the server value alone".
    """

    rider_id: Optional[str] = None
    status: Optional[OrderStatus] = None
    eta_minutes: Optional[int] = None


@dataclass(frozen=True)
class Order:
    """
    A point-in-time view of one order as the backend reported it.
    """

    id: str
    status: OrderStatus
    rider_id: Optional[str] = None
    eta_minutes: Optional[int] = None
    sla_deadline: str = ""
    pickup_location: str = ""
    drop_location: str = ""
    customer_name: str = ""
    items: List[str] = field(default_factory=list)
    timeline: List[TimelineEvent] = field(default_factory=list)

    def apply(self, patch: OrderPatch) -> Order:
        """
        Returns a copy with every non-None field of the patch laid on top.
        """
        changes = {}
        if patch.rider_id is not None:
            changes["rider_id"] = patch.rider_id
        if patch.status is not None:
            changes["status"] = patch.status
        if patch.eta_minutes is not None:
            changes["eta_minutes"] = patch.eta_minutes
        if not changes:
            return self
        return replace(self, **changes)

    def check_invariants(self) -> List[str]:
        """
        Lists the model invariants this order breaks (empty when consistent).
        Backend data is accepted as-is, so callers decide whether a violation matters.
        """
        problems = []

        if self.status == OrderStatus.PENDING and self.rider_id:
            problems.append(f"order {self.id} is pending but has rider {self.rider_id}")
        if self.status not in (OrderStatus.PENDING, OrderStatus.UNKNOWN) and not self.rider_id:
            problems.append(f"order {self.id} is {self.status.value} without a rider")

        if self.eta_minutes is not None and self.eta_minutes < 0:
            problems.append(f"order {self.id} has negative eta {self.eta_minutes}")

        previous = None
        for event in self.timeline:
            try:
                current = datetime.fromisoformat(event.time.replace("Z", "+00:00"))
            except ValueError:
                problems.append(f"order {self.id} has unparseable timeline time {event.time!r}")
                continue
            # naive and aware timestamps cannot be compared, drop the tz if mixed
            if previous is not None and (previous.tzinfo is None) != (current.tzinfo is None):
                previous, current = previous.replace(tzinfo=None), current.replace(tzinfo=None)
            if previous is not None and current < previous:
                problems.append(f"order {self.id} timeline goes back in time at {event.time}")
            previous = current

        return problems
