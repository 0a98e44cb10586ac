"""
Purpose: Turn raw backend JSON into domain models.
What it does:
- unwraps the different list envelopes the backend has shipped over time
- accepts camelCase and snake_case field names
- fills missing summary fields with defaults instead of failing
- validates the assignment response before it is treated as a confirmation

Rule: pure functions, no HTTP here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from orders.models import Order, OrderStatus, TimelineEvent
from riders.models import Rider, RiderStatus

from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardSummary:
    active_riders: int = 0
    max_riders: int = 0
    busy_riders: int = 0
    idle_riders: int = 0
    active_rider_utilization_percent: float = 0
    fleet_utilization_percent: Optional[float] = None
    orders_in_transit: int = 0
    orders_in_transit_change_percent: float = 0
    avg_delivery_time_seconds: float = 0
    avg_delivery_time_within_sla: bool = True
    sla_breaches: int = 0


@dataclass(frozen=True)
class AssignmentReceipt:
    """
    What the backend says it did for an assign call.
    """
    order_id: str
    rider_id: str
    status: OrderStatus = OrderStatus.ASSIGNED
    eta_minutes: Optional[int] = None
    rider_name: Optional[str] = None


def _pick(payload: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    #first key that is present and non-empty
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return default


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _number(payload: Dict[str, Any], key: str, default: float = 0) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _order_status(raw: Any, order_id: Any) -> OrderStatus:
    # new backend statuses degrade to UNKNOWN instead of hiding the order
    try:
        return OrderStatus(str(raw or "").lower())
    except ValueError:
        logger.warning(f"Order {order_id} has unknown status {raw!r}, showing it as unknown")
        return OrderStatus.UNKNOWN


def parse_order(payload: Dict[str, Any]) -> Order:
    order_id = _pick(payload, "id", "orderId", "order_id")
    if not order_id:
        raise ValidationError("Order without id")

    status = _order_status(payload.get("status"), order_id)

    timeline = []
    for event in payload.get("timeline") or []:
        try:
            timeline.append(
                TimelineEvent(
                    status=_order_status(event.get("status"), order_id),
                    time=str(event.get("time") or event.get("timestamp") or ""),
                    note=event.get("note"),
                )
            )
        except (AttributeError, ValueError):
            logger.warning(f"Dropping malformed timeline entry on order {order_id}: {event!r}")

    return Order(
        id=str(order_id),
        status=status,
        rider_id=_pick(payload, "riderId", "rider_id"),
        eta_minutes=_as_int(_pick(payload, "etaMinutes", "eta_minutes")),
        sla_deadline=str(_pick(payload, "slaDeadline", "sla_deadline", default="")),
        pickup_location=_location_text(_pick(payload, "pickupLocation", "pickup_location", default="")),
        drop_location=_location_text(_pick(payload, "dropLocation", "drop_location", default="")),
        customer_name=str(_pick(payload, "customerName", "customer_name", default="")),
        items=[str(item) for item in payload.get("items") or []],
        timeline=timeline,
    )


def _location_text(value: Any) -> str:
    # dispatch endpoints send {"address": ..., "coordinates": {...}}
    if isinstance(value, dict):
        return str(value.get("address", ""))
    return str(value)


def parse_rider(payload: Dict[str, Any]) -> Rider:
    rider_id = _pick(payload, "id", "riderId", "rider_id")
    if not rider_id:
        raise ValidationError("Rider without id")

    try:
        status = RiderStatus(str(payload.get("status", "offline")).lower())
    except ValueError:
        raise ValidationError(f"Rider {rider_id} has unknown status {payload.get('status')!r}")

    capacity = payload.get("capacity") if isinstance(payload.get("capacity"), dict) else {}
    location = payload.get("location") if isinstance(payload.get("location"), dict) else {}

    rider = Rider.new(
        rider_id=str(rider_id),
        name=str(_pick(payload, "name", default="")),
        status=status,
        current_load=_as_int(capacity.get("currentLoad", capacity.get("current_load"))) or 0,
        max_load=_as_int(capacity.get("maxLoad", capacity.get("max_load"))) or 0,
        current_order_id=_pick(payload, "currentOrderId", "current_order_id"),
        lat=location.get("lat"),
        lng=location.get("lng"),
        rating=_number(payload, "rating"),
        avg_eta_minutes=_number(payload, "avgEtaMins") or _number(payload, "avg_eta_minutes"),
    )
    if payload.get("avatarInitials"):
        rider = replace(rider, avatar_initials=str(payload["avatarInitials"]))
    return rider


def parse_summary(payload: Any) -> DashboardSummary:
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict):
        logger.warning(f"Invalid summary response, using defaults: {payload!r}")
        return DashboardSummary()

    fleet = payload.get("fleetUtilizationPercent")
    within_sla = payload.get("avgDeliveryTimeWithinSla")

    return DashboardSummary(
        active_riders=int(_number(payload, "activeRiders")),
        max_riders=int(_number(payload, "maxRiders")),
        busy_riders=int(_number(payload, "busyRiders")),
        idle_riders=int(_number(payload, "idleRiders")),
        active_rider_utilization_percent=_number(payload, "activeRiderUtilizationPercent"),
        fleet_utilization_percent=fleet if isinstance(fleet, (int, float)) and not isinstance(fleet, bool) else None,
        orders_in_transit=int(_number(payload, "ordersInTransit")),
        orders_in_transit_change_percent=_number(payload, "ordersInTransitChangePercent"),
        avg_delivery_time_seconds=_number(payload, "avgDeliveryTimeSeconds"),
        avg_delivery_time_within_sla=within_sla if isinstance(within_sla, bool) else True,
        sla_breaches=int(_number(payload, "slaBreaches")),
    )


def unwrap_order_list(payload: Any) -> List[Dict[str, Any]]:
    """
    Accepts: a bare list, {"data": [...]}, {"orders": [...]}, or one order object.
    Anything else degrades to an empty list with a warning.
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        logger.warning(f"Invalid orders response: not an object: {payload!r}")
        return []
    if isinstance(payload.get("data"), list):
        return payload["data"]
    if isinstance(payload.get("orders"), list):
        return payload["orders"]
    if payload.get("id"):
        return [payload]

    logger.warning(f"Invalid orders response format: expected array, got object: {payload!r}")
    return []


def unwrap_rider_list(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("riders", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
    logger.warning(f"Invalid riders response format: {payload!r}")
    return []


def parse_orders(payload: Any) -> List[Order]:
    orders = []
    for raw in unwrap_order_list(payload):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object order entry: {raw!r}")
            continue
        try:
            orders.append(parse_order(raw))
        except ValidationError as e:
            logger.warning(f"Skipping order: {e}")
    return orders


def parse_riders(payload: Any) -> List[Rider]:
    riders = []
    for raw in unwrap_rider_list(payload):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object rider entry: {raw!r}")
            continue
        try:
            riders.append(parse_rider(raw))
        except ValidationError as e:
            logger.warning(f"Skipping rider: {e}")
    return riders


def parse_assignment_receipt(payload: Any) -> AssignmentReceipt:
    """
    A 2xx without both ids is not a confirmation.
    """
    if not isinstance(payload, dict):
        raise ValidationError("No response from server")
    if isinstance(payload.get("data"), dict):
        payload = payload["data"]

    order_id = _pick(payload, "orderId", "order_id")
    rider_id = _pick(payload, "riderId", "rider_id")
    if not order_id:
        raise ValidationError("Invalid response: missing orderId")
    if not rider_id:
        raise ValidationError("Invalid response: missing riderId")

    raw_status = payload.get("status") or OrderStatus.ASSIGNED.value
    try:
        status = OrderStatus(str(raw_status).lower())
    except ValueError:
        status = OrderStatus.UNKNOWN
    # a confirmation is only trusted with a status we can lay over the order
    if status == OrderStatus.UNKNOWN:
        raise ValidationError(f"Invalid response: unknown status {raw_status!r}")

    return AssignmentReceipt(
        order_id=str(order_id),
        rider_id=str(rider_id),
        status=status,
        eta_minutes=_as_int(_pick(payload, "etaMinutes", "eta_minutes")),
        rider_name=payload.get("riderName"),
    )
