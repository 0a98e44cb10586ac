"""
Hand-written collaborators shared by the test modules.
"""
import asyncio
from typing import List, Optional

from orders.models import Order, OrderStatus
from rider_api.parsing import AssignmentReceipt, DashboardSummary
from riders.models import Rider, RiderStatus


def make_order(order_id: str, status: str = "pending", rider_id: Optional[str] = None,
               eta_minutes: Optional[int] = None) -> Order:
    return Order(
        id=order_id,
        status=OrderStatus(status),
        rider_id=rider_id,
        eta_minutes=eta_minutes,
        customer_name="Test Customer",
    )


def make_rider(rider_id: str, name: str = "Test Rider", status: str = "online") -> Rider:
    return Rider.new(rider_id, name, RiderStatus(status), current_load=0, max_load=3)


class FakeRiderApi:
    """
    Async stand-in for rider_api.AsyncRiderApi. Each resource can be swapped or made to fail,
    and assign_order can be held open with a gate to observe in-flight state.
    """
    def __init__(self, orders: Optional[List[Order]] = None, riders: Optional[List[Rider]] = None,
                 summary: Optional[DashboardSummary] = None):
        self.orders = list(orders or [])
        self.riders = list(riders or [])
        self.summary = summary or DashboardSummary()

        self.orders_error: Optional[Exception] = None
        self.riders_error: Optional[Exception] = None
        self.summary_error: Optional[Exception] = None

        self.assign_response = None  # AssignmentReceipt, an exception to raise, or None to echo the request
        self.assign_gate: Optional[asyncio.Event] = None
        self.alert_error: Optional[Exception] = None
        self.auto_assign_count = 0

        self.calls = []

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def get_orders(self, status=None, search=None):
        self.calls.append(("get_orders", status, search))
        await asyncio.sleep(0)
        if self.orders_error:
            raise self.orders_error
        return list(self.orders)

    async def get_riders(self):
        self.calls.append(("get_riders",))
        await asyncio.sleep(0)
        if self.riders_error:
            raise self.riders_error
        return list(self.riders)

    async def get_summary(self):
        self.calls.append(("get_summary",))
        await asyncio.sleep(0)
        if self.summary_error:
            raise self.summary_error
        return self.summary

    async def assign_order(self, order_id, rider_id):
        self.calls.append(("assign_order", order_id, rider_id))
        if self.assign_gate is not None:
            await self.assign_gate.wait()
        response = self.assign_response
        if isinstance(response, BaseException):
            raise response
        if response is None:
            return AssignmentReceipt(order_id=order_id, rider_id=rider_id)
        return response

    async def alert_order(self, order_id, reason):
        self.calls.append(("alert_order", order_id, reason))
        if self.alert_error:
            raise self.alert_error

    async def auto_assign(self):
        self.calls.append(("auto_assign",))
        return self.auto_assign_count

