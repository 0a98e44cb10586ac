from __future__ import annotations

import asyncio
from typing import List, Optional

from orders.models import Order
from riders.models import Rider

from .client import RiderApiClient
from .parsing import AssignmentReceipt, DashboardSummary


class AsyncRiderApi:
    """
    Adapts the blocking rider_api.client.RiderApiClient to the event loop.
    Each call runs in a worker thread so the loop (and the views it drives) never blocks
    while a request is in flight.
    """
    def __init__(self, client: RiderApiClient):
        self.client = client

    async def get_orders(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Order]:
        return await asyncio.to_thread(self.client.get_orders, status, search)

    async def get_riders(self) -> List[Rider]:
        return await asyncio.to_thread(self.client.get_riders)

    async def get_summary(self) -> DashboardSummary:
        return await asyncio.to_thread(self.client.get_summary)

    async def assign_order(self, order_id: str, rider_id: str) -> AssignmentReceipt:
        return await asyncio.to_thread(self.client.assign_order, order_id, rider_id)

    async def alert_order(self, order_id: str, reason: str) -> None:
        await asyncio.to_thread(self.client.alert_order, order_id, reason)

    async def auto_assign(self) -> int:
        return await asyncio.to_thread(self.client.auto_assign)
