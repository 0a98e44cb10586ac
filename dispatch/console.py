"""
Purpose: One dispatch console session, the surface views talk to.
What it does:
Owns the session's OverrideStore and SnapshotCache, wires them to the SnapshotFetcher and
the AssignmentCoordinator, and publishes the merged view to subscribers whenever either changes.

Exposed to views:
- subscribe(callback) -> Subscription
- request_assignment(order_id, rider_id)
- request_refresh()
- alert_order(order_id, reason)
- request_auto_assign()
- set_search(query), start_polling(), stop_polling(), close()

There is no cancellation of in-flight requests. A view that goes away closes its Subscription,
and anything arriving afterwards is dropped on delivery.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from reconciliation.merge import MergedView, merge
from reconciliation.overrides import OverrideStore
from reconciliation.snapshot import FetchResult, OrderFilter, SnapshotCache, SnapshotFetcher
from rider_api.async_adapter import AsyncRiderApi
from rider_api.client import RiderApiClient

from .coordinator import AssignmentCoordinator, AssignmentResult
from .policy import ConsolePolicy, default_console_policy

logger = logging.getLogger(__name__)


class RefreshStatus(Enum):
    IDLE = "idle"
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


class Subscription:
    """
    Handle returned by DispatchConsole.subscribe. `active` doubles as the view's "still mounted" flag.
    """
    def __init__(self, console: DispatchConsole, callback: Callable[[MergedView], None]):
        self._console = console
        self.callback = callback
        self.active = True

    def deliver(self, view: MergedView) -> None:
        if not self.active:
            return
        self.callback(view)

    def close(self) -> None:
        self.active = False
        self._console._unsubscribe(self)


class DispatchConsole:
    """
    Constructed once per dashboard session. Holds no module level state.
    """
    def __init__(self, api, policy: Optional[ConsolePolicy] = None):
        self.api = api
        self.policy = policy or default_console_policy()
        self.policy.validate()

        self.store = OverrideStore()
        self.cache = SnapshotCache()
        self.fetcher = SnapshotFetcher(api, self.cache, revision_source=self.store.current_revision)
        self.coordinator = AssignmentCoordinator(
            api,
            self.store,
            policy=self.policy,
            on_change=self._publish,
            refresh=self._refresh_snapshot,
        )

        self.refresh_status = RefreshStatus.IDLE
        self._subscriptions: List[Subscription] = []
        self._poll_task: Optional[asyncio.Task] = None

    @classmethod
    def from_env(cls, policy: Optional[ConsolePolicy] = None) -> DispatchConsole:
        """
        Build a console against the backend named by RIDER_API_BASE_URL.
        """
        policy = policy or default_console_policy()
        client = RiderApiClient(orders_page_limit=policy.orders_page_limit)
        return cls(AsyncRiderApi(client), policy=policy)

    # --- Views ---

    @property
    def merged_view(self) -> MergedView:
        return merge(self.cache.snapshot, self.store)

    def subscribe(self, callback: Callable[[MergedView], None]) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        if self.cache.has_data:
            subscription.deliver(self.merged_view)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _publish(self) -> None:
        if not self._subscriptions:
            return
        view = self.merged_view
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(view)
            except Exception as e:
                logger.error(f"Subscriber failed to render merged view: {e}")

    # --- Snapshot ---

    def set_search(self, query: Optional[str], status: Optional[str] = None) -> None:
        """
        Filter applied to the next order fetches. Call request_refresh to apply it now.
        """
        self.fetcher.order_filter = OrderFilter(status=status, search=query or None)

    async def _refresh_snapshot(self) -> FetchResult:
        result = await self.fetcher.fetch_all()

        if result.complete:
            self.refresh_status = RefreshStatus.SUCCESS
        elif result.ok:
            self.refresh_status = RefreshStatus.PARTIAL
        else:
            self.refresh_status = RefreshStatus.ERROR

        self._publish()
        return result

    async def request_refresh(self) -> FetchResult:
        """
        Refresh now. Partial failures only degrade the view to stale data; when every
        resource fails the last good snapshot is kept and ConnectivityError is raised.
        """
        result = await self._refresh_snapshot()
        if not result.ok:
            raise result.error
        return result

    # --- Dispatcher actions ---

    async def request_assignment(self, order_id: str, rider_id: str) -> AssignmentResult:
        current = self.merged_view.get(order_id)
        was_reassignment = bool(current and current.rider_id)
        return await self.coordinator.assign(order_id, rider_id, was_reassignment=was_reassignment)

    async def alert_order(self, order_id: str, reason: str) -> None:
        """
        Fire-and-refresh. Alert failures propagate; the refresh only runs after a successful alert.
        """
        await self.api.alert_order(order_id, reason)
        logger.info(f"Alert sent for order {order_id}: {reason}")
        await self._refresh_snapshot()

    async def request_auto_assign(self) -> int:
        count = await self.api.auto_assign()
        if count > 0:
            logger.info(f"Auto-assigned {count} orders")
            await self._refresh_snapshot()
        return count

    async def wait_for_background(self) -> None:
        await self.coordinator.drain()

    # --- Polling ---

    def start_polling(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            return
        self._poll_task = asyncio.create_task(self._poll_forever())

    async def _poll_forever(self) -> None:
        while True:
            await asyncio.sleep(self.policy.poll_interval_seconds)
            try:
                await self._refresh_snapshot()
            except Exception as e:
                logger.error(f"Periodic refresh failed: {e}")

    async def stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def close(self) -> None:
        await self.stop_polling()
        await self.coordinator.drain()
        for subscription in list(self._subscriptions):
            subscription.close()
