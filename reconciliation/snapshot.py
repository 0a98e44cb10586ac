"""
Purpose: Fetch the three dashboard resources and keep the last good copy of each.
What it does:
- fans out GetOrders / GetRiders / GetSummary concurrently and fans them back in
- isolates failures per resource: a failed branch keeps the previous snapshot's field
- only replaces the cached snapshot when at least one branch succeeded

Not "all or nothing": one endpoint being down does not wipe a view
that the other two can still keep current.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from orders.models import Order
from rider_api.errors import ConnectivityError, PartialFetchError
from rider_api.parsing import DashboardSummary
from riders.models import Rider

logger = logging.getLogger(__name__)

RESOURCES = ("orders", "riders", "summary")


@dataclass(frozen=True)
class Snapshot:
    """
    One consistent-enough view of the backend.

    `as_of_revision` is the override store revision when the fetch was issued
    (None when unknown, e.g. a hand-built snapshot).
    """
    orders: List[Order] = field(default_factory=list)
    riders: List[Rider] = field(default_factory=list)
    summary: DashboardSummary = field(default_factory=DashboardSummary)
    fetched_at: Optional[datetime] = None
    as_of_revision: Optional[int] = None


@dataclass
class SnapshotCache:
    """
    Holds the latest snapshot for one console session. Only the fetcher writes it.
    """
    snapshot: Snapshot = field(default_factory=Snapshot)
    has_data: bool = False

    def replace(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self.has_data = True


@dataclass(frozen=True)
class OrderFilter:
    status: Optional[str] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class FetchResult:
    snapshot: Snapshot
    succeeded: List[str]
    failures: Dict[str, BaseException]

    @property
    def ok(self) -> bool:
        """At least one resource came back."""
        return bool(self.succeeded)

    @property
    def complete(self) -> bool:
        return not self.failures

    @property
    def error(self) -> Optional[Exception]:
        """
        None when everything succeeded, PartialFetchError when some branches failed,
        ConnectivityError when none succeeded.
        """
        if self.complete:
            return None
        if not self.ok:
            return ConnectivityError("Failed to load data. Check connection and try again.")
        return PartialFetchError(self.failures)


class SnapshotFetcher:
    """
    Fans out the three snapshot requests against an async rider API
    (see rider_api.async_adapter.AsyncRiderApi) and writes the SnapshotCache.
    """

    def __init__(self, api, cache: SnapshotCache, revision_source: Optional[Callable[[], int]] = None):
        self.api = api
        self.cache = cache
        self.revision_source = revision_source
        self.order_filter = OrderFilter()

    async def fetch_all(self) -> FetchResult:
        as_of_revision = self.revision_source() if self.revision_source else None
        previous = self.cache.snapshot

        results = await asyncio.gather(
            self.api.get_orders(self.order_filter.status, self.order_filter.search),
            self.api.get_riders(),
            self.api.get_summary(),
            return_exceptions=True,
        )

        fresh = {}
        failures: Dict[str, BaseException] = {}
        for name, result in zip(RESOURCES, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                failures[name] = result
                logger.warning(f"Snapshot fetch of {name} failed: {result}")
            else:
                fresh[name] = result

        snapshot = Snapshot(
            orders=fresh.get("orders", previous.orders),
            riders=fresh.get("riders", previous.riders),
            summary=fresh.get("summary", previous.summary),
            fetched_at=datetime.now(timezone.utc),
            # stale orders stay as fresh as they were when they were fetched
            as_of_revision=as_of_revision if "orders" in fresh else previous.as_of_revision,
        )
        result = FetchResult(snapshot=snapshot, succeeded=list(fresh), failures=failures)

        if result.ok:
            self.cache.replace(snapshot)
            if failures:
                logger.warning(f"Partial refresh, keeping stale data: {result.error}")
        else:
            logger.error("Every snapshot fetch failed; keeping the last good snapshot")
            result = FetchResult(snapshot=previous, succeeded=[], failures=failures)

        return result
