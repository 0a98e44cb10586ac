"""
Purpose: Orchestrator for one rider assignment (the "glue").
What it does:
Takes a dispatcher's assign/reassign request and drives it through

INIT -> OPTIMISTIC_APPLIED -> AWAITING_SERVER -> CONFIRMED | FAILED -> RECONCILING -> DONE

- writes an optimistic override and notifies views before the network call
- validates the server's answer and swaps in a confirmed override keyed by the server's id
- on failure applies the configured FailureStrategy (KEEP by default)
- schedules a background snapshot refresh whose errors never reach the caller

Two dispatchers assigning the same order at once are not serialized here; the server
decides and the next snapshot shows who won.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional, Set, Tuple

from orders.models import OrderPatch, OrderStatus
from reconciliation.identifiers import IdKind, normalize_optional, normalize_order_id
from reconciliation.overrides import OverrideStore, PendingOverride, Provenance
from rider_api.errors import RiderApiError
from rider_api.parsing import AssignmentReceipt

from .policy import ConsolePolicy, FailureStrategy, default_console_policy
from .state_machines.assignment_state import AssignmentState, AssignmentStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentResult:
    """
    What the caller gets back. `error` is set (and `ok` False) when the server did not confirm.
    """
    order_id: str
    rider_id: str
    state: AssignmentState
    status: Optional[OrderStatus] = None
    eta_minutes: Optional[int] = None
    rider_name: Optional[str] = None
    error: Optional[RiderApiError] = None
    was_reassignment: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class AssignmentCoordinator:
    """
    Coordinates one assignment attempt at a time per call; many calls may be in flight.
    It is the only writer of the OverrideStore.
    """
    def __init__(
        self,
        api,
        store: OverrideStore,
        policy: Optional[ConsolePolicy] = None,
        on_change: Optional[Callable[[], None]] = None,
        refresh: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.api = api
        self.store = store
        self.policy = policy or default_console_policy()
        self.on_change = on_change
        self.refresh = refresh
        self._background: Set[asyncio.Task] = set()

    async def assign(self, order_id: str, rider_id: str, *, was_reassignment: bool = False) -> AssignmentResult:
        machine = AssignmentStateMachine(normalize_order_id(order_id))
        previous = self.store.get(order_id)

        # 1. Optimistic patch, visible before we ever suspend
        optimistic = self.store.set(
            order_id,
            OrderPatch(rider_id=rider_id, status=OrderStatus.ASSIGNED),
            Provenance.OPTIMISTIC,
        )
        machine.transition(AssignmentState.OPTIMISTIC_APPLIED)
        self._notify()

        # 2. Ask the server
        machine.transition(AssignmentState.AWAITING_SERVER)
        try:
            receipt = await self.api.assign_order(order_id, rider_id)
        except RiderApiError as e:
            machine.transition(AssignmentState.FAILED)
            logger.warning(f"Assigning {rider_id} to order {order_id} failed: {e}")
            self._handle_failure(optimistic, previous)
            result = AssignmentResult(
                order_id=optimistic.order_id,
                rider_id=optimistic.patch.rider_id or rider_id,
                state=machine.state,
                error=e,
                was_reassignment=was_reassignment,
            )
        else:
            machine.transition(AssignmentState.CONFIRMED)
            confirmed_order_id, confirmed_rider_id = self._confirm(order_id, optimistic, receipt)
            result = AssignmentResult(
                order_id=confirmed_order_id,
                rider_id=confirmed_rider_id,
                state=machine.state,
                status=receipt.status,
                eta_minutes=receipt.eta_minutes,
                rider_name=receipt.rider_name,
                was_reassignment=was_reassignment,
            )
            verb = "reassigned" if was_reassignment else "assigned"
            logger.info(f"Order {result.order_id} {verb} to {result.rider_id}")

        # 3. Let the next snapshot settle whatever we could not
        machine.transition(AssignmentState.RECONCILING)
        if self.policy.refresh_after_assignment:
            self._schedule_refresh()
        machine.transition(AssignmentState.DONE)

        return replace(result, state=machine.state)

    def _confirm(self, order_id: str, optimistic: PendingOverride, receipt: AssignmentReceipt) -> Tuple[str, str]:
        """
        Swap the optimistic override for a confirmed one keyed by the server's ids.
        Returns the canonical (order_id, rider_id) the server reported.
        """
        server_order_id = normalize_order_id(receipt.order_id)
        patch = OrderPatch(
            rider_id=normalize_optional(receipt.rider_id, IdKind.RIDER),
            status=receipt.status,
            eta_minutes=receipt.eta_minutes,
        )

        if not self.store.is_current(optimistic):
            # a later request for this order was written while we waited; it wins
            logger.info(f"Confirmation for order {server_order_id} superseded by a newer assignment")
            return server_order_id, patch.rider_id

        self.store.clear(order_id, receipt.order_id)
        self.store.set(server_order_id, patch, Provenance.CONFIRMED)
        self._notify()
        return server_order_id, patch.rider_id

    def _handle_failure(self, optimistic: PendingOverride, previous: Optional[PendingOverride]) -> None:
        if self.policy.on_failure == FailureStrategy.KEEP:
            return
        if not self.store.is_current(optimistic):
            return

        if previous is not None:
            self.store.restore(previous)
        else:
            self.store.clear(optimistic.order_id)
        logger.info(f"Rolled back optimistic assignment for order {optimistic.order_id}")
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    # --- Background reconciliation ---

    def _schedule_refresh(self) -> None:
        if self.refresh is None:
            return
        task = asyncio.create_task(self._refresh_quietly())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_quietly(self) -> None:
        try:
            await self.refresh()
        except Exception as e:
            # the override already holds the best-known state
            logger.error(f"Background refresh after assignment failed: {e}")

    async def drain(self) -> None:
        """
        Wait for every scheduled background refresh (including ones scheduled meanwhile).
        """
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
