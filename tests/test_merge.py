from orders.models import OrderPatch, OrderStatus
from reconciliation.merge import merge
from reconciliation.overrides import OverrideStore, Provenance
from reconciliation.snapshot import Snapshot
from riders.models import Rider, RiderStatus
from fakes import make_order, make_rider


def test_merge_canonicalizes_every_id():
    rider = Rider.new("r2", "Ben Ode", RiderStatus.BUSY, current_load=1, max_load=2, current_order_id="ord-7")
    snapshot = Snapshot(
        orders=[make_order("ord-7", status="assigned", rider_id="r2")],
        riders=[rider],
    )

    view = merge(snapshot, OverrideStore())

    assert view.orders[0].id == "ORD-0007"
    assert view.orders[0].rider_id == "RIDER-0002"
    assert view.riders[0].id == "RIDER-0002"
    assert view.riders[0].current_order_id == "ORD-0007"
    assert view.rider("r2") is view.riders[0]


def test_merge_never_synthesizes_orders_from_overrides():
    store = OverrideStore()
    store.set("ORD-0404", OrderPatch(rider_id="r1", status=OrderStatus.ASSIGNED), Provenance.CONFIRMED)
    snapshot = Snapshot(orders=[make_order("ORD-1")])

    view = merge(snapshot, store)

    assert [order.id for order in view.orders] == ["ORD-0001"]
    assert view.get("ORD-404") is None


def test_merge_preserves_snapshot_order_and_dedupes_spellings():
    snapshot = Snapshot(orders=[
        make_order("ORD-3"),
        make_order("ord-1"),
        make_order("ORD-0003", status="assigned", rider_id="r1"),
        make_order("ORD-2"),
    ])

    view = merge(snapshot, OverrideStore())

    assert [order.id for order in view.orders] == ["ORD-0003", "ORD-0001", "ORD-0002"]
    # first occurrence wins
    assert view.get("ord-3").status == OrderStatus.PENDING


def test_merge_is_idempotent_for_repeated_confirmations():
    store = OverrideStore()
    snapshot = Snapshot(orders=[make_order("ORD-7"), make_order("ORD-8")])
    patch = OrderPatch(rider_id="RIDER-0002", status=OrderStatus.ASSIGNED, eta_minutes=12)

    store.set("ORD-7", patch, Provenance.CONFIRMED)
    once = merge(snapshot, store)
    store.set("ORD-0007", patch, Provenance.CONFIRMED)
    twice = merge(snapshot, store)

    assert once == twice
    assert len(twice.orders) == 2


def test_sorted_by_eta_puts_missing_eta_last():
    snapshot = Snapshot(orders=[
        make_order("ORD-1"),
        make_order("ORD-2", status="assigned", rider_id="r1", eta_minutes=30),
        make_order("ORD-3", status="assigned", rider_id="r2", eta_minutes=5),
        make_order("ORD-4", status="assigned", rider_id="r3", eta_minutes=30),
    ])

    view = merge(snapshot, OverrideStore())

    assert [order.id for order in view.sorted_by_eta()] == ["ORD-0003", "ORD-0002", "ORD-0004", "ORD-0001"]
    # the view itself is untouched
    assert view.orders[0].id == "ORD-0001"


def test_unassigned_and_orders_by_id():
    store = OverrideStore()
    store.set("ORD-1", OrderPatch(rider_id="r1", status=OrderStatus.ASSIGNED), Provenance.OPTIMISTIC)
    snapshot = Snapshot(
        orders=[make_order("ORD-1"), make_order("ORD-2")],
        riders=[make_rider("r1")],
    )

    view = merge(snapshot, store)

    assert [order.id for order in view.unassigned()] == ["ORD-0002"]
    assert set(view.orders_by_id()) == {"ORD-0001", "ORD-0002"}
