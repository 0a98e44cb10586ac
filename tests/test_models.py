from dataclasses import replace

from orders.models import OrderPatch, OrderStatus, TimelineEvent
from riders.models import Rider, RiderStatus
from fakes import make_order


def test_apply_only_overwrites_present_fields():
    order = make_order("ORD-1", status="assigned", rider_id="RIDER-0001", eta_minutes=20)

    patched = order.apply(OrderPatch(rider_id="RIDER-0002"))

    assert patched.rider_id == "RIDER-0002"
    assert patched.status == OrderStatus.ASSIGNED
    assert patched.eta_minutes == 20
    assert order.apply(OrderPatch()) is order


def test_check_invariants_reports_problems():
    order = make_order("ORD-1", status="pending", rider_id="RIDER-0001", eta_minutes=-1)
    problems = order.check_invariants()

    assert any("pending but has rider" in problem for problem in problems)
    assert any("negative eta" in problem for problem in problems)
    assert any("without a rider" in p for p in make_order("ORD-2", status="delivered").check_invariants())


def test_timeline_must_not_go_back_in_time():
    order = make_order("ORD-1", status="assigned", rider_id="RIDER-0001")
    order = replace(order, timeline=[
        TimelineEvent(OrderStatus.PENDING, "2026-01-01T10:05:00Z"),
        TimelineEvent(OrderStatus.ASSIGNED, "2026-01-01T10:00:00"),
    ])

    assert any("back in time" in problem for problem in order.check_invariants())


def test_rider_new_derives_initials_and_keeps_capacity_consistent():
    rider = Rider.new("r1", "asha kumar devi", "busy", current_load=4, max_load=3, lat=1.0, lng=2.0)

    assert rider.status == RiderStatus.BUSY
    assert rider.avatar_initials == "AK"
    assert rider.capacity.current_load == 3
    assert rider.location.lng == 2.0
    assert Rider.new("r2", "No Gps").location is None
