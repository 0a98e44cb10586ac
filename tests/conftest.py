import pytest

from fakes import FakeRiderApi, make_order, make_rider
from rider_api.parsing import DashboardSummary


@pytest.fixture
def fake_api():
    return FakeRiderApi(
        orders=[
            make_order("ord-3"),
            make_order("ORD-0007"),
            make_order("ORD-9", status="assigned", rider_id="r5", eta_minutes=20),
        ],
        riders=[make_rider("r1", "Asha K"), make_rider("RIDER-2", "Ben Ode"), make_rider("r5", "Cy Li")],
        summary=DashboardSummary(active_riders=3, max_riders=10),
    )
