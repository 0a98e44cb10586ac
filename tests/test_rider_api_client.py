import asyncio
import json

import pytest
import requests

from orders.models import OrderStatus
from rider_api import client as client_module
from rider_api.async_adapter import AsyncRiderApi
from rider_api.client import RiderApiClient
from rider_api.errors import ConnectivityError, HttpError, ValidationError
from riders.models import RiderStatus


class MockResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self._body = body
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text
        self.content = text.encode()

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class MockSession:
    """
    Replays queued responses (or raises queued exceptions) and records every request.
    """
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses):
    session = MockSession(*responses)
    return RiderApiClient(base_url="http://backend.test/api/v1/", session=session), session


def test_missing_base_url_is_rejected(monkeypatch):
    monkeypatch.setattr(client_module, "BASE_URL", None)
    with pytest.raises(ValueError):
        RiderApiClient()


def test_get_orders_sends_filters_and_parses_data_envelope():
    client, session = make_client(MockResponse(body={"data": [
        {"id": "ORD-0001", "status": "assigned", "riderId": "r1", "etaMinutes": 8, "customerName": "A"},
        {"id": "ORD-0002", "status": "pending"},
    ]}))

    orders = client.get_orders(status="Delayed", search="ORD")

    sent = session.requests[0]
    assert sent["method"] == "GET"
    assert sent["url"] == "http://backend.test/api/v1/rider/orders"
    assert sent["params"] == {"status": "delayed", "search": "ORD", "limit": 100}
    assert sent["timeout"] == client.timeout

    assert [order.id for order in orders] == ["ORD-0001", "ORD-0002"]
    assert orders[0].status == OrderStatus.ASSIGNED
    assert orders[0].eta_minutes == 8


def test_status_all_is_not_sent():
    client, session = make_client(MockResponse(body=[]))

    client.get_orders(status="All")

    assert session.requests[0]["params"] == {"limit": 100}


def test_get_riders_and_summary():
    client, session = make_client(
        MockResponse(body={"riders": [{"id": "RIDER-0001", "name": "Asha K", "status": "busy",
                                       "capacity": {"currentLoad": 1, "maxLoad": 2}}]}),
        MockResponse(body={"activeRiders": 7, "maxRiders": 12, "slaBreaches": 2}),
    )

    riders = client.get_riders()
    summary = client.get_summary()

    assert riders[0].status == RiderStatus.BUSY
    assert riders[0].capacity.current_load == 1
    assert summary.active_riders == 7
    assert summary.sla_breaches == 2
    assert session.requests[0]["url"].endswith("/rider")
    assert session.requests[1]["url"].endswith("/rider/summary")


def test_assign_order_posts_both_ids():
    client, session = make_client(MockResponse(body={
        "orderId": "ORD-0003", "riderId": "RIDER-0001", "status": "assigned", "etaMinutes": 12,
    }))

    receipt = client.assign_order("ord-3", "RIDER-1")

    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["url"].endswith("/rider/orders/ord-3/assign")
    assert sent["json"] == {"orderId": "ord-3", "riderId": "RIDER-1"}
    assert (receipt.order_id, receipt.rider_id, receipt.eta_minutes) == ("ORD-0003", "RIDER-0001", 12)


def test_assign_order_without_rider_id_is_not_a_confirmation():
    client, _ = make_client(MockResponse(body={"orderId": "ORD-0003"}))

    with pytest.raises(ValidationError, match="missing riderId"):
        client.assign_order("ORD-0003", "r1")


def test_error_status_surfaces_extracted_message():
    client, _ = make_client(MockResponse(status_code=500, body={"message": "rider at capacity"}))

    with pytest.raises(HttpError) as excinfo:
        client.assign_order("ORD-7", "r2")

    assert excinfo.value.status == 500
    assert excinfo.value.message == "rider at capacity"
    assert str(excinfo.value) == "HTTP 500: rider at capacity"


def test_plain_text_error_body():
    client, _ = make_client(MockResponse(status_code=502, text="Bad gateway"))

    with pytest.raises(HttpError) as excinfo:
        client.get_riders()

    assert excinfo.value.message == "Bad gateway"


def test_unreachable_backend_is_a_connectivity_error():
    client, _ = make_client(requests.ConnectionError("connection refused"))

    with pytest.raises(ConnectivityError) as excinfo:
        client.get_orders()

    assert "Cannot connect to backend API" in excinfo.value.message


def test_non_json_success_body_is_a_validation_error():
    client, _ = make_client(MockResponse(text="<html>maintenance</html>"))

    with pytest.raises(ValidationError):
        client.get_summary()


def test_alert_order():
    client, session = make_client(MockResponse(status_code=204))

    client.alert_order("ORD-7", "Customer not reachable")

    assert session.requests[0]["url"].endswith("/rider/orders/ORD-7/alert")
    assert session.requests[0]["json"] == {"reason": "Customer not reachable"}


@pytest.mark.parametrize("response, expected", [
    (MockResponse(body={"count": 3}), 3),
    (MockResponse(status_code=404, body={"message": "Not found"}), 0),
    (MockResponse(status_code=204), 0),
])
def test_auto_assign(response, expected):
    client, _ = make_client(response)
    assert client.auto_assign() == expected


def test_auto_assign_other_errors_propagate():
    client, _ = make_client(MockResponse(status_code=500, body={"error": "dispatcher offline"}))

    with pytest.raises(HttpError, match="dispatcher offline"):
        client.auto_assign()


def test_async_adapter_runs_the_client_off_the_loop():
    client, session = make_client(
        MockResponse(body=[{"id": "ORD-1", "status": "pending"}]),
        MockResponse(status_code=500, body={"message": "rider at capacity"}),
    )
    api = AsyncRiderApi(client)

    orders = asyncio.run(api.get_orders())
    assert orders[0].id == "ORD-1"

    with pytest.raises(HttpError):
        asyncio.run(api.assign_order("ORD-1", "r1"))
    assert len(session.requests) == 2


def test_default_client_does_not_share_a_session_across_threads(monkeypatch):
    """
    Concurrent snapshot fetches run in worker threads; without an injected session each
    request goes through requests.request instead of one shared Session.
    """
    sent = []

    def fake_request(method, url, **kwargs):
        sent.append((method, url))
        return MockResponse(body=[])

    monkeypatch.setattr(client_module.requests, "request", fake_request)
    client = RiderApiClient(base_url="http://backend.test")
    api = AsyncRiderApi(client)

    async def fetch_all():
        return await asyncio.gather(api.get_orders(), api.get_riders(), api.get_orders(status="delayed"))

    asyncio.run(fetch_all())

    assert client.session is None
    assert len(sent) == 3
