#Purpose: The rider backend "adapter/client".
#Sole responsibility: talk to the rider backend via HTTP and return domain models.
#Encapsulates backend-specific details:
#URL construction (/rider/orders, /rider, /rider/summary, ...)
#timeouts and error translation (ConnectivityError / HttpError)
#parsing response JSON into our internal shape (rider_api.parsing)
#It should not contain reconciliation rules.

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from orders.models import Order
from riders.models import Rider

from .errors import ConnectivityError, HttpError, ValidationError, extract_error_message
from .parsing import (
    AssignmentReceipt,
    DashboardSummary,
    parse_assignment_receipt,
    parse_orders,
    parse_riders,
    parse_summary,
)

# Read backend base URL from environment
# Example in .env:
# RIDER_API_BASE_URL=http://localhost:5000/api/v1
load_dotenv()
BASE_URL = os.getenv("RIDER_API_BASE_URL")
DEFAULT_TIMEOUT = float(os.getenv("RIDER_API_TIMEOUT", "30"))

ORDERS_PATH = "/rider/orders"
RIDERS_PATH = "/rider"
SUMMARY_PATH = "/rider/summary"
AUTO_ASSIGN_PATH = "/rider/dispatch/auto-assign"

logger = logging.getLogger(__name__)


class RiderApiClient:
    """
    Rider backend Adapter / Client

    Sole responsibility:
    - Talk to the backend via HTTP (blocking, `requests`)
    - Translate transport and status failures into the rider_api error taxonomy
    - Return domain models
    """
    def __init__(self, base_url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None, orders_page_limit: int = 100):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.timeout = timeout #seconds to wait for the backend before giving up
        # AsyncRiderApi calls this client from several worker threads at once. Without an
        # injected session every request goes through requests.request, which opens its own.
        # An injected session is shared by those threads.
        self.session = session
        self.orders_page_limit = orders_page_limit

        if not self.base_url:
            raise ValueError("Rider API base URL not set. Please set RIDER_API_BASE_URL in the .env file.")

    #----------------
    # Internal helper
    #----------------
    def _request(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None,
                 json_body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"[RiderAPI] {method} {url}")

        send = self.session.request if self.session is not None else requests.request
        try:
            response = send(
                method,
                url,
                params=params,
                json=json_body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[RiderAPI] {method} {url} unreachable: {e}")
            raise ConnectivityError(
                "Cannot connect to backend API. Please ensure the backend server is running."
            ) from e

        logger.debug(f"[RiderAPI] {response.status_code} {response.reason}")

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = response.text or None
            message = extract_error_message(body, response.status_code)
            logger.error(f"[RiderAPI] Error response ({response.status_code}): {message}")
            raise HttpError(response.status_code, message, details=body)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ValidationError(f"Backend returned a non-JSON body for {path}") from e

    #----------------
    # Public methods
    #----------------
    def get_orders(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Order]:
        """
        Fetch the order list. Any unrecognized response shape becomes [] (logged).
        """
        params: Dict[str, Any] = {}
        if status and status.lower() != "all":
            params["status"] = status.lower()
        if search:
            params["search"] = search
        params["limit"] = self.orders_page_limit

        data = self._request("GET", ORDERS_PATH, params=params)
        return parse_orders(data)

    def get_riders(self) -> List[Rider]:
        return parse_riders(self._request("GET", RIDERS_PATH))

    def get_summary(self) -> DashboardSummary:
        return parse_summary(self._request("GET", SUMMARY_PATH))

    def assign_order(self, order_id: str, rider_id: str) -> AssignmentReceipt:
        """
        Ask the backend to assign `rider_id` to `order_id`.
        Raises ValidationError if the 2xx body does not name both ids.
        """
        data = self._request(
            "POST",
            f"{ORDERS_PATH}/{order_id}/assign",
            json_body={"orderId": order_id, "riderId": rider_id},
        )
        return parse_assignment_receipt(data)

    def alert_order(self, order_id: str, reason: str) -> None:
        self._request("POST", f"{ORDERS_PATH}/{order_id}/alert", json_body={"reason": reason})

    def auto_assign(self) -> int:
        """
        Returns the number of assignments the backend made. A backend without
        the endpoint (404) made none.
        """
        try:
            data = self._request("POST", AUTO_ASSIGN_PATH)
        except HttpError as e:
            if e.status == 404:
                return 0
            raise
        if not isinstance(data, dict):
            return 0
        return int(data.get("count") or 0)
