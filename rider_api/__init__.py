#Marks rider_api as a package.
#Re-exports the client, its async adapter and the error taxonomy so other modules
#import from rider_api without knowing internal file names.
#No business logic.

from .async_adapter import AsyncRiderApi
from .client import RiderApiClient
from .errors import (
    ConnectivityError,
    HttpError,
    PartialFetchError,
    RiderApiError,
    TransportError,
    ValidationError,
    extract_error_message,
)
from .parsing import AssignmentReceipt, DashboardSummary

__all__ = [
    "AssignmentReceipt",
    "AsyncRiderApi",
    "ConnectivityError",
    "DashboardSummary",
    "HttpError",
    "PartialFetchError",
    "RiderApiClient",
    "RiderApiError",
    "TransportError",
    "ValidationError",
    "extract_error_message",
]
