"""
Error taxonomy for talking to the rider backend.

RiderApiError
 ├── ConnectivityError   transport unreachable (TransportError is the same class)
 ├── HttpError           non-2xx response, with a human readable message
 ├── ValidationError     2xx response whose body is not usable
 └── PartialFetchError   some, not all, of the snapshot fetches failed (logged, never raised to views)
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

GENERIC_FAILURE_MESSAGE = "Request failed"


class RiderApiError(Exception):
    """Base class for every failure the console reports."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConnectivityError(RiderApiError):
    """Raised when the backend cannot be reached at all."""
    pass


TransportError = ConnectivityError


class HttpError(RiderApiError):
    """Raised for non-2xx responses."""

    def __init__(self, status: int, message: str, details: Any = None):
        super().__init__(message)
        self.status = status
        self.details = details

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.message}"


class ValidationError(RiderApiError):
    """Raised when a successful response is missing fields we rely on."""
    pass


class PartialFetchError(RiderApiError):
    """
    Describes a snapshot refresh where some resources failed.
    `failures` maps resource name ("orders", "riders", "summary") to the exception it raised.
    """

    def __init__(self, failures: Dict[str, BaseException]):
        names = ", ".join(sorted(failures))
        super().__init__(f"Failed to refresh: {names}")
        self.failures = failures


def _looks_serialized(message: str) -> bool:
    return message in ("[object Object]", "{}") or message.startswith("{")


def extract_error_message(body: Any, status: Optional[int] = None) -> str:
    """
    Best-effort message out of an error body.

    Tries `message`, `error`, `msg`, then nested `message` / `error.message` / `details.message`.
    Never returns a serialized object; falls back to a generic string instead.
    """
    fallback = f"HTTP error! status: {status}" if status is not None else GENERIC_FAILURE_MESSAGE

    if body is None:
        return fallback
    if isinstance(body, str):
        body = body.strip()
        if not body:
            return fallback
        if _looks_serialized(body):
            try:
                return extract_error_message(json.loads(body), status)
            except ValueError:
                return GENERIC_FAILURE_MESSAGE
        return body
    if not isinstance(body, dict):
        return fallback

    message: Any = body.get("message") or body.get("error") or body.get("msg") or fallback

    # {"error": {"message": "..."}} or {"message": {"message": "..."}}
    if isinstance(message, dict):
        nested = message.get("message")
        if not isinstance(nested, str):
            error = body.get("error")
            nested = error.get("message") if isinstance(error, dict) else None
        message = nested or GENERIC_FAILURE_MESSAGE

    if not isinstance(message, str):
        message = str(message)

    if _looks_serialized(message):
        candidates = [body.get("error"), body.get("message"), body.get("details")]
        nested = None
        for candidate in candidates:
            if isinstance(candidate, dict) and isinstance(candidate.get("message"), str):
                nested = candidate["message"]
                break
        message = nested or GENERIC_FAILURE_MESSAGE

    return message
